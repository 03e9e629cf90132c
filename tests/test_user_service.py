import json

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_payload
from userdesk.database.models import User
from userdesk.database.repository import CONFLICT_MESSAGE, UserRepository, UserStoreError
from userdesk.user_management.models import ResultKind
from userdesk.user_management.security import PasswordEncoder
from userdesk.user_management.service import (
    CREATE_FAILED_MESSAGE,
    EMAIL_TAKEN_MESSAGE,
    USERNAME_TAKEN_MESSAGE,
    VALIDATION_ERROR_MESSAGE,
    UserService,
)


class BrokenRepository:
    """Store double whose writes fail with ``error``."""

    def __init__(self, error):
        self.error = error
        self.user = User(id=1, username="alice", email="alice@example.com", password="encoded")

    async def find_all(self):
        return [self.user]

    async def find_by_id(self, user_id):
        return self.user if user_id == self.user.id else None

    async def find_by_username(self, username):
        return None

    async def find_by_email(self, email):
        return None

    async def save(self, user):
        raise self.error

    async def delete(self, user):
        raise self.error


def _body(**overrides):
    return json.dumps(make_payload(**overrides)).encode()


@pytest.mark.asyncio
async def test_create_user_encodes_password(service, repository, encoder):
    result = await service.create_user(_body())

    assert result.kind is ResultKind.CREATED
    assert result.status_code == 201
    assert result.payload == {"success": "User added successfully"}
    assert result.location_id == 1

    stored = await repository.find_by_id(result.location_id)
    assert stored.password != "secret123"
    assert encoder.verify("secret123", stored.password)


@pytest.mark.asyncio
async def test_create_user_with_empty_body_lists_required_fields(service, repository):
    result = await service.create_user(b"{}")

    assert result.kind is ResultKind.VALIDATION_FAILED
    assert result.status_code == 400
    assert result.payload["error"] == VALIDATION_ERROR_MESSAGE
    assert set(result.payload["notValidFields"]) == {"username", "email", "plainPassword"}
    assert await repository.find_all() == []


@pytest.mark.parametrize("missing", ["username", "email", "plainPassword"])
@pytest.mark.asyncio
async def test_create_user_missing_field_is_reported(service, missing):
    payload = make_payload()
    del payload[missing]

    result = await service.create_user(json.dumps(payload))

    assert result.kind is ResultKind.VALIDATION_FAILED
    assert missing in result.payload["notValidFields"]


@pytest.mark.asyncio
async def test_create_user_rejects_taken_username_and_email(service, repository):
    await service.create_user(_body())

    result = await service.create_user(_body())

    assert result.kind is ResultKind.VALIDATION_FAILED
    assert result.payload["notValidFields"] == {
        "username": [USERNAME_TAKEN_MESSAGE],
        "email": [EMAIL_TAKEN_MESSAGE],
    }
    assert len(await repository.find_all()) == 1


@pytest.mark.asyncio
async def test_form_error_status_is_configurable(repository, encoder, validator):
    legacy = UserService(repository, encoder, validator, form_error_status=200)

    result = await legacy.create_user(b"{}")

    assert result.kind is ResultKind.VALIDATION_FAILED
    assert result.status_code == 200


@pytest.mark.asyncio
async def test_get_user_not_found(service):
    result = await service.get_user(42)

    assert result.kind is ResultKind.NOT_FOUND
    assert result.status_code == 404
    assert result.payload == {"error": "No user found with id 42"}


@pytest.mark.asyncio
async def test_list_users_hides_passwords(service):
    await service.create_user(_body())
    await service.create_user(_body(username="bob", email="bob@example.com"))

    result = await service.list_users()

    assert result.kind is ResultKind.OK
    assert [u["username"] for u in result.payload] == ["alice", "bob"]
    assert all("password" not in u and "plainPassword" not in u for u in result.payload)


@pytest.mark.asyncio
async def test_update_user_changes_submitted_fields_only(service, repository, encoder):
    created = await service.create_user(_body(profile={"firstName": "Alice", "lastName": "Liddell"}))
    user_id = created.location_id

    result = await service.update_user(
        user_id,
        _body(email="alice@example.org", plainPassword="newsecret", profile={"lastName": "Smith"}),
    )

    assert result.kind is ResultKind.OK
    assert result.status_code == 200
    assert result.payload == {"success": "User data modify successfully."}
    assert result.location_id == user_id

    user = await repository.find_by_id(user_id)
    assert user.id == user_id
    assert user.username == "alice"
    assert user.email == "alice@example.org"
    assert user.first_name == "Alice"
    assert user.last_name == "Smith"
    assert encoder.verify("newsecret", user.password)


@pytest.mark.asyncio
async def test_update_user_keeps_profile_when_absent(service, repository):
    created = await service.create_user(_body(profile={"firstName": "Alice"}))

    await service.update_user(created.location_id, _body(username="alice2"))

    user = await repository.find_by_id(created.location_id)
    assert user.username == "alice2"
    assert user.first_name == "Alice"


@pytest.mark.asyncio
async def test_update_user_ignores_body_identifier(service, repository):
    created = await service.create_user(_body())

    result = await service.update_user(created.location_id, _body(id=77))

    assert result.ok
    assert await repository.find_by_id(77) is None


@pytest.mark.asyncio
async def test_update_unknown_user_is_not_found(service):
    result = await service.update_user(5, b"{}")

    assert result.kind is ResultKind.NOT_FOUND
    assert result.payload == {"error": "No user found with id 5"}


@pytest.mark.asyncio
async def test_update_user_validation_leaves_user_untouched(service, repository):
    created = await service.create_user(_body())
    await service.create_user(_body(username="bob", email="bob@example.com"))

    result = await service.update_user(created.location_id, _body(username="bob"))

    assert result.kind is ResultKind.VALIDATION_FAILED
    assert result.payload["notValidFields"] == {"username": [USERNAME_TAKEN_MESSAGE]}
    user = await repository.find_by_id(created.location_id)
    assert user.username == "alice"


@pytest.mark.asyncio
async def test_delete_then_get_is_not_found(service):
    created = await service.create_user(_body())

    deleted = await service.delete_user(created.location_id)
    fetched = await service.get_user(created.location_id)

    assert deleted.payload == {"success": "The user has been deleted."}
    assert deleted.status_code == 200
    assert fetched.kind is ResultKind.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_unknown_user_is_not_found(service):
    result = await service.delete_user(999)

    assert result.status_code == 404
    assert result.payload == {"error": "No user found with id 999"}


@pytest.mark.asyncio
async def test_create_failure_hides_store_error(encoder, validator):
    service = UserService(BrokenRepository(OperationalError("INSERT", {}, Exception("disk I/O error"))), encoder, validator)

    result = await service.create_user(_body(username="zed", email="zed@example.com"))

    assert result.kind is ResultKind.FAILURE
    assert result.status_code == 500
    assert result.payload == {"error": CREATE_FAILED_MESSAGE}


@pytest.mark.asyncio
async def test_update_failure_propagates_status_code(encoder, validator):
    service = UserService(BrokenRepository(UserStoreError("User is locked", status_code=409)), encoder, validator)

    result = await service.update_user(1, _body())

    assert result.kind is ResultKind.FAILURE
    assert result.status_code == 409
    assert result.payload == {"error": "User is locked"}


@pytest.mark.asyncio
async def test_delete_failure_defaults_to_500(encoder, validator):
    service = UserService(BrokenRepository(RuntimeError("connection reset")), encoder, validator)

    result = await service.delete_user(1)

    assert result.kind is ResultKind.FAILURE
    assert result.status_code == 500
    assert result.payload == {"error": "connection reset"}


class UncheckedRepository(UserRepository):
    """Real store whose uniqueness lookups always miss, leaving the constraint to the database."""

    async def find_by_username(self, username):
        return None

    async def find_by_email(self, email):
        return None


@pytest.mark.asyncio
async def test_update_conflict_in_store_is_409(db_session, encoder, validator):
    service = UserService(UncheckedRepository(db_session), encoder, validator)
    await service.create_user(_body())
    created = await service.create_user(_body(username="bob", email="bob@example.com"))

    result = await service.update_user(created.location_id, _body(username="alice", email="bob@example.com"))

    assert result.kind is ResultKind.FAILURE
    assert result.status_code == 409
    assert result.payload == {"error": CONFLICT_MESSAGE}


@pytest.mark.asyncio
async def test_create_conflict_in_store_is_generic_failure(db_session, encoder, validator):
    service = UserService(UncheckedRepository(db_session), encoder, validator)
    await service.create_user(_body())

    result = await service.create_user(_body())

    assert result.status_code == 500
    assert result.payload == {"error": CREATE_FAILED_MESSAGE}


@pytest.mark.asyncio
async def test_password_longer_than_bcrypt_limit_is_rejected(repository, validator):
    service = UserService(repository, PasswordEncoder(["bcrypt"]), validator)

    result = await service.create_user(_body(plainPassword="x" * 73))

    assert result.kind is ResultKind.VALIDATION_FAILED
    assert result.payload["notValidFields"] == {
        "plainPassword": ["This value is too long. It should have 72 bytes or less."],
    }
    assert await repository.find_all() == []


@pytest.mark.asyncio
async def test_password_limit_counts_utf8_bytes(repository, validator):
    service = UserService(repository, PasswordEncoder(["bcrypt"]), validator)

    result = await service.create_user(_body(plainPassword="é" * 37))

    assert "plainPassword" in result.payload["notValidFields"]
