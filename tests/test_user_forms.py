from conftest import make_payload
from userdesk.user_management.forms import (
    BLANK_MESSAGE,
    NOT_AN_OBJECT_MESSAGE,
    FormValidator,
    UserForm,
)


def test_valid_body_binds_onto_form(validator):
    submission = validator.submit(make_payload(profile={"firstName": "Alice"}))

    assert submission.is_valid
    form = submission.form
    assert isinstance(form, UserForm)
    assert form.username == "alice"
    assert form.plain_password == "secret123"
    assert form.profile.first_name == "Alice"
    assert form.profile.model_fields_set == {"first_name"}


def test_raw_json_body_is_decoded(validator):
    submission = validator.submit(b'{"username": "bob", "email": "bob@example.com", "plainPassword": "hunter22"}')

    assert submission.is_valid
    assert submission.form.email == "bob@example.com"


def test_unknown_fields_are_ignored(validator):
    submission = validator.submit(make_payload(id=42, password="$2b$leaked", isAdmin=True))

    assert submission.is_valid
    assert not hasattr(submission.form, "id")


def test_empty_body_reports_every_required_field(validator):
    submission = validator.submit(b"{}")

    assert not submission.is_valid
    assert validator.collect_errors(submission) == {
        "username": [BLANK_MESSAGE],
        "email": [BLANK_MESSAGE],
        "plainPassword": [BLANK_MESSAGE],
    }


def test_undecodable_body_submits_an_empty_form(validator):
    errors = validator.collect_errors(validator.submit(b"{not json"))

    assert set(errors) == {"username", "email", "plainPassword"}


def test_non_object_json_adds_a_form_level_error(validator):
    errors = validator.collect_errors(validator.submit(b"[1, 2]"))

    assert errors["0"] == NOT_AN_OBJECT_MESSAGE
    assert "username" in errors


def test_blank_values_are_reported_as_blank(validator):
    errors = validator.collect_errors(
        validator.submit(make_payload(username="", plainPassword=None, email="  "))
    )

    assert errors == {
        "username": [BLANK_MESSAGE],
        "email": [BLANK_MESSAGE],
        "plainPassword": [BLANK_MESSAGE],
    }


def test_format_constraints(validator):
    errors = validator.collect_errors(
        validator.submit(make_payload(username="bad name", email="not-an-email", plainPassword="abc"))
    )

    assert errors["username"] == ["Username can only contain letters, numbers, underscores, dots and dashes."]
    assert errors["email"] == ["This value is not a valid email address."]
    assert errors["plainPassword"] == ["This value is too short. It should have 6 characters or more."]


def test_nested_profile_errors_are_keyed_by_sub_field(validator):
    errors = validator.collect_errors(
        validator.submit(make_payload(profile={"firstName": "x" * 101, "lastName": "Smith"}))
    )

    assert errors == {
        "profile": {
            "firstName": ["This value is too long. It should have 100 characters or less."],
        }
    }


def test_profile_must_be_an_object(validator):
    errors = validator.collect_errors(validator.submit(make_payload(profile="Alice")))

    assert errors == {"profile": ["This value should be of type object."]}


def test_extra_errors_join_the_tree(validator):
    submission = validator.submit(make_payload())
    submission.add_error(("email",), "There is already an account with this email")

    assert not submission.is_valid
    assert validator.collect_errors(submission) == {
        "email": ["There is already an account with this email"],
    }


def test_validator_is_reusable_across_submissions():
    validator = FormValidator(UserForm)

    first = validator.submit(b"{}")
    second = validator.submit(make_payload())

    assert not first.is_valid
    assert second.is_valid
    assert second.violations == []


def test_username_with_trailing_newline_is_rejected(validator):
    errors = validator.collect_errors(validator.submit(make_payload(username="alice\n")))

    assert errors == {
        "username": ["Username can only contain letters, numbers, underscores, dots and dashes."],
    }


def test_deeply_nested_body_submits_an_empty_form(validator):
    errors = validator.collect_errors(validator.submit(b"[" * 100000))

    assert set(errors) == {"username", "email", "plainPassword"}
