"""
User Management Service Layer

List, fetch, create, update and delete users. Every operation catches its
own failures and returns a ``UserResult``; nothing raised by the form, the
encoder or the store escapes to the caller.
"""

import logging
from typing import Any, Dict, Optional, Union

from userdesk.database.models import User
from userdesk.database.repository import UserRepository
from userdesk.utils.logging_utils import log_user_action
from .forms import FormSubmission, FormValidator, UserForm
from .models import FormValidationError, UserResult
from .security import PasswordEncoder

logger = logging.getLogger(__name__)

VALIDATION_ERROR_MESSAGE = "There was a validation error"
CREATE_FAILED_MESSAGE = "An error occurred while creating the user"
USERNAME_TAKEN_MESSAGE = "There is already an account with this username"
EMAIL_TAKEN_MESSAGE = "There is already an account with this email"
PASSWORD_TOO_LONG_MESSAGE = "This value is too long. It should have {max_bytes} bytes or less."

Body = Union[bytes, str, Dict[str, Any], None]


def _status_of(exc: Exception) -> int:
    """Status carried by an error, 500 when it has none."""
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code < 600:
        return status_code
    return 500


class UserService:
    """Service class for user management operations."""

    def __init__(
        self,
        repository: UserRepository,
        encoder: PasswordEncoder,
        validator: FormValidator,
        form_error_status: int = 400,
    ):
        self.repository = repository
        self.encoder = encoder
        self.validator = validator
        self.form_error_status = form_error_status

    async def list_users(self) -> UserResult:
        """Return every stored user, without credentials."""
        try:
            users = await self.repository.find_all()
        except Exception as exc:
            logger.error(f"[UserService.list_users] ERROR: {exc}", exc_info=True)
            log_user_action("list_users", "failed", details=type(exc).__name__)
            return UserResult.failure("An error occurred while loading the users", _status_of(exc))

        return UserResult.success([user.to_dict() for user in users])

    async def get_user(self, user_id: int) -> UserResult:
        """Return one user, without credentials."""
        try:
            user = await self.repository.find_by_id(user_id)
        except Exception as exc:
            logger.error(f"[UserService.get_user] ERROR: {exc}", exc_info=True)
            log_user_action("get_user", "failed", user_id=user_id, details=type(exc).__name__)
            return UserResult.failure("An error occurred while loading the user", _status_of(exc))

        if user is None:
            return UserResult.not_found(user_id)
        return UserResult.success(user.to_dict())

    async def create_user(self, body: Body) -> UserResult:
        """Validate ``body`` and store it as a new user."""
        logger.debug("[UserService.create_user] submitting user form")

        try:
            user = User()
            submission = await self._submit(body, current=None)
            if not submission.is_valid:
                return self._invalid("create_user", submission)
            await self._persist(user, submission.form)
        except Exception as exc:
            logger.error(f"[UserService.create_user] ERROR: {exc}", exc_info=True)
            log_user_action("create_user", "failed", details=type(exc).__name__)
            return UserResult.failure(CREATE_FAILED_MESSAGE)

        log_user_action("create_user", user_id=user.id)
        return UserResult.success(
            {"success": "User added successfully"},
            status_code=201,
            location_id=user.id,
        )

    async def update_user(self, user_id: int, body: Body) -> UserResult:
        """Validate ``body`` and apply it to an existing user."""
        logger.debug(f"[UserService.update_user] user_id={user_id}")

        try:
            user = await self.repository.find_by_id(user_id)
            if user is None:
                log_user_action("update_user", "rejected", user_id=user_id, details="not found")
                return UserResult.not_found(user_id)

            submission = await self._submit(body, current=user)
            if not submission.is_valid:
                return self._invalid("update_user", submission, user_id)
            await self._persist(user, submission.form)
        except Exception as exc:
            logger.error(f"[UserService.update_user] ERROR: {exc}", exc_info=True)
            log_user_action("update_user", "failed", user_id=user_id, details=type(exc).__name__)
            return UserResult.failure(str(exc) or "An error occurred while updating the user", _status_of(exc))

        log_user_action("update_user", user_id=user_id)
        return UserResult.success(
            {"success": "User data modify successfully."},
            location_id=user.id,
        )

    async def delete_user(self, user_id: int) -> UserResult:
        """Remove a user."""
        logger.debug(f"[UserService.delete_user] user_id={user_id}")

        try:
            user = await self.repository.find_by_id(user_id)
            if user is None:
                log_user_action("delete_user", "rejected", user_id=user_id, details="not found")
                return UserResult.not_found(user_id)
            await self.repository.delete(user)
        except Exception as exc:
            logger.error(f"[UserService.delete_user] ERROR: {exc}", exc_info=True)
            log_user_action("delete_user", "failed", user_id=user_id, details=type(exc).__name__)
            return UserResult.failure(str(exc) or "An error occurred while deleting the user", _status_of(exc))

        log_user_action("delete_user", user_id=user_id)
        return UserResult.success({"success": "The user has been deleted."})

    async def _submit(self, body: Body, current: Optional[User]) -> FormSubmission:
        """Run the form, then the store uniqueness checks and the encoder password limit."""
        submission = self.validator.submit(body)
        if submission.form is None:
            return submission

        form = submission.form
        existing = await self.repository.find_by_username(form.username)
        if existing is not None and (current is None or existing.id != current.id):
            submission.add_error(("username",), USERNAME_TAKEN_MESSAGE)

        existing = await self.repository.find_by_email(form.email)
        if existing is not None and (current is None or existing.id != current.id):
            submission.add_error(("email",), EMAIL_TAKEN_MESSAGE)

        max_bytes = self.encoder.max_password_bytes
        if max_bytes is not None and len(form.plain_password.encode("utf-8")) > max_bytes:
            submission.add_error(
                ("plainPassword",),
                PASSWORD_TOO_LONG_MESSAGE.format(max_bytes=max_bytes),
            )

        return submission

    def _invalid(self, action: str, submission: FormSubmission, user_id: Optional[int] = None) -> UserResult:
        error = FormValidationError(
            message=VALIDATION_ERROR_MESSAGE,
            fields_errors=self.validator.collect_errors(submission),
        )
        fields = sorted({v.path[0] if v.path else "<form>" for v in submission.violations})
        log_user_action(action, "rejected", user_id=user_id, details=f"invalid fields: {', '.join(fields)}")
        return UserResult.invalid(error, self.form_error_status)

    async def _persist(self, user: User, form: UserForm) -> User:
        """Copy bound form data onto ``user``, encode the password and save."""
        user.username = form.username
        user.email = form.email

        # Absent optional fields leave stored values untouched
        if "profile" in form.model_fields_set:
            profile = form.profile
            if profile is None:
                user.first_name = None
                user.last_name = None
            else:
                if "first_name" in profile.model_fields_set:
                    user.first_name = profile.first_name
                if "last_name" in profile.model_fields_set:
                    user.last_name = profile.last_name

        user.password = self.encoder.encode(form.plain_password)
        return await self.repository.save(user)
