"""
User Form

The form is the field-level schema used to bind a JSON request body onto a
user. The schema is a static tree of pydantic models; ``FormValidator``
submits a body to it and turns the resulting violations into the nested
field-error mapping returned to API clients.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Type, Union, get_args

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

BLANK_MESSAGE = "This value should not be blank."
NOT_AN_OBJECT_MESSAGE = "This form should be a JSON object."

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")

# pydantic error type -> client facing message template
ERROR_MESSAGES = {
    "missing": BLANK_MESSAGE,
    "string_too_short": "This value is too short. It should have {min_length} characters or more.",
    "string_too_long": "This value is too long. It should have {max_length} characters or less.",
    "string_type": "This value should be of type string.",
    "model_type": "This value should be of type object.",
    "model_attributes_type": "This value should be of type object.",
}

FieldErrors = Union[List[str], Dict[str, Any]]


class ProfileForm(BaseModel):
    """Optional profile sub-form."""

    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = Field(None, alias="firstName", max_length=100)
    last_name: Optional[str] = Field(None, alias="lastName", max_length=100)


class UserForm(BaseModel):
    """Registration form bound on create and update."""

    model_config = ConfigDict(extra="ignore")

    username: str = Field(..., min_length=3, max_length=80)
    email: str = Field(..., max_length=180)
    plain_password: str = Field(..., alias="plainPassword", min_length=6, max_length=4096)
    profile: Optional[ProfileForm] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not USERNAME_PATTERN.fullmatch(v):
            raise ValueError("Username can only contain letters, numbers, underscores, dots and dashes.")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v: str) -> str:
        if not v.strip():
            raise ValueError(BLANK_MESSAGE)
        try:
            return validate_email(v, check_deliverability=False).normalized
        except EmailNotValidError:
            raise ValueError("This value is not a valid email address.")


class Violation(NamedTuple):
    """One failed constraint: where it failed and what to tell the client."""
    path: Tuple[str, ...]
    message: str


@dataclass
class FormSubmission:
    """Outcome of submitting a body to a form."""
    form: Optional[BaseModel]
    violations: List[Violation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.form is not None and not self.violations

    def add_error(self, path: Tuple[str, ...], message: str) -> None:
        self.violations.append(Violation(tuple(path), message))


def _sub_form(annotation: Any) -> Optional[Type[BaseModel]]:
    """Return the nested form class behind a field annotation, if any."""
    candidates = get_args(annotation) or (annotation,)
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, BaseModel):
            return candidate
    return None


def _message_for(error: Dict[str, Any]) -> str:
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}

    if error_type in ("string_type", "string_too_short") and error.get("input") in (None, ""):
        return BLANK_MESSAGE
    if error_type == "value_error" and "error" in ctx:
        return str(ctx["error"])

    template = ERROR_MESSAGES.get(error_type)
    if template is None:
        return error.get("msg", "This value is not valid.")
    return template.format(**ctx)


class FormValidator:
    """
    Submits request bodies to a form schema and collects field errors.

    A validator is built once per schema and shared between requests; it
    holds no per-request state.
    """

    def __init__(self, schema: Type[BaseModel] = UserForm):
        self.schema = schema

    def decode(self, body: Union[bytes, str, None]) -> Tuple[Dict[str, Any], List[Violation]]:
        """
        Decode a raw JSON body into form data.

        Undecodable bodies submit an empty form; valid JSON that is not an
        object also gets a form-level error.
        """
        if body is None or body in (b"", ""):
            return {}, []
        try:
            data = json.loads(body)
        except (ValueError, UnicodeDecodeError, RecursionError):
            logger.debug("Request body is not valid JSON, submitting an empty form")
            return {}, []
        if data is None:
            return {}, []
        if not isinstance(data, dict):
            return {}, [Violation((), NOT_AN_OBJECT_MESSAGE)]
        return data, []

    def submit(self, body: Union[bytes, str, Dict[str, Any], None]) -> FormSubmission:
        """Bind ``body`` onto the schema and validate it."""
        if isinstance(body, dict):
            data, violations = body, []
        else:
            data, violations = self.decode(body)

        try:
            form = self.schema.model_validate(data)
        except ValidationError as exc:
            for error in exc.errors():
                path = tuple(str(part) for part in error.get("loc", ()))
                violations.append(Violation(path, _message_for(error)))
            return FormSubmission(form=None, violations=violations)

        return FormSubmission(form=form, violations=violations)

    def collect_errors(self, submission: FormSubmission) -> FieldErrors:
        """Build the nested field-error mapping for a submission."""
        return self._collect(self.schema, submission.violations, ())

    def _collect(
        self,
        schema: Type[BaseModel],
        violations: List[Violation],
        path: Tuple[str, ...],
    ) -> FieldErrors:
        own = [v.message for v in violations if v.path == path]

        children: Dict[str, Any] = {}
        for name, model_field in schema.model_fields.items():
            key = model_field.alias or name
            child_path = path + (key,)
            sub_schema = _sub_form(model_field.annotation)
            if sub_schema is not None:
                child_errors = self._collect(sub_schema, violations, child_path)
            else:
                child_errors = [
                    v.message for v in violations
                    if v.path[:len(child_path)] == child_path
                ]
            if child_errors:
                children[key] = child_errors

        if not children:
            return own

        tree: Dict[str, Any] = {str(index): message for index, message in enumerate(own)}
        tree.update(children)
        return tree
