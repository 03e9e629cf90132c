"""
User Management Result Models

Value types handed from the user service to the API layer. Operations never
raise for expected failures; they return a ``UserResult`` tagged with a
``ResultKind`` that the routes translate into an HTTP response.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ResultKind(str, Enum):
    """Outcome of a user operation."""
    OK = "ok"
    CREATED = "created"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


@dataclass
class FormValidationError:
    """Field-level validation failures for one submitted form."""
    message: str
    fields_errors: Union[List[str], Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "notValidFields": self.fields_errors,
        }


@dataclass
class UserResult:
    """Explicit result of a user operation."""
    kind: ResultKind
    status_code: int
    payload: Any
    location_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind in (ResultKind.OK, ResultKind.CREATED)

    @classmethod
    def success(cls, payload: Any, status_code: int = 200, location_id: Optional[int] = None) -> "UserResult":
        kind = ResultKind.CREATED if status_code == 201 else ResultKind.OK
        return cls(kind=kind, status_code=status_code, payload=payload, location_id=location_id)

    @classmethod
    def not_found(cls, user_id: int) -> "UserResult":
        return cls(
            kind=ResultKind.NOT_FOUND,
            status_code=404,
            payload={"error": f"No user found with id {user_id}"},
        )

    @classmethod
    def invalid(cls, error: FormValidationError, status_code: int) -> "UserResult":
        return cls(
            kind=ResultKind.VALIDATION_FAILED,
            status_code=status_code,
            payload=error.to_dict(),
        )

    @classmethod
    def failure(cls, message: str, status_code: int = 500) -> "UserResult":
        return cls(kind=ResultKind.FAILURE, status_code=status_code, payload={"error": message})
