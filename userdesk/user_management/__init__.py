"""
User Management Module

User CRUD over the ``/api/users`` resource:
- forms: request body schema and field-error collection
- security: password encoding
- service: the list/get/create/update/delete operations
- routes: FastAPI router
"""

# Routes are imported where needed to avoid circular imports with dependencies.py
from .forms import FormValidator, UserForm
from .models import FormValidationError, ResultKind, UserResult
from .security import PasswordEncoder
from .service import UserService

__all__ = [
    "FormValidator",
    "UserForm",
    "FormValidationError",
    "ResultKind",
    "UserResult",
    "PasswordEncoder",
    "UserService",
]
