"""Field rules for user documents.

Every rule is a pure function returning a ``ValidationResult``; none of them
touch storage. ``UserService`` decides the order they run in.
"""

import uuid
from dataclasses import dataclass
from typing import Any

from email_validator import EmailNotValidError
from email_validator import validate_email as parse_email_address

from useraccounts.models.user import UserRole

MIN_PASSWORD_LENGTH = 6

INVALID_NAME = "Invalid Name!"
INVALID_EMAIL = "Invalid Email!"
INVALID_PASSWORD = f"Password should be at least {MIN_PASSWORD_LENGTH} characters."
INVALID_ROLE = f"Role should be one of {','.join(UserRole.values())}"
INVALID_ID = "Invalid ID!"


@dataclass(frozen=True)
class ValidationResult:
    success: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.success


_PASS = ValidationResult(True)


def _fail(reason: str) -> ValidationResult:
    return ValidationResult(False, reason)


def validate_name(value: Any) -> ValidationResult:
    if not isinstance(value, str) or not value.strip():
        return _fail(INVALID_NAME)
    return _PASS


def validate_email(value: Any) -> ValidationResult:
    """Accept a bare address only: no display name, no surrounding whitespace."""
    if not isinstance(value, str) or value != value.strip():
        return _fail(INVALID_EMAIL)
    try:
        parse_email_address(value, check_deliverability=False, allow_display_name=False)
    except EmailNotValidError:
        return _fail(INVALID_EMAIL)
    return _PASS


def validate_password(value: Any) -> ValidationResult:
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        return _fail(INVALID_PASSWORD)
    return _PASS


def validate_role(value: Any) -> ValidationResult:
    if value not in UserRole.values():
        return _fail(INVALID_ROLE)
    return _PASS


def validate_identifier(value: Any) -> ValidationResult:
    """Ids are canonical lowercase UUID strings, as issued by the repository."""
    if not isinstance(value, str):
        return _fail(INVALID_ID)
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return _fail(INVALID_ID)
    if str(parsed) != value:
        return _fail(INVALID_ID)
    return _PASS
