"""Outgoing views of user records.

Only the fields declared on ``UserResponse`` ever leave the service, so the
password digest is dropped from every payload.
"""

from typing import Any, Iterable

from pydantic import BaseModel

from useraccounts.models.user import User


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


def hide_password(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump()


def hide_passwords(users: Iterable[User]) -> list[dict]:
    return [hide_password(user) for user in users]


def envelope(status_code: int, message: str, data: Any = None) -> dict:
    body = {"status": status_code, "message": message}
    if data is not None:
        body["data"] = data
    return body
