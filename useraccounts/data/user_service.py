"""
User Service

Validation and persistence rules for user accounts. Checks run in a fixed
order and the first failing one is the only one reported.
"""
import logging
from typing import Any, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from useraccounts.auth.passwords import PasswordHasher
from useraccounts.core.errors import Conflict, InvalidInput, NotFound
from useraccounts.data import validation
from useraccounts.data.user_repository import EMAIL_IN_USE, UserRepository
from useraccounts.models.user import User

logger = logging.getLogger(__name__)

RESOURCE_NOT_FOUND = "Resource not found!"


def _check(result: validation.ValidationResult) -> None:
    if not result:
        raise InvalidInput(result.reason)


class UserService:
    """Create, read, update and delete user accounts."""

    def __init__(self, repository: UserRepository, hasher: Optional[PasswordHasher] = None):
        self.repository = repository
        self.hasher = hasher or PasswordHasher()

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(self.hasher.hash, password)

    async def create(
        self,
        name: Any,
        email: Any,
        password: Any,
        role: Any = None,
    ) -> User:
        """Return the created user.

        Raises InvalidInput for a bad name, email, password or role and
        Conflict when the email belongs to another account.
        """
        logger.debug("Validating the name..")
        _check(validation.validate_name(name))

        logger.debug("Validating the email..")
        _check(validation.validate_email(email))
        if await self.read_all(email=email):
            raise Conflict(EMAIL_IN_USE)

        logger.debug("Validating the password..")
        _check(validation.validate_password(password))
        digest = await self._hash(password)

        document: Dict[str, Any] = {"name": name, "email": email, "password": digest}
        if role is not None:
            logger.debug("Validating the role..")
            _check(validation.validate_role(role))
            document["role"] = role

        logger.debug("Creating the user document..")
        return await self.repository.create(document)

    async def read_all(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> List[User]:
        filter: Dict[str, Any] = {}
        if name:
            filter["name"] = name
        if email:
            filter["email"] = email
        if role:
            filter["role"] = role

        logger.debug("Reading all user documents..")
        return await self.repository.find(filter)

    async def read(self, user_id: Any) -> User:
        logger.debug("Validating the document id..")
        _check(validation.validate_identifier(user_id))

        logger.debug("Reading the user document..")
        user = await self.repository.find_by_id(user_id)
        if user is None:
            raise NotFound(RESOURCE_NOT_FOUND)
        return user

    async def update(
        self,
        user_id: Any,
        name: Any = None,
        email: Any = None,
        password: Any = None,
        role: Any = None,
    ) -> User:
        """Return the updated user. Omitted (None) fields are left untouched."""
        logger.debug("Validating the document id..")
        _check(validation.validate_identifier(user_id))

        changes: Dict[str, Any] = {}
        if name is not None:
            logger.debug("Validating the name..")
            _check(validation.validate_name(name))
            changes["name"] = name

        if email is not None:
            logger.debug("Validating the email..")
            _check(validation.validate_email(email))
            holders = await self.read_all(email=email)
            if any(holder.id != user_id for holder in holders):
                raise Conflict(EMAIL_IN_USE)
            changes["email"] = email

        if password is not None:
            logger.debug("Validating the password..")
            _check(validation.validate_password(password))
            changes["password"] = await self._hash(password)

        if role is not None:
            logger.debug("Validating the role..")
            _check(validation.validate_role(role))
            changes["role"] = role

        logger.debug("Updating the user document..")
        user = await self.repository.find_by_id_and_update(user_id, changes)
        if user is None:
            raise NotFound(RESOURCE_NOT_FOUND)
        return user

    async def delete(self, user_id: Any) -> User:
        logger.debug("Validating the document id..")
        _check(validation.validate_identifier(user_id))

        logger.debug("Deleting the user document..")
        user = await self.repository.find_by_id_and_delete(user_id)
        if user is None:
            raise NotFound(RESOURCE_NOT_FOUND)
        return user

    async def delete_all(self) -> None:
        logger.debug("Deleting all user documents..")
        deleted = await self.repository.delete_many({})
        logger.info("Deleted %d user documents", deleted)
