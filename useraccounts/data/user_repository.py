"""
User Repository

Persistence for user documents. The storage layer owns the unique index on
``email``; a violation surfaces as ``Conflict`` no matter which check the
service ran beforehand.
"""
import abc
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from useraccounts.core.errors import ApiError, Conflict, Infrastructure
from useraccounts.database import SessionLocal, init_schema
from useraccounts.models.user import User

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "Email already in use!"
DATABASE_UNAVAILABLE = "Database unavailable. Verify DATABASE_URL and database credentials."
WRITE_REJECTED = "Database rejected the user record."

FILTERABLE_FIELDS = ("name", "email", "role")
UPDATABLE_FIELDS = ("name", "email", "password", "role")


def _is_email_violation(exc: IntegrityError) -> bool:
    # SQLite names the column (users.email), Postgres the index (ix_users_email).
    message = str(exc.orig).lower()
    return "email" in message and ("unique" in message or "duplicate" in message)


class UserRepository(abc.ABC):
    """Document-style access to user records."""

    @abc.abstractmethod
    async def create(self, document: Dict[str, Any]) -> User:
        """Insert a user and return it with its assigned id."""

    @abc.abstractmethod
    async def find(self, filter: Dict[str, Any]) -> List[User]:
        """Return users whose fields equal every value in ``filter``."""

    @abc.abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    @abc.abstractmethod
    async def find_by_id_and_update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        """Apply ``changes`` in one write and return the updated user, or None if absent."""

    @abc.abstractmethod
    async def find_by_id_and_delete(self, user_id: str) -> Optional[User]:
        """Remove the user and return it, or None if absent."""

    @abc.abstractmethod
    async def delete_many(self, filter: Dict[str, Any]) -> int:
        """Remove matching users and return how many were removed."""

    def init_schema(self) -> None:
        """Prepare storage before first use. Nothing to do by default."""


class SqlUserRepository(UserRepository):
    """``UserRepository`` backed by a SQLAlchemy session factory.

    Sessions are synchronous, so each call runs in the threadpool.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def init_schema(self) -> None:
        with self._session() as db:
            init_schema(bind=db.get_bind())

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            if _is_email_violation(exc):
                logger.info("Unique email constraint rejected a user write: %s", exc.orig)
                raise Conflict(EMAIL_IN_USE) from exc
            logger.exception("Integrity constraint rejected a user write")
            raise ApiError(WRITE_REJECTED) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("User repository operation failed")
            raise Infrastructure(DATABASE_UNAVAILABLE) from exc
        finally:
            db.close()

    @staticmethod
    def _apply_filter(query, filter: Dict[str, Any]):
        for field in FILTERABLE_FIELDS:
            if field in filter:
                query = query.filter(getattr(User, field) == filter[field])
        return query

    async def create(self, document: Dict[str, Any]) -> User:
        return await run_in_threadpool(self._create, document)

    def _create(self, document: Dict[str, Any]) -> User:
        with self._session() as db:
            user = User(**{field: document[field] for field in UPDATABLE_FIELDS if field in document})
            db.add(user)
            db.commit()
            db.refresh(user)
            return user

    async def find(self, filter: Dict[str, Any]) -> List[User]:
        return await run_in_threadpool(self._find, filter)

    def _find(self, filter: Dict[str, Any]) -> List[User]:
        with self._session() as db:
            return self._apply_filter(db.query(User), filter).all()

    async def find_by_id(self, user_id: str) -> Optional[User]:
        return await run_in_threadpool(self._find_by_id, user_id)

    def _find_by_id(self, user_id: str) -> Optional[User]:
        with self._session() as db:
            return db.get(User, user_id)

    async def find_by_id_and_update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        return await run_in_threadpool(self._find_by_id_and_update, user_id, changes)

    def _find_by_id_and_update(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                return None
            for field in UPDATABLE_FIELDS:
                if field in changes:
                    setattr(user, field, changes[field])
            db.commit()
            db.refresh(user)
            return user

    async def find_by_id_and_delete(self, user_id: str) -> Optional[User]:
        return await run_in_threadpool(self._find_by_id_and_delete, user_id)

    def _find_by_id_and_delete(self, user_id: str) -> Optional[User]:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                return None
            db.delete(user)
            db.commit()
            return user

    async def delete_many(self, filter: Dict[str, Any]) -> int:
        return await run_in_threadpool(self._delete_many, filter)

    def _delete_many(self, filter: Dict[str, Any]) -> int:
        with self._session() as db:
            deleted = self._apply_filter(db.query(User), filter).delete(synchronize_session=False)
            db.commit()
            return deleted
