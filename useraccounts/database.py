from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from useraccounts.core import config


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are opened from worker threads.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=config.DEBUG, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

def build_session_factory(bind) -> sessionmaker:
    # Repository results outlive their session, so nothing expires on commit.
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


SessionLocal = build_session_factory(engine)

Base = declarative_base()


def init_schema(bind=None) -> None:
    # Registers the users table on Base.metadata.
    from useraccounts.models import user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
