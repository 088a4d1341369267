"""Database engine and session factory.

The engine is built lazily on first use so the package (and the test
suite) imports without DATABASE_URL. Sessions keep loaded attributes after
commit: repositories convert rows to DTOs once and never lazy-load.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_database_url


def create_db_engine(url: str | None = None) -> Engine:
    return create_engine(
        url or get_database_url(),
        pool_pre_ping=True,
        future=True,
    )


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    return make_session_factory(get_engine())
