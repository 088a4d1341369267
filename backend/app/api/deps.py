"""API dependencies.

- One database session per request, closed afterwards.
- The bearer token is resolved into an `Actor` here; routes never read
  claims or headers themselves.
- Per-actor hourly request budget.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.db import get_session_factory
from app.security.auth import Principal, get_current_principal, maybe_get_principal
from app.security.policy import Actor
from app.security.rate_limit import LIMITER
from app.services.contract_service import ContractService
from app.services.structure_service import StructureService
from app.services.user_service import UserService


def get_db_session() -> Generator[Session, None, None]:
    """Provide a database session for request scope."""
    session: Session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def get_current_actor(principal: Principal = Depends(get_current_principal)) -> Actor:
    return principal.actor


def get_optional_actor(request: Request) -> Optional[Actor]:
    principal = maybe_get_principal(request)
    return principal.actor if principal is not None else None


def enforce_rate_limit(actor: Actor = Depends(get_current_actor)) -> None:
    """Enforce the per-actor hourly request budget."""
    LIMITER.check(actor.identity)


def get_structure_service(db: Session = Depends(get_db_session)) -> StructureService:
    return StructureService(db)


def get_contract_service(db: Session = Depends(get_db_session)) -> ContractService:
    return ContractService(db)


def get_user_service(db: Session = Depends(get_db_session)) -> UserService:
    return UserService(db)
