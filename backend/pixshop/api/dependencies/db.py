"""Database session dependency."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from pixshop.db.session import session_scope


def get_session(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency that yields a managed SQLAlchemy session."""
    yield from session_scope(request.app.state.session_factory)
