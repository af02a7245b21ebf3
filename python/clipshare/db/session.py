"""Database sessions, the transaction helper and conflict-tolerant inserts.

Services never commit inside repository primitives; top-level operations wrap
their writes in ``with transaction(db):``.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from clipshare.db.engine import get_engine


def create_session_factory(engine: Any = None) -> sessionmaker[Session]:
    """Session factory bound to ``engine`` (the configured engine if None).

    Objects stay usable after commit so services can present what they wrote.
    """
    if engine is None:
        engine = get_engine()

    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


_SessionLocal: sessionmaker[Session] | None = None


def get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = create_session_factory()
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is closed after the request."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Generator[None, None, None]:
    """Commit on success; roll back and re-raise on any exception."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


def insert_for(db: Session, model: Any):
    """INSERT construct for the session's dialect.

    Both the PostgreSQL and SQLite constructs support
    ``on_conflict_do_nothing`` / ``on_conflict_do_update``, which lets
    concurrent writers of the same unique key both succeed.
    """
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)
