from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base


class Database:
    """One engine plus its session factory.

    Built once at process start and disposed at shutdown; handed to whatever
    needs sessions instead of living at module level.
    """

    def __init__(self, url: str, **engine_kwargs) -> None:
        self.url = url
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
            if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
                engine_kwargs.setdefault("poolclass", StaticPool)
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.engine = create_engine(url, future=True, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        # Register every mapped table on Base.metadata.
        from app.db import models  # noqa: F401
        from app.events import outbox  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
