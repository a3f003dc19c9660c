from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from site_tracker.core.config import settings


class Base(DeclarativeBase):
    """Declarative base for inventory, PMR and catalog tables."""


engine_kwargs: dict = {}
if settings.database_url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_pre_ping"] = True

engine = create_engine(settings.database_url, echo=False, future=True, **engine_kwargs)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db():
    """Provide a request-scoped session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
