"""Base model configuration."""
import re
import secrets
from datetime import UTC, datetime
from typing import Generator

from sqlalchemy import Column, DateTime, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from linguaquiz.config import settings

OBJECT_ID_PATTERN = re.compile(r"[0-9a-f]{24}")


def _engine_options(url: str) -> dict:
    """Keep a single shared connection for in-memory SQLite databases."""
    if url.startswith("sqlite") and (url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {}


# Create SQLAlchemy engine
engine = create_engine(
    settings.database.url,
    echo=settings.database.echo,
    **_engine_options(settings.database.url),
)


@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key cascades on SQLite."""
    if engine.dialect.name != "sqlite":
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


def new_object_id() -> str:
    """Generate an opaque 24-character lowercase hex identifier."""
    return secrets.token_hex(12)


def is_valid_object_id(value: object) -> bool:
    """Check that a value is a 24-character lowercase hex identifier."""
    return isinstance(value, str) and OBJECT_ID_PATTERN.fullmatch(value) is not None


def utcnow() -> datetime:
    """Current timezone-aware UTC time."""
    return datetime.now(UTC)


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database."""
    from linguaquiz.models import models  # noqa: F401  register tables

    Base.metadata.create_all(bind=engine)  # Create tables if they don't exist


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from databases without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
