"""Database connection and session management."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection settings.

    Loaded from environment variables with the DATABASE_ prefix, except the
    password which keeps its own APP_DB_PASSWORD name.

    :param host: Database host.
    :param port: Database port.
    :param user: Login role.
    :param password: Login password.
    :param name: Database name.
    :param pool_size: Connections kept open per process.
    :param statement_timeout_ms: Server-side limit for a single statement.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = Field(..., description="Database host")
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = Field(default="app")
    password: str = Field(..., validation_alias="APP_DB_PASSWORD")
    name: str = Field(default="schedule_reminders")
    pool_size: int = Field(default=5, ge=1, le=50)
    # Must stay well under the one-minute tick
    statement_timeout_ms: int = Field(default=15_000, ge=0)


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    :returns: Configured DatabaseSettings instance.
    """
    return DatabaseSettings()  # type: ignore[call-arg]


def get_database_url(settings: DatabaseSettings | None = None) -> URL:
    """Build the PostgreSQL database URL.

    :param settings: Connection settings. Loaded from the environment if omitted.
    :returns: The database connection URL.
    """
    settings = settings or get_database_settings()
    return URL.create(
        "postgresql+psycopg2",
        username=settings.user,
        password=settings.password,
        host=settings.host,
        port=settings.port,
        database=settings.name,
    )


def create_db_engine(*, echo: bool = False, settings: DatabaseSettings | None = None) -> Engine:
    """Create a SQLAlchemy engine for the database.

    :param echo: If True, log all SQL statements.
    :param settings: Connection settings. Loaded from the environment if omitted.
    :returns: A configured SQLAlchemy engine.
    """
    settings = settings or get_database_settings()
    connect_args = {}
    if settings.statement_timeout_ms:
        connect_args["options"] = f"-c statement_timeout={settings.statement_timeout_ms}"

    return create_engine(
        get_database_url(settings),
        echo=echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        connect_args=connect_args,
    )


@dataclass
class _DatabaseState:
    """Lazily created engine and session factory, shared by the process."""

    engine: Engine | None = field(default=None)
    session_factory: sessionmaker[Session] | None = field(default=None)


_state = _DatabaseState()


def get_engine() -> Engine:
    """Get or create the database engine singleton.

    :returns: The database engine.
    """
    if _state.engine is None:
        _state.engine = create_db_engine()
    return _state.engine


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the session factory singleton.

    :returns: A sessionmaker bound to the database engine.
    """
    if _state.session_factory is None:
        _state.session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _state.session_factory


@contextmanager
def get_session() -> Iterator[Session]:
    """Open a session that commits on success and rolls back on error.

    Sent-reminder markers are written through their own short sessions, so
    a marker commits as soon as its reminder is delivered.

    :yields: A database session.
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()

    except Exception:
        session.rollback()
        raise

    finally:
        session.close()
