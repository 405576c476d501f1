"""SQLAlchemy persistence layer: engine, sessions and table mappings."""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, create_engine
from sqlalchemy import Enum as SAEnum
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from tablekeeper.config import get_config
from tablekeeper.errors import PersistenceError
from tablekeeper.models.employee import EmployeeRole, EmployeeStatus
from tablekeeper.models.reservation import ReservationStatus
from tablekeeper.models.settings import DEFAULT_CLOSING_TIME, DEFAULT_OPENING_TIME
from tablekeeper.models.table import TableStatus

logger = logging.getLogger(__name__)

SETTINGS_ID = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_column(enum_cls):
    return SAEnum(
        enum_cls,
        values_callable=lambda obj: [e.value for e in obj],
        native_enum=False,
        length=16,
    )


class Base(DeclarativeBase):
    pass


class TableRecord(Base):
    __tablename__ = "restaurant_tables"

    id: Mapped[int] = mapped_column(primary_key=True)
    number: Mapped[int] = mapped_column(unique=True, nullable=False)
    capacity: Mapped[int] = mapped_column(nullable=False)
    status: Mapped[TableStatus] = mapped_column(
        _enum_column(TableStatus), default=TableStatus.AVAILABLE, nullable=False
    )


class ReservationRecord(Base):
    __tablename__ = "reservations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    guests: Mapped[int] = mapped_column(nullable=False)
    remark: Mapped[str | None] = mapped_column(Text)
    status: Mapped[ReservationStatus] = mapped_column(
        _enum_column(ReservationStatus),
        default=ReservationStatus.PENDING,
        nullable=False,
        index=True,
    )
    table_id: Mapped[int | None] = mapped_column(
        ForeignKey("restaurant_tables.id"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow
    )

    table: Mapped[TableRecord | None] = relationship()


class EmployeeRecord(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    role: Mapped[EmployeeRole] = mapped_column(
        _enum_column(EmployeeRole), default=EmployeeRole.WAITER, nullable=False
    )
    status: Mapped[EmployeeStatus] = mapped_column(
        _enum_column(EmployeeStatus), default=EmployeeStatus.PENDING, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )


class UsedLoginTokenRecord(Base):
    """Magic link token ids that have already been exchanged."""

    __tablename__ = "used_login_tokens"

    jti: Mapped[str] = mapped_column(String(32), primary_key=True)
    email: Mapped[str] = mapped_column(String(120), nullable=False)
    used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )


class SettingsRecord(Base):
    """Singleton settings row (id=1)."""

    __tablename__ = "restaurant_settings"

    id: Mapped[int] = mapped_column(primary_key=True, default=SETTINGS_ID)
    opening_time: Mapped[str] = mapped_column(
        String(5), nullable=False, default=DEFAULT_OPENING_TIME
    )
    closing_time: Mapped[str] = mapped_column(
        String(5), nullable=False, default=DEFAULT_CLOSING_TIME
    )
    closed_dates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow
    )


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, url: str | None = None) -> None:
        self.url = url or get_config().database_url

        engine_kwargs: dict = {}
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection so every session sees the same in-memory DB
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )
        logger.info(f"Database engine created for {self.engine.url.render_as_string()}")

    def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ensured")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Run a unit of work in one transaction.

        Commits on success and rolls back on any error. SQLAlchemy failures are
        re-raised as PersistenceError carrying the driver message.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error, transaction rolled back: {e}")
            raise PersistenceError(str(e.orig) if getattr(e, "orig", None) else str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


# Global database instance
_database: Database | None = None


def get_database() -> Database:
    """Get or create the global Database instance."""
    global _database
    if _database is None:
        _database = Database()
    return _database
