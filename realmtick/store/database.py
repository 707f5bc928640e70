"""Engine, session factory and the WorldMeta marker store."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from realmtick.store.models import Base, WorldMeta

logger = logging.getLogger(__name__)

SessionFactory = sessionmaker[Session]


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine. In-memory SQLite shares one connection across threads."""
    kwargs: dict = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in url:
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    if url.startswith("sqlite") and "poolclass" not in kwargs:
        _begin_immediate(engine)
    return engine


def _begin_immediate(engine: Engine) -> None:
    """File SQLite: take the write lock at BEGIN so concurrent writers queue on the busy timeout."""

    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(engine: Engine) -> SessionFactory:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)
    logger.info("Schema ready on %s", engine.url.render_as_string(hide_password=True))


def ping(session_factory: SessionFactory) -> None:
    """Raise if the store cannot be reached."""
    with session_factory() as session:
        session.execute(text("SELECT 1"))


class MetaStore:
    """Typed accessors over the ``world_meta`` key/value table."""

    LAST_SUCCESS_AT = "last_success_at"
    LAST_TICK_DAY = "last_tick_day"
    CLOCK_OFFSET_DAYS = "clock_offset_days"

    __slots__ = ("_session_factory",)

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        with self._session_factory() as session:
            row = session.get(WorldMeta, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            row = session.get(WorldMeta, key)
            if row is None:
                session.add(WorldMeta(key=key, value=value))
            else:
                row.value = value
            session.commit()

    def last_success_at(self) -> datetime | None:
        raw = self.get(self.LAST_SUCCESS_AT)
        return datetime.fromisoformat(raw) if raw else None

    def last_tick_day(self) -> int | None:
        raw = self.get(self.LAST_TICK_DAY)
        return int(raw) if raw is not None else None

    def clock_offset_days(self) -> int:
        raw = self.get(self.CLOCK_OFFSET_DAYS)
        return int(raw) if raw is not None else 0

    def set_clock_offset_days(self, days: int) -> None:
        self.set(self.CLOCK_OFFSET_DAYS, str(days))

    def record_success(self, finished_at: datetime, game_day: int) -> None:
        with self._session_factory() as session:
            for key, value in (
                (self.LAST_SUCCESS_AT, finished_at.isoformat()),
                (self.LAST_TICK_DAY, str(game_day)),
            ):
                row = session.get(WorldMeta, key)
                if row is None:
                    session.add(WorldMeta(key=key, value=value))
                else:
                    row.value = value
            session.commit()
