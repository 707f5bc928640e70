"""Persistence: ORM models, engine/session factory and marker store."""

from realmtick.store.database import (
    MetaStore,
    create_db_engine,
    init_schema,
    make_session_factory,
)
from realmtick.store.models import Base

__all__ = ["Base", "MetaStore", "create_db_engine", "init_schema", "make_session_factory"]
