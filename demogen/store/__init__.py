from __future__ import annotations
from demogen.core.config import Settings
from demogen.store.base import DemoStore
from demogen.store.memory import InMemoryDemoStore


def store_from_settings(settings: Settings) -> DemoStore:
    if settings.store_backend == "sql":
        from demogen.db.session import make_engine
        from demogen.store.sql import SqlDemoStore
        return SqlDemoStore(make_engine(settings.database_url))
    return InMemoryDemoStore()


__all__ = ["DemoStore", "InMemoryDemoStore", "store_from_settings"]
