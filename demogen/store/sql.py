from __future__ import annotations
import asyncio
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.engine import Engine
from demogen.core.errors import NotFoundError
from demogen.db.models import DemoRecord
from demogen.db.session import make_session_factory
from demogen.schemas.demos import Demo


class SqlDemoStore:
    """Demo store over the `demos` table. Blocking calls run in a worker thread."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.SessionLocal = make_session_factory(engine)

    def _create(self, demo: Demo) -> None:
        with self.SessionLocal() as db:
            db.add(DemoRecord(
                id=demo.demo_id,
                status=demo.status.value,
                created_by=demo.created_by,
                created_at=demo.created_at,
                updated_at=demo.updated_at,
                payload=demo.model_dump(mode="json"),
            ))
            db.commit()

    def _get(self, demo_id: str) -> Optional[Demo]:
        with self.SessionLocal() as db:
            record = db.get(DemoRecord, demo_id)
            return Demo.model_validate(record.payload) if record else None

    def _update(self, demo: Demo) -> None:
        with self.SessionLocal() as db:
            record = db.get(DemoRecord, demo.demo_id)
            if record is None:
                raise NotFoundError(f"Demo {demo.demo_id} not found")
            record.status = demo.status.value
            record.updated_at = demo.updated_at
            record.payload = demo.model_dump(mode="json")
            db.commit()

    def _list_ids(self) -> List[str]:
        with self.SessionLocal() as db:
            return list(db.scalars(select(DemoRecord.id).order_by(DemoRecord.created_at)))

    async def create(self, demo: Demo) -> Demo:
        await asyncio.to_thread(self._create, demo)
        return demo

    async def get(self, demo_id: str) -> Optional[Demo]:
        return await asyncio.to_thread(self._get, demo_id)

    async def update(self, demo: Demo) -> Demo:
        await asyncio.to_thread(self._update, demo)
        return demo

    async def list_ids(self) -> List[str]:
        return await asyncio.to_thread(self._list_ids)
