from __future__ import annotations
import threading
from typing import Dict, List, Optional
from demogen.core.errors import NotFoundError
from demogen.schemas.demos import Demo


class InMemoryDemoStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._demos: Dict[str, Demo] = {}

    async def create(self, demo: Demo) -> Demo:
        with self._lock:
            if demo.demo_id in self._demos:
                raise ValueError(f"Demo {demo.demo_id} already exists")
            self._demos[demo.demo_id] = demo.model_copy(deep=True)
        return demo.model_copy(deep=True)

    async def get(self, demo_id: str) -> Optional[Demo]:
        with self._lock:
            demo = self._demos.get(demo_id)
            return demo.model_copy(deep=True) if demo else None

    async def update(self, demo: Demo) -> Demo:
        with self._lock:
            if demo.demo_id not in self._demos:
                raise NotFoundError(f"Demo {demo.demo_id} not found")
            self._demos[demo.demo_id] = demo.model_copy(deep=True)
        return demo

    async def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._demos)
