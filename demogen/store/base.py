from __future__ import annotations
from typing import List, Optional, Protocol
from demogen.schemas.demos import Demo


class DemoStore(Protocol):
    """Keyed Demo records. Implementations return copies; callers persist with update()."""

    async def create(self, demo: Demo) -> Demo:
        ...

    async def get(self, demo_id: str) -> Optional[Demo]:
        ...

    async def update(self, demo: Demo) -> Demo:
        ...

    async def list_ids(self) -> List[str]:
        ...
