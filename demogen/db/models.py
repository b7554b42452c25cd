from __future__ import annotations
from datetime import datetime
from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from demogen.db.session import Base


class DemoRecord(Base):
    __tablename__ = "demos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(String(100), nullable=False, default="anonymous")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Full Demo record as JSON; status/created_by are duplicated for querying.
    payload: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
