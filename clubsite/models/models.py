from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from clubsite.extensions import db

JSONType = JSON().with_variant(JSONB, 'postgresql')


class MirrorEntry(db.Model):
    """Local copy of one collection document, kept for offline and fast reloads."""

    __tablename__ = 'content_mirror'

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[object] = mapped_column(JSONType, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<MirrorEntry {self.key}>"


__all__ = ['MirrorEntry', 'JSONType']
