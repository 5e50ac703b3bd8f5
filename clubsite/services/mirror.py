"""Local mirror of every collection document.

The mirror keeps the full-fidelity (unsanitized) content so a reload on the
same deployment is complete even when the remote store is unreachable. It is
a cache: failures are logged and never abort a load or save.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from clubsite.extensions import db
from clubsite.models import MirrorEntry


class LocalMirror:
    """One JSON row per collection key in ``content_mirror``."""

    def get(self, key: str) -> Any:
        """Return the mirrored payload for ``key`` or ``None``."""
        try:
            entry = db.session.get(MirrorEntry, key)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to read local mirror for {key}: {e}")
            return None
        return entry.payload if entry is not None else None

    def set_many(self, payloads: Dict[str, Any]) -> bool:
        """Write several collections in one commit."""
        try:
            for key, payload in payloads.items():
                entry = db.session.get(MirrorEntry, key)
                if entry is None:
                    db.session.add(MirrorEntry(key=key, payload=payload))
                else:
                    entry.payload = payload
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to update local mirror: {e}")
            return False
        return True

    def set(self, key: str, payload: Any) -> bool:
        return self.set_many({key: payload})

    def keys(self) -> Iterable[str]:
        return list(db.session.execute(select(MirrorEntry.key)).scalars())

    def clear(self) -> int:
        """Delete every mirrored collection and return how many were removed."""
        try:
            removed = db.session.query(MirrorEntry).delete()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to clear local mirror: {e}")
            return 0
        return removed


__all__ = ['LocalMirror']
