from __future__ import annotations

from datetime import datetime, timezone

"""Model definitions for textguard.

Text columns (``db.String``/``db.Text``) are picked up automatically by the
CodecTable at ``guard.init_app``; no per-field boilerplate is needed here.
``cover`` is binary and, under the default policy, stored byte-for-byte.
"""

from . import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=True, index=True)
    # Capa opcional (bytes arbitrários, NUL incluso)
    cover = db.Column(db.LargeBinary, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Book {self.id} {self.name!r}>"
