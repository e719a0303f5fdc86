"""Cache Entry ORM — one row per local cache key.

Invariants:
    - key is the primary key (unique namespace shared by every component)
    - value is the raw string stored by the caller (JSON or a bare token)
    - updated_at refreshed on every write

Design Decisions:
    - Text column, not JSON: the credential is stored unencoded, envelopes are
      encoded by LocalCache, so the table stays a plain string map
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from pcas.db.base import Base


class CacheEntry(Base):
    """Durable key/value pair."""
    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
