"""DeviceFingerprint ORM model — how many sessions a device has started."""

from datetime import datetime, timezone

from sqlalchemy import Integer, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from survey_db.models.base import Base


class DeviceFingerprint(Base):
    """Per-device session counter backing the soft duplicate flag."""

    __tablename__ = "device_fingerprints"

    fingerprint: Mapped[str] = mapped_column(Text, primary_key=True)
    session_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    first_seen_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
