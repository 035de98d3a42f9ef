# models/notification_rule.py
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.user import new_uuid, utcnow


class Direction(str, enum.Enum):
    UP = "UP"
    DOWN = "DOWN"


class NotificationRule(Base):
    __tablename__ = "notification_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    asset_id: Mapped[str] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    threshold_percent: Mapped[int] = mapped_column(Integer)
    direction: Mapped[Direction] = mapped_column(
        Enum(Direction, name="notification_direction", native_enum=False, length=4)
    )

    # one-shot: flips to True the first time the threshold is crossed
    triggered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    last_triggered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    asset = relationship("Asset", back_populates="notification_rules")
