# models/asset_price_history.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.user import new_uuid, utcnow


class AssetPriceHistory(Base):
    __tablename__ = "asset_price_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    asset_id: Mapped[str] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    price: Mapped[float] = mapped_column(Numeric(24, 8, asdecimal=False))
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )

    asset = relationship("Asset", back_populates="price_history")
