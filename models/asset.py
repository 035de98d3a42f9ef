# models/asset.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.user import new_uuid, utcnow
from services.pricing.types import AssetType

# read back as float; Decimal never leaves the storage layer
Money = Numeric(24, 8, asdecimal=False)


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), index=True)
    type: Mapped[AssetType] = mapped_column(
        Enum(AssetType, name="asset_type", native_enum=False, length=20), index=True
    )
    symbol: Mapped[str | None] = mapped_column(String(20), nullable=True)
    quantity: Mapped[float] = mapped_column(Money)
    buy_price: Mapped[float] = mapped_column(Money)

    # REAL_ESTATE only
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    area: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    property_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    current_valuation: Mapped[float | None] = mapped_column(Money, nullable=True)
    rental_income: Mapped[float | None] = mapped_column(Money, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    account = relationship("Account", back_populates="assets")
    notification_rules = relationship(
        "NotificationRule",
        back_populates="asset",
        cascade="all, delete-orphan",
    )
    price_history = relationship(
        "AssetPriceHistory",
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="AssetPriceHistory.recorded_at",
    )
