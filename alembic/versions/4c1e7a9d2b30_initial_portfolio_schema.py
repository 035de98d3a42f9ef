"""initial portfolio schema

Revision ID: 4c1e7a9d2b30
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c1e7a9d2b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ASSET_TYPES = ("GOLD", "STOCK", "CRYPTO", "REAL_ESTATE", "OTHER")


def _money() -> sa.Numeric:
    return sa.Numeric(24, 8, asdecimal=False)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("device_id", sa.String(128), nullable=False),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_users_device_id", "users", ["device_id"], unique=True)

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        _created_at(),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "assets",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "account_id",
            sa.String(36),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "type",
            sa.Enum(*ASSET_TYPES, name="asset_type", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("symbol", sa.String(20), nullable=True),
        sa.Column("quantity", _money(), nullable=False),
        sa.Column("buy_price", _money(), nullable=False),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("area", sa.Numeric(14, 2, asdecimal=False), nullable=True),
        sa.Column("property_type", sa.String(20), nullable=True),
        sa.Column("current_valuation", _money(), nullable=True),
        sa.Column("rental_income", _money(), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_assets_account_id", "assets", ["account_id"])
    op.create_index("ix_assets_type", "assets", ["type"])

    op.create_table(
        "notification_rules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "asset_id",
            sa.String(36),
            sa.ForeignKey("assets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("threshold_percent", sa.Integer, nullable=False),
        sa.Column(
            "direction",
            sa.Enum("UP", "DOWN", name="notification_direction", native_enum=False, length=4),
            nullable=False,
        ),
        sa.Column("triggered", sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column("last_triggered_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_notification_rules_asset_id", "notification_rules", ["asset_id"])

    op.create_table(
        "asset_price_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "asset_id",
            sa.String(36),
            sa.ForeignKey("assets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("price", _money(), nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_asset_price_history_asset_id", "asset_price_history", ["asset_id"])
    op.create_index("ix_asset_price_history_recorded_at", "asset_price_history", ["recorded_at"])


def downgrade() -> None:
    op.drop_table("asset_price_history")
    op.drop_table("notification_rules")
    op.drop_table("assets")
    op.drop_table("accounts")
    op.drop_table("users")
