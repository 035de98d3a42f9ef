from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session, joinedload

from models.account import Account
from models.asset import Asset
from models.notification_rule import Direction, NotificationRule
from schemas.asset import AssetCreate, NotificationCreate
from services.account_service import get_account
from services.errors import NotFoundError
from services.portfolio.types import AssetPosition
from services.pricing.types import AssetType
from utils.common_helpers import iso

logger = logging.getLogger(__name__)


def _owned_assets(db: Session, user_id: str):
    return (
        db.query(Asset)
        .join(Asset.account)
        .options(joinedload(Asset.account))
        .filter(Account.user_id == user_id)
    )


def list_assets(db: Session, user_id: str) -> List[Asset]:
    return _owned_assets(db, user_id).order_by(Asset.created_at.desc(), Asset.id.asc()).all()


def get_asset(db: Session, user_id: str, asset_id: str) -> Asset:
    asset = _owned_assets(db, user_id).filter(Asset.id == asset_id).first()
    if not asset:
        raise NotFoundError("Asset")
    return asset


def create_asset(db: Session, user_id: str, payload: AssetCreate) -> Asset:
    account_id = str(payload.account_id)
    if not get_account(db, user_id, account_id):
        raise NotFoundError("Account")

    asset = Asset(
        account_id=account_id,
        type=payload.type,
        symbol=payload.symbol,
        quantity=payload.quantity,
        buy_price=payload.buy_price,
    )
    # real-estate extras are dropped for every other type
    if payload.type == AssetType.REAL_ESTATE:
        asset.location = payload.location or None
        asset.area = payload.area
        asset.property_type = payload.property_type
        asset.current_valuation = payload.current_valuation
        asset.rental_income = payload.rental_income
        asset.notes = payload.notes or None

    db.add(asset)
    db.commit()
    logger.info("asset created id=%s type=%s symbol=%s", asset.id, asset.type.value, asset.symbol)
    return get_asset(db, user_id, asset.id)


def delete_asset(db: Session, user_id: str, asset_id: str) -> str:
    asset = get_asset(db, user_id, asset_id)
    db.delete(asset)
    db.commit()
    logger.info("asset deleted id=%s", asset_id)
    return asset_id


def create_notification_rule(
    db: Session,
    user_id: str,
    asset_id: str,
    payload: NotificationCreate,
) -> NotificationRule:
    get_asset(db, user_id, asset_id)

    rule = NotificationRule(
        asset_id=asset_id,
        threshold_percent=payload.threshold_percent,
        direction=Direction(payload.direction),
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


def to_position(asset: Asset) -> AssetPosition:
    return AssetPosition(
        id=asset.id,
        account_id=asset.account_id,
        type=AssetType(asset.type),
        quantity=float(asset.quantity),
        buy_price=float(asset.buy_price),
        symbol=asset.symbol,
        location=asset.location,
        area=asset.area,
        property_type=asset.property_type,
        current_valuation=asset.current_valuation,
        rental_income=asset.rental_income,
        notes=asset.notes,
        account_name=asset.account.name if asset.account else None,
        created_at=asset.created_at,
    )


def list_positions(db: Session, user_id: str) -> List[AssetPosition]:
    return [to_position(a) for a in list_assets(db, user_id)]


def asset_to_dict(asset: Asset) -> Dict[str, Any]:
    position = to_position(asset)
    d: Dict[str, Any] = {
        "id": position.id,
        "accountId": position.account_id,
        "accountName": position.account_name,
        "type": position.type.value,
        "symbol": position.symbol,
        "quantity": position.quantity,
        "buyPrice": position.buy_price,
        "createdAt": iso(position.created_at),
    }
    if position.type == AssetType.REAL_ESTATE:
        d.update(position.real_estate_fields())
    return d


def rule_to_dict(rule: NotificationRule) -> Dict[str, Any]:
    return {
        "id": rule.id,
        "assetId": rule.asset_id,
        "thresholdPercent": rule.threshold_percent,
        "direction": rule.direction.value,
        "triggered": rule.triggered,
        "lastTriggeredAt": iso(rule.last_triggered_at),
    }
