# routers/asset_routes.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import default_rate_limit, limiter
from models.user import User
from routers.portfolio_routes import get_aggregator
from schemas.asset import AssetCreate, NotificationCreate
from services.asset_service import (
    asset_to_dict,
    create_asset,
    create_notification_rule,
    delete_asset,
    get_asset,
    rule_to_dict,
)
from services.auth import get_current_user
from services.portfolio_service import get_enriched_assets
from services.pricing.aggregator import PriceAggregator
from utils.responses import ok

router = APIRouter()


@router.get("")
@limiter.limit(default_rate_limit)
async def get_user_assets(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    aggregator: PriceAggregator = Depends(get_aggregator),
):
    return ok(await get_enriched_assets(db, user.id, aggregator))


@router.post("")
@limiter.limit(default_rate_limit)
def create_user_asset(
    request: Request,
    payload: AssetCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    asset = create_asset(db, user.id, payload)
    return ok(asset_to_dict(asset), status_code=status.HTTP_201_CREATED)


@router.get("/{asset_id}")
@limiter.limit(default_rate_limit)
def get_user_asset(
    request: Request,
    asset_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return ok(asset_to_dict(get_asset(db, user.id, asset_id)))


@router.delete("/{asset_id}")
@limiter.limit(default_rate_limit)
def delete_user_asset(
    request: Request,
    asset_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    deleted_id = delete_asset(db, user.id, asset_id)
    return ok({"message": "Asset deleted successfully", "deletedId": deleted_id})


@router.post("/{asset_id}/notification")
@limiter.limit(default_rate_limit)
def create_asset_notification(
    request: Request,
    asset_id: str,
    payload: NotificationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rule = create_notification_rule(db, user.id, asset_id, payload)
    return ok(rule_to_dict(rule), status_code=status.HTTP_201_CREATED)
