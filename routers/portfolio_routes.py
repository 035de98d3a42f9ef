# routers/portfolio_routes.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import default_rate_limit, limiter
from models.user import User
from services.auth import get_current_user
from services.portfolio_service import get_portfolio_summary
from services.pricing.aggregator import PriceAggregator, get_price_aggregator
from utils.responses import ok

router = APIRouter()


def get_aggregator() -> PriceAggregator:
    return get_price_aggregator()


@router.get("/summary")
@limiter.limit(default_rate_limit)
async def portfolio_summary(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    aggregator: PriceAggregator = Depends(get_aggregator),
):
    return ok(await get_portfolio_summary(db, user.id, aggregator))
