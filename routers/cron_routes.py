# routers/cron_routes.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import default_rate_limit, limiter
from routers.portfolio_routes import get_aggregator
from services.auth import verify_cron_secret
from services.price_update_service import run_price_update
from services.pricing.aggregator import PriceAggregator

router = APIRouter()


@router.get("/update-prices", dependencies=[Depends(verify_cron_secret)])
@limiter.limit(default_rate_limit)
async def update_prices(
    request: Request,
    db: Session = Depends(get_db),
    aggregator: PriceAggregator = Depends(get_aggregator),
):
    report = await run_price_update(db, aggregator)
    return JSONResponse(report.to_dict(), status_code=500 if report.error else 200)
