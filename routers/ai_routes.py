# routers/ai_routes.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import default_rate_limit, limiter
from models.user import User
from routers.portfolio_routes import get_aggregator
from schemas.ai_analysis import PortfolioAnalysisRequest
from services.auth import get_current_user
from services.errors import ValidationError
from services.portfolio.advisor import PortfolioAdvisor, get_portfolio_advisor
from services.portfolio_service import analyze_user_portfolio
from services.pricing.aggregator import PriceAggregator
from utils.responses import ok

router = APIRouter()


def get_advisor() -> PortfolioAdvisor:
    return get_portfolio_advisor()


@router.post("/portfolio-analysis")
@limiter.limit(default_rate_limit)
async def portfolio_analysis(
    request: Request,
    payload: PortfolioAnalysisRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    aggregator: PriceAggregator = Depends(get_aggregator),
    advisor: PortfolioAdvisor = Depends(get_advisor),
):
    if str(payload.user_id) != user.id:
        raise ValidationError("User ID mismatch")
    return ok(await analyze_user_portfolio(db, user.id, aggregator, advisor))
