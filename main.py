# main.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from config.logging_config import configure_logging
from database import init_db
from middleware.rate_limit import limiter
from middleware.request_logging import RequestLoggingMiddleware
from routers.account_routes import router as account_router
from routers.ai_routes import router as ai_router
from routers.asset_routes import router as asset_router
from routers.cron_routes import router as cron_router
from routers.portfolio_routes import router as portfolio_router
from routers.user_routes import router as user_router
from services.errors import AppError, RateLimitError
from utils.responses import error_response

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = "http://localhost:3000"


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg", "Invalid request"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path", "header")]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("app error code=%s: %s", exc.code, exc.message)
    return error_response(exc.message, exc.code, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(_validation_message(exc), "VALIDATION_ERROR", 400)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    err = RateLimitError()
    return error_response(err.message, err.code, err.status_code)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return error_response("An unexpected error occurred", "INTERNAL_ERROR", 500)


def create_app() -> FastAPI:
    app = FastAPI(title="Portfolio Tracker API")

    app.state.limiter = limiter

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()]
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(user_router, prefix="/api/users")
    app.include_router(account_router, prefix="/api/accounts")
    app.include_router(asset_router, prefix="/api/assets")
    app.include_router(portfolio_router, prefix="/api/portfolio")
    app.include_router(ai_router, prefix="/api/ai")
    app.include_router(cron_router, prefix="/api/cron")

    return app


configure_logging()
init_db()
app = create_app()
