from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portfolio_api.db.init_db import init_db
from portfolio_api.logging_config import configure_app_logging
from portfolio_api.routers import auth, health, instruments, portfolios, users
from portfolio_api.security.config import load_security_config
from portfolio_api.security.dependencies import enforce_security
from portfolio_api.services.errors import ApiError
from portfolio_api.settings import get_settings

logger = logging.getLogger(__name__)


def _error_body(status_code: int, message: str) -> dict:
    return {"code": status_code, "message": message}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # "body.email: value is not a valid email address; query.limit: ..."
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    message = "; ".join(parts) or "Bad request"
    logger.info("Request validation failed path=%s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(status.HTTP_400_BAD_REQUEST, message),
    )


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.security_config = load_security_config(settings.resolved_security_config_path())
        logger.info("Loaded security config: %s", settings.resolved_security_config_path())
        init_db()
        logger.info("Database initialized")

        yield

    # Global dependency: every route is authenticated unless the YAML config marks it public.
    app = FastAPI(title="Portfolio API", dependencies=[Depends(enforce_security)], lifespan=lifespan)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(portfolios.router)
    app.include_router(instruments.router)

    return app


app = create_app()
