import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load env from reliefanchor/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from reliefanchor.api import account, health, wellness
from reliefanchor.api.deps import build_services
from reliefanchor.core.clock import Clock
from reliefanchor.core.config import settings, validate_config
from reliefanchor.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from reliefanchor.core.logging import configure_logging
from reliefanchor.core.middleware.request_id import RequestIdMiddleware
from reliefanchor.features.chat.provider import ChatProvider
from reliefanchor.features.storage.service import KeyValueStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("reliefanchor")
    logger.info("Starting ReliefAnchor...")
    app.state.startup_time = time.time()
    try:
        yield
    finally:
        logging.getLogger("reliefanchor").info("Stopping ReliefAnchor...")


def create_app(
    storage: Optional[KeyValueStore] = None,
    clock: Optional[Clock] = None,
    chat_provider: Optional[ChatProvider] = None,
) -> FastAPI:
    """Build the local app. Tests pass in-memory storage, a fixed clock and a fake provider."""
    app = FastAPI(title="ReliefAnchor - local core", lifespan=lifespan)
    app.state.services = build_services(storage=storage, clock=clock, chat_provider=chat_provider)

    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # CORS for the local web shell
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(account.router, tags=["account"])
    app.include_router(wellness.router, tags=["wellness"])
    app.include_router(health.root_router, tags=["health"])
    return app


def build_default_app() -> FastAPI:
    configure_logging(settings.ENV)
    validate_config(strict=settings.CONFIG_STRICT)
    return create_app()
