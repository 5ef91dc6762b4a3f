"""FastAPI application factory for the Sign in with Apple adapter."""

import logging
import secrets

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from siwa.api.routes_apple import router as apple_router
from siwa.core.logging import setup_logging
from siwa.core.middleware import DropSessionCookieMiddleware
from siwa.core.settings import AppleSettings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = AppleSettings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Sign in with Apple adapter",
        version="0.1.0",
    )

    session_secret = settings.session_secret
    if not session_secret:
        logger.warning("APPLE_SESSION_SECRET unset, using a per-process secret")
        session_secret = secrets.token_urlsafe(32)
    app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax")
    app.add_middleware(DropSessionCookieMiddleware)

    app.include_router(apple_router)

    return app
