"""Sign in with Apple request and callback endpoints."""

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from starlette.responses import JSONResponse

from siwa.api.context import request_context
from siwa.api.deps import get_adapter
from siwa.core.middleware import DROP_SESSION_STATE
from siwa.oidc.adapter import AppleAuthAdapter
from siwa.oidc.context import CallbackRequest
from siwa.oidc.errors import CallbackError, ConfigurationError
from siwa.oidc.types import CALLBACK_PATH, CallbackRedirect

logger = logging.getLogger(__name__)

router = APIRouter()

REQUEST_PATH = "/auth/apple"
STATE_SESSION_KEY = "siwa.state"
HTTP_FOUND = 302
HTTP_UNAUTHORIZED = 401
HTTP_SERVER_ERROR = 500


def _failure(error: CallbackError) -> JSONResponse:
    logger.warning("Apple sign-in failed: %s", error)
    if isinstance(error, ConfigurationError):
        return JSONResponse(
            {"error": "server_error", "error_description": error.kind},
            status_code=HTTP_SERVER_ERROR,
        )
    return JSONResponse(
        {"error": "invalid_credentials", "error_description": error.kind},
        status_code=HTTP_UNAUTHORIZED,
    )


@router.get(REQUEST_PATH, response_model=None)
async def request_phase(
    ctx: Annotated[CallbackRequest, Depends(request_context)],
    adapter: Annotated[AppleAuthAdapter, Depends(get_adapter)],
) -> RedirectResponse | JSONResponse:
    """GET /auth/apple -- redirect the browser to Apple's authorize page."""
    state = secrets.token_urlsafe(24)
    ctx.session.set(STATE_SESSION_KEY, state)
    try:
        url = adapter.authorize_url(ctx, {"state": state})
    except CallbackError as e:
        return _failure(e)
    return RedirectResponse(url=url, status_code=HTTP_FOUND)


@router.api_route(CALLBACK_PATH, methods=["GET", "POST"], response_model=None)
async def callback_phase(
    request: Request,
    ctx: Annotated[CallbackRequest, Depends(request_context)],
    adapter: Annotated[AppleAuthAdapter, Depends(get_adapter)],
) -> RedirectResponse | JSONResponse:
    """Callback endpoint for both the form_post leg and the GET leg."""
    if ctx.method != "POST":
        expected = ctx.session.delete(STATE_SESSION_KEY)
        state = ctx.params.get("state", "")
        if not expected or not secrets.compare_digest(expected, state):
            return _failure(CallbackError("state mismatch", kind="csrf_detected"))

    try:
        result = await adapter.handle_callback(ctx)
    except CallbackError as e:
        return _failure(e)

    if isinstance(result, CallbackRedirect):
        if result.drop_session:
            setattr(request.state, DROP_SESSION_STATE, True)
        return RedirectResponse(url=result.url, status_code=HTTP_FOUND)
    return JSONResponse(result.model_dump(mode="json", exclude={"credentials"}))
