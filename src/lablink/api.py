"""HTTP surface for GitLab webhooks.

Routes:
- POST /comments: note events
- POST /pipeline: pipeline events
- GET /healthz: liveness probe, exempt from authentication

GitLab sends the configured secret in the X-Gitlab-Token header; every other
route rejects requests without it before any business logic runs.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from lablink.core.errors import EventDecodeError, InvalidEventError, UserDiscoveryError
from lablink.core.events import GitLabEvent, decode_event
from lablink.core.models import NotificationDecision
from lablink.core.processor import EventProcessor

LOGGER = logging.getLogger(__name__)

TOKEN_HEADER = "X-Gitlab-Token"
HEALTH_PATH = "/healthz"


def _error(status_code: int, text: str) -> PlainTextResponse:
    LOGGER.warning("Returning status code %s: %s", status_code, text)
    return PlainTextResponse(text, status_code=status_code)


async def _handle(
    request: Request,
    handler: Callable[[GitLabEvent], Optional[NotificationDecision]],
) -> Response:
    body = await request.body()
    if not body:
        return _error(400, "Body must not be empty")

    try:
        event = decode_event(body)
    except EventDecodeError as exc:
        return _error(500, f"JSON decoding error: {exc}")

    try:
        handler(event)
    except InvalidEventError as exc:
        return _error(400, str(exc))
    except UserDiscoveryError as exc:
        return _error(500, str(exc))

    # Suppressed and dispatched events look the same to GitLab.
    return Response(status_code=200)


def create_app(processor: EventProcessor, secret_token: str, lifespan: Any = None) -> FastAPI:
    """Build the FastAPI application around an EventProcessor."""

    app = FastAPI(title="lablink", lifespan=lifespan)

    @app.middleware("http")
    async def authenticate(request: Request, call_next):
        if request.url.path == HEALTH_PATH:
            return await call_next(request)
        token = request.headers.get(TOKEN_HEADER)
        if token is None or not hmac.compare_digest(token.encode("utf-8"), secret_token.encode("utf-8")):
            LOGGER.warning("Rejected unauthenticated request to %s", request.url.path)
            return Response(status_code=401)
        return await call_next(request)

    # Added last so it wraps authentication and answers preflight requests.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "HEAD"],
        allow_headers=["accept", "x-csrf-token"],
    )

    @app.post("/comments")
    async def comments(request: Request) -> Response:
        return await _handle(request, processor.handle_comment)

    @app.post("/pipeline")
    async def pipeline(request: Request) -> Response:
        return await _handle(request, processor.handle_pipeline)

    @app.get(HEALTH_PATH)
    async def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    return app
