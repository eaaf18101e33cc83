"""Middleware registration."""

from fastapi import FastAPI

from flingo.config import Settings
from flingo.middleware.cors import setup_cors
from flingo.middleware.error_handler import setup_error_handlers
from flingo.middleware.logging import setup_logging
from flingo.middleware.rate_limit import RateLimitMiddleware
from flingo.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Logging, error handlers, then the middleware stack.

    Starlette wraps in reverse order of registration, so the request passes
    CORS -> request id -> rate limit -> routes. A limit of 0 disables the
    rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app)

    if settings.rate_limit_requests > 0:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_window=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
