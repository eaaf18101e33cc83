"""CORS for the player and admin web apps."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flingo.config import Settings

# Preflight results may be cached by the browser for this long.
PREFLIGHT_MAX_AGE = 600


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Read-mostly API: only GET and POST are exposed cross-origin.

    ``cors_origin_regex`` additionally admits preview deployments.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
        max_age=PREFLIGHT_MAX_AGE,
    )
