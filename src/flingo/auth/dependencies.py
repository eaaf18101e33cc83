"""FastAPI authentication dependencies."""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from flingo.auth.jwt import verify_token

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    beta_tester: bool = False


def _user_from_token(token: str) -> CurrentUser:
    payload = verify_token(token)
    return CurrentUser(user_id=str(payload["sub"]), beta_tester=bool(payload.get("beta", False)))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> CurrentUser:
    """Verified caller identity. Raises 401 without a valid bearer token."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="unauthorized")
    try:
        return _user_from_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> CurrentUser | None:
    """Caller identity for public endpoints; None for anonymous or bad tokens."""
    if credentials is None:
        return None
    try:
        return _user_from_token(credentials.credentials)
    except jwt.InvalidTokenError:
        return None
