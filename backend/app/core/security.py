"""Bearer-token session context for wallet-scoped endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.domain import UnauthorizedError

from .config import get_settings

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True)
class SessionUser:
    wallet_address: str
    email: str | None = None
    role: str = "USER"
    is_whitelisted: bool = False


def issue_session_token(
    wallet_address: str,
    *,
    email: str | None = None,
    role: str = "USER",
    is_whitelisted: bool = False,
    expires_in: timedelta = timedelta(hours=24),
) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "walletAddress": wallet_address,
        "email": email,
        "role": role,
        "isWhitelisted": is_whitelisted,
        "iss": settings.jwt_issuer,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> SessionUser:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired") from exc
    except JWTError as exc:
        raise UnauthorizedError("Invalid token") from exc

    wallet_address = payload.get("walletAddress")
    if not wallet_address:
        raise UnauthorizedError("Wallet address not found in token")
    return SessionUser(
        wallet_address=wallet_address,
        email=payload.get("email"),
        role=payload.get("role") or "USER",
        is_whitelisted=bool(payload.get("isWhitelisted")),
    )


async def get_session_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Missing or invalid authorization header")
    return decode_session_token(credentials.credentials)
