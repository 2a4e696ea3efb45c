from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt  # PyJWT

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub"]


class InvalidToken(Exception):
    """The token failed verification or names no profile."""


@dataclass(frozen=True)
class JwtConfig:
    secret: str
    issuer: str
    audience: str
    ttl_seconds: int
    leeway_seconds: int = 0


@dataclass(frozen=True)
class AccessClaims:
    profile_id: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(cfg: JwtConfig, profile_id: str, *, now: datetime | None = None) -> str:
    """Mint a token the way the identity provider does (used by tests and dev tooling)."""
    issued_at = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": profile_id,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=cfg.ttl_seconds),
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "typ": "access",
    }
    return jwt.encode(payload, cfg.secret, algorithm=ALGORITHM)


def read_access_token(cfg: JwtConfig, token: str) -> AccessClaims:
    """Verify signature, issuer, audience and lifetime, then pull out the profile id.

    The subject is opaque to us; surrounding whitespace is dropped and an
    empty subject is rejected like any other bad token.
    """
    try:
        payload = jwt.decode(
            token,
            cfg.secret,
            algorithms=[ALGORITHM],
            issuer=cfg.issuer,
            audience=cfg.audience,
            leeway=cfg.leeway_seconds,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError as exc:
        raise InvalidToken(str(exc)) from exc

    if payload.get("typ", "access") != "access":
        raise InvalidToken("not an access token")

    profile_id = str(payload["sub"]).strip()
    if not profile_id:
        raise InvalidToken("empty subject")

    return AccessClaims(
        profile_id=profile_id,
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
