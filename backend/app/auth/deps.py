from __future__ import annotations

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.auth.jwt_tokens import InvalidToken, JwtConfig, read_access_token
from app.core.config import settings
from app.core.db import get_db
from app.models import Profile


def get_jwt_config() -> JwtConfig:
    return JwtConfig(
        secret=settings.JWT_SECRET,
        issuer=settings.JWT_ISS,
        audience=settings.JWT_AUD,
        ttl_seconds=settings.ACCESS_TOKEN_TTL_SECONDS,
        leeway_seconds=settings.JWT_LEEWAY_SECONDS,
    )


def get_principal_id(
    access_token: str | None = Cookie(default=None, alias="access_token"),
    jwt_cfg: JwtConfig = Depends(get_jwt_config),
) -> str:
    """Opaque profile id of the caller, as asserted by the identity provider."""
    if not access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        claims = read_access_token(jwt_cfg, access_token)
    except InvalidToken:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return claims.profile_id


def get_current_profile(
    db: Session = Depends(get_db),
    profile_id: str = Depends(get_principal_id),
) -> Profile:
    profile = db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Profile not found")

    if profile_id in settings.super_admin_ids() and profile.system_role != "SUPER_ADMIN":
        profile.system_role = "SUPER_ADMIN"
        db.commit()

    return profile


def get_optional_principal_id(
    access_token: str | None = Cookie(default=None, alias="access_token"),
    jwt_cfg: JwtConfig = Depends(get_jwt_config),
) -> str | None:
    """Like get_principal_id, but anonymous callers get None instead of 401."""
    if not access_token:
        return None
    try:
        return get_principal_id(access_token, jwt_cfg)
    except HTTPException:
        return None
