"""
Admin login, session refresh/rotation and logout.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _inactive() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin account is inactive.")


def to_profile(row: dict[str, Any]) -> schemas.AdminProfile:
    return schemas.AdminProfile(
        id=int(row["id"]),
        email=str(row["email"]),
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )


async def _open_session(
    admin: dict[str, Any],
    *,
    user_agent: str | None,
    ip_address: str | None,
) -> tuple[schemas.AdminTokens, int]:
    config = security.token_config()
    refresh_token, digest = security.new_refresh_token()
    session_id = await repository.open_session(
        admin_id=int(admin["id"]),
        token_digest=digest,
        expires_at=_utc_now() + config.refresh_ttl,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    tokens = schemas.AdminTokens(
        access_token=security.build_access_token(admin),
        refresh_token=refresh_token,
        expires_in=config.access_ttl_s,
    )
    return tokens, session_id


async def login(
    payload: schemas.AdminLogin,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AdminSession:
    admin = await repository.get_admin_for_login(payload.email)
    if admin is None or not security.password_matches(payload.password, admin.get("password_hash")):
        logger.info("admin_login_failed email=%s ip=%s", payload.email, ip_address)
        raise _unauthorized("Invalid email or password.")
    if not admin.get("is_active"):
        raise _inactive()

    tokens, session_id = await _open_session(admin, user_agent=user_agent, ip_address=ip_address)
    logger.info("admin_login admin_id=%s session_id=%s", admin["id"], session_id)
    return schemas.AdminSession(admin=to_profile(admin), tokens=tokens)


async def refresh(
    payload: schemas.SessionToken,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AdminTokens:
    """
    Swap a refresh token for a new pair. The old session is closed and points at its replacement.
    """
    session = await repository.find_session(security.refresh_token_digest(payload.refresh_token))
    if session is None:
        raise _unauthorized("Invalid refresh token.")
    if session.get("revoked_at") is not None:
        raise _unauthorized("Refresh token is revoked.")

    session_id = int(session["session_id"])
    expires_at = session.get("expires_at")
    if not isinstance(expires_at, datetime) or expires_at <= _utc_now():
        await repository.end_session(session_id)
        raise _unauthorized("Refresh token is expired.")
    if not session.get("is_active"):
        await repository.end_session(session_id)
        raise _inactive()

    tokens, new_session_id = await _open_session(session, user_agent=user_agent, ip_address=ip_address)
    await repository.rotate_session(session_id=session_id, replaced_by=new_session_id)
    return tokens


async def logout(payload: schemas.AdminLogout, *, admin_id: int) -> dict[str, Any]:
    digest = security.refresh_token_digest(payload.refresh_token) if payload.refresh_token else None
    ended = await repository.end_sessions(admin_id, token_digest=digest)
    logger.info("admin_logout admin_id=%s all_sessions=%s ended=%s", admin_id, digest is None, ended)
    return {"ok": True, "ended": ended}


async def admin_from_access_token(access_token: str) -> dict[str, Any]:
    try:
        claims = security.read_access_token(access_token)
    except security.CredentialError as exc:
        raise _unauthorized(str(exc)) from exc

    admin = await repository.get_admin(claims.admin_id)
    # A changed email invalidates tokens issued for the old one.
    if admin is None or str(admin["email"]) != claims.email:
        raise _unauthorized("Admin not found.")
    if not admin.get("is_active"):
        raise _inactive()
    return admin


async def create_admin(email: str, password: str) -> dict[str, Any]:
    """
    Used by the `create-admin` task; not exposed over HTTP.
    """
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValueError("A valid email is required.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    try:
        password_hash = security.hash_password(password)
    except security.CredentialError as exc:
        raise ValueError(str(exc)) from exc
    row = await repository.save_admin(email=email, password_hash=password_hash)
    logger.info("admin_saved admin_id=%s email=%s", row["id"], email)
    return row
