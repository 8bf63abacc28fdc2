"""
Dependencies guarding the admin routes.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from . import service


def parse_bearer(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header.",
        )

    scheme, _, token = raw.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization must be: Bearer <token>.",
        )
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return parse_bearer(authorization)


async def get_current_admin(access_token: str = Depends(get_bearer_token)) -> dict:
    return await service.admin_from_access_token(access_token)
