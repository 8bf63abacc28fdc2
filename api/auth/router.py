"""
Admin auth endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from core.http import client_ip, user_agent

from . import dependencies, schemas, service

router = APIRouter(prefix="/api/admin/auth")


@router.post("/login")
async def login(request: schemas.AdminLogin, http_request: Request) -> schemas.AdminSession:
    return await service.login(
        request,
        user_agent=user_agent(http_request),
        ip_address=client_ip(http_request),
    )


@router.post("/refresh")
async def refresh(request: schemas.SessionToken, http_request: Request) -> schemas.AdminTokens:
    return await service.refresh(
        request,
        user_agent=user_agent(http_request),
        ip_address=client_ip(http_request),
    )


@router.post("/logout")
async def logout(
    request: schemas.AdminLogout,
    current_admin: dict = Depends(dependencies.get_current_admin),
) -> dict:
    return await service.logout(request, admin_id=int(current_admin["id"]))


@router.get("/me")
async def me(current_admin: dict = Depends(dependencies.get_current_admin)) -> schemas.AdminProfile:
    return service.to_profile(current_admin)
