"""
Small request/response helpers shared by routers.
"""

from __future__ import annotations

from fastapi import Request


def client_ip(request: Request) -> str:
    """
    First X-Forwarded-For hop, then the socket peer, then X-Real-IP.
    """
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    if request.client is not None and request.client.host:
        return request.client.host
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    return real_ip or "unknown"


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or ""


def public_cache(max_age: int, s_maxage: int | None = None, stale_while_revalidate: int | None = None) -> str:
    value = f"public, max-age={max_age}, s-maxage={s_maxage if s_maxage is not None else max_age}"
    if stale_while_revalidate is not None:
        value += f", stale-while-revalidate={stale_while_revalidate}"
    return value


def private_cache(max_age: int) -> str:
    return f"private, max-age={max_age}, s-maxage={max_age}"
