"""
SQL for admin accounts and their refresh-token sessions.

Rows handed out by `get_admin` never carry the password hash; only the
login lookup reads it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core import db

_PROFILE = "id, email, is_active, created_at"


async def save_admin(*, email: str, password_hash: str) -> dict[str, Any]:
    """
    Create an admin, or reset the password and reactivate an existing one.
    """
    row = await db.fetch_one(
        f"""
        INSERT INTO admin_users (email, password_hash, is_active)
        VALUES ($1, $2, true)
        ON CONFLICT (email) DO UPDATE
          SET password_hash = EXCLUDED.password_hash,
              is_active = true,
              updated_at = now()
        RETURNING {_PROFILE}
        """,
        email,
        password_hash,
    )
    if row is None:
        raise RuntimeError("Failed to save admin user.")
    return row


async def get_admin_for_login(email: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"SELECT {_PROFILE}, password_hash FROM admin_users WHERE lower(email) = $1",
        email,
    )


async def get_admin(admin_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(f"SELECT {_PROFILE} FROM admin_users WHERE id = $1", admin_id)


async def open_session(
    *,
    admin_id: int,
    token_digest: str,
    expires_at: datetime,
    user_agent: str | None,
    ip_address: str | None,
) -> int:
    session_id = await db.fetch_value(
        """
        INSERT INTO admin_refresh_tokens (admin_user_id, token_hash, expires_at, user_agent, ip_address)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING id
        """,
        admin_id,
        token_digest,
        expires_at,
        user_agent,
        ip_address,
    )
    if session_id is None:
        raise RuntimeError("Failed to open admin session.")
    return int(session_id)


async def find_session(token_digest: str) -> dict[str, Any] | None:
    """
    The session for a refresh token together with its admin's profile.
    """
    return await db.fetch_one(
        """
        SELECT t.id AS session_id, t.expires_at, t.revoked_at,
               a.id, a.email, a.is_active, a.created_at
        FROM admin_refresh_tokens t
        JOIN admin_users a ON a.id = t.admin_user_id
        WHERE t.token_hash = $1
        """,
        token_digest,
    )


async def rotate_session(*, session_id: int, replaced_by: int) -> None:
    await db.execute(
        """
        UPDATE admin_refresh_tokens
        SET revoked_at = coalesce(revoked_at, now()),
            last_used_at = now(),
            replaced_by_token_id = $2
        WHERE id = $1
        """,
        session_id,
        replaced_by,
    )


async def end_session(session_id: int) -> None:
    await db.execute(
        "UPDATE admin_refresh_tokens SET revoked_at = now() WHERE id = $1 AND revoked_at IS NULL",
        session_id,
    )


async def end_sessions(admin_id: int, *, token_digest: str | None = None) -> int:
    """
    End one of the admin's sessions (by refresh-token digest) or all of them.

    Scoped to `admin_id`, so an admin can never end someone else's session.
    Returns how many sessions were still open.
    """
    rows = await db.fetch_all(
        """
        UPDATE admin_refresh_tokens
        SET revoked_at = now()
        WHERE admin_user_id = $1
          AND ($2::text IS NULL OR token_hash = $2)
          AND revoked_at IS NULL
        RETURNING id
        """,
        admin_id,
        token_digest,
    )
    return len(rows)
