"""
Credentials for admin sessions.

- passwords are bcrypt hashes (bcrypt reads at most 72 bytes, longer input is refused)
- access tokens are short-lived PyJWT tokens scoped to the admin audience of this site
- refresh tokens are random strings; only their sha256 digest is stored
"""

from __future__ import annotations

import hashlib
import secrets
import time
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
import jwt

from core import settings

ADMIN_AUDIENCE = "admin"
BCRYPT_MAX_BYTES = 72
REQUIRED_CLAIMS = ["sub", "email", "aud", "iss", "iat", "exp"]


class CredentialError(RuntimeError):
    pass


@dataclass(frozen=True)
class TokenConfig:
    secret: str
    algorithm: str
    access_ttl_s: int
    refresh_ttl: timedelta
    issuer: str


@dataclass(frozen=True)
class AdminClaims:
    admin_id: int
    email: str


def token_config() -> TokenConfig:
    # Set JWT_SECRET in production; the default only suits local development.
    return TokenConfig(
        secret=settings.env_str("JWT_SECRET", "dev-change-this-secret"),
        algorithm=settings.env_str("JWT_ALG", "HS256"),
        access_ttl_s=settings.env_int("ACCESS_TOKEN_EXPIRE_MIN", 15) * 60,
        refresh_ttl=timedelta(days=settings.env_int("REFRESH_TOKEN_EXPIRE_DAYS", 30)),
        issuer=settings.site_base_url(),
    )


def _password_bytes(password: str) -> bytes:
    raw = (password or "").encode("utf-8")
    if not raw:
        raise CredentialError("Password is empty.")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise CredentialError(f"Password is longer than {BCRYPT_MAX_BYTES} bytes.")
    return raw


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("ascii")


def password_matches(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except (CredentialError, ValueError):
        return False


def build_access_token(admin: dict, *, now_s: int | None = None) -> str:
    config = token_config()
    issued_at = int(time.time()) if now_s is None else now_s
    claims = {
        "sub": str(admin["id"]),
        "email": str(admin["email"]),
        "aud": ADMIN_AUDIENCE,
        "iss": config.issuer,
        "iat": issued_at,
        "exp": issued_at + config.access_ttl_s,
    }
    return jwt.encode(claims, config.secret, algorithm=config.algorithm)


def read_access_token(token: str) -> AdminClaims:
    """
    Verify signature, expiry, audience and issuer, and return who the token speaks for.
    """
    config = token_config()
    try:
        claims = jwt.decode(
            (token or "").strip(),
            config.secret,
            algorithms=[config.algorithm],
            audience=ADMIN_AUDIENCE,
            issuer=config.issuer,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise CredentialError("Access token is expired.") from exc
    except (jwt.InvalidAudienceError, jwt.InvalidIssuerError) as exc:
        raise CredentialError("Token is not an admin access token.") from exc
    except jwt.InvalidTokenError as exc:
        raise CredentialError("Invalid access token.") from exc

    subject = str(claims["sub"])
    if not subject.isdigit():
        raise CredentialError("Invalid access token subject.")
    return AdminClaims(admin_id=int(subject), email=str(claims["email"]))


def refresh_token_digest(refresh_token: str) -> str:
    return hashlib.sha256(refresh_token.strip().encode("utf-8")).hexdigest()


def new_refresh_token() -> tuple[str, str]:
    """
    (token handed to the client, digest to store).
    """
    token = secrets.token_urlsafe(48)
    return token, refresh_token_digest(token)
