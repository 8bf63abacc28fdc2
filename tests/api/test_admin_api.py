"""Endpoint tests for admin auth and moderation."""

import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import jwt
import pytest

from auth import security, service

LOCATION_ID = "6f1c2f7e-8a4b-4b8e-9a7e-1c2d3e4f5a6b"


class TestAdminGuard:
    def test_missing_header(self, client):
        resp = client.get("/api/admin/locations")
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Missing Authorization header."}

    def test_wrong_scheme(self, client):
        resp = client.get("/api/admin/locations", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    def test_expired_token(self, client, admin_row):
        token = security.build_access_token(admin_row, now_s=1_000_000)
        resp = client.get("/api/admin/locations", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Access token is expired."}

    def test_token_for_another_audience(self, client):
        config = security.token_config()
        now = int(time.time())
        token = jwt.encode(
            {"sub": "1", "email": "admin@example.com", "aud": "public", "iss": config.issuer, "iat": now, "exp": now + 60},
            config.secret,
            algorithm=config.algorithm,
        )
        resp = client.get("/api/admin/locations", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Token is not an admin access token."}

    def test_token_without_email_claim(self, client):
        config = security.token_config()
        now = int(time.time())
        token = jwt.encode(
            {"sub": "1", "aud": security.ADMIN_AUDIENCE, "iss": config.issuer, "iat": now, "exp": now + 60},
            config.secret,
            algorithm=config.algorithm,
        )
        resp = client.get("/api/admin/locations", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Invalid access token."}

    def test_email_changed_since_token_was_issued(self, client, admin_row):
        token = security.build_access_token(admin_row)
        renamed = {**admin_row, "email": "someone-else@example.com"}
        with patch("auth.repository.get_admin", new=AsyncMock(return_value=renamed)):
            resp = client.get("/api/admin/locations", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_inactive_admin(self, client, admin_row):
        token = security.build_access_token(admin_row)
        inactive = {**admin_row, "is_active": False}
        with patch("auth.repository.get_admin", new=AsyncMock(return_value=inactive)):
            resp = client.get("/api/admin/locations", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 403


class TestAdminLocations:
    def test_list_caps_page_size(self, client, admin_headers):
        rows = [{"id": LOCATION_ID, "name": "Vent Pros"}]
        with patch("admin.repository.list_locations", new=AsyncMock(return_value=(rows, 51))) as listing, \
                patch("locations.repository.hours_for_locations", new=AsyncMock(return_value=[])), \
                patch("locations.repository.images_for_locations", new=AsyncMock(return_value=[])):
            resp = client.get(
                "/api/admin/locations",
                params={"page": 1, "page_size": 500, "status": "approved", "search": " vent ", "only24": "true"},
                headers=admin_headers,
            )

        assert resp.status_code == 200
        assert resp.json() == {
            "data": [{"id": LOCATION_ID, "name": "Vent Pros", "location_hours": [], "location_images": []}],
            "count": 51,
        }
        assert resp.headers["cache-control"] == "private, max-age=60, s-maxage=60"
        listing.assert_awaited_once_with(status="approved", search="vent", only_24_hours=True, limit=50, offset=50)

    def test_unknown_status_is_invalid(self, client, admin_headers):
        resp = client.get("/api/admin/locations", params={"status": "archived"}, headers=admin_headers)
        assert resp.status_code == 422

    def test_update_status(self, client, admin_headers):
        row = {"id": LOCATION_ID, "review_status": "approved"}
        with patch("admin.repository.set_location_status", new=AsyncMock(return_value=row)) as update:
            resp = client.patch(
                f"/api/admin/locations/{LOCATION_ID}",
                json={"review_status": "approved"},
                headers=admin_headers,
            )
        assert resp.json() == row
        update.assert_awaited_once_with(LOCATION_ID, "approved")

    def test_update_open_24_hours_listing(self, client, admin_headers):
        with patch("admin.repository.set_open_24_hours_status", new=AsyncMock(return_value=None)):
            resp = client.patch(
                f"/api/admin/locations/{LOCATION_ID}",
                json={"review_status": "rejected", "open_24_hours": True},
                headers=admin_headers,
            )
        assert resp.status_code == 404


class TestAdminReviews:
    def test_moderate_review(self, client, admin_headers):
        review_id = "0b7e4f0e-1111-4a4a-9b9b-222233334444"
        row = {"id": review_id, "status": "approved"}
        with patch("reviews.repository.set_review_status", new=AsyncMock(return_value=row)) as update:
            resp = client.patch(f"/api/admin/reviews/{review_id}", json={"status": "approved"}, headers=admin_headers)
        assert resp.json() == row
        update.assert_awaited_once_with(review_id, "approved")

    def test_list_reviews(self, client, admin_headers):
        with patch("reviews.repository.list_reviews", new=AsyncMock(return_value=([], 0))) as listing:
            resp = client.get("/api/admin/reviews", params={"page": 2}, headers=admin_headers)
        assert resp.json() == {"data": [], "count": 0}
        listing.assert_awaited_once_with(status="pending", limit=20, offset=40)

    def test_list_reviews_counts_every_page(self, client, admin_headers):
        page = [{"id": f"review-{n}", "status": "pending"} for n in range(3)]
        with patch("reviews.repository.list_reviews", new=AsyncMock(return_value=(page, 45))) as listing:
            resp = client.get("/api/admin/reviews", params={"page": 1, "page_size": 3}, headers=admin_headers)
        body = resp.json()
        assert len(body["data"]) == 3
        assert body["count"] == 45
        listing.assert_awaited_once_with(status="pending", limit=3, offset=3)



def _session(admin_row, **overrides):
    return {
        "session_id": 5,
        "revoked_at": None,
        "expires_at": datetime.now(timezone.utc) + timedelta(days=1),
        **admin_row,
        **overrides,
    }


class TestAdminAuth:
    def test_login(self, client, admin_row):
        admin = {**admin_row, "password_hash": security.hash_password("correct horse")}
        with patch("auth.repository.get_admin_for_login", new=AsyncMock(return_value=admin)) as lookup, \
                patch("auth.repository.open_session", new=AsyncMock(return_value=9)) as open_session:
            resp = client.post(
                "/api/admin/auth/login",
                json={"email": " Admin@Example.com ", "password": "correct horse"},
            )

        assert resp.status_code == 200
        body = resp.json()
        assert body["admin"] == {
            "id": 1,
            "email": "admin@example.com",
            "is_active": True,
            "created_at": "2024-01-01T00:00:00Z",
        }
        assert body["tokens"]["token_type"] == "bearer"
        assert body["tokens"]["expires_in"] == security.token_config().access_ttl_s
        assert security.read_access_token(body["tokens"]["access_token"]).admin_id == 1
        lookup.assert_awaited_once_with("admin@example.com")
        stored = open_session.await_args.kwargs["token_digest"]
        assert stored == security.refresh_token_digest(body["tokens"]["refresh_token"])

    def test_login_wrong_password(self, client, admin_row):
        admin = {**admin_row, "password_hash": security.hash_password("correct horse")}
        with patch("auth.repository.get_admin_for_login", new=AsyncMock(return_value=admin)):
            resp = client.post("/api/admin/auth/login", json={"email": "admin@example.com", "password": "nope"})
        assert resp.status_code == 401

    def test_login_inactive(self, client, admin_row):
        admin = {**admin_row, "is_active": False, "password_hash": security.hash_password("correct horse")}
        with patch("auth.repository.get_admin_for_login", new=AsyncMock(return_value=admin)), \
                patch("auth.repository.open_session", new=AsyncMock()) as open_session:
            resp = client.post(
                "/api/admin/auth/login",
                json={"email": "admin@example.com", "password": "correct horse"},
            )
        assert resp.status_code == 403
        open_session.assert_not_awaited()

    def test_refresh_rotates_session(self, client, admin_row):
        with patch("auth.repository.find_session", new=AsyncMock(return_value=_session(admin_row))) as find, \
                patch("auth.repository.open_session", new=AsyncMock(return_value=6)), \
                patch("auth.repository.rotate_session", new=AsyncMock()) as rotate:
            resp = client.post("/api/admin/auth/refresh", json={"refresh_token": "r" * 40})
        assert resp.status_code == 200
        assert security.read_access_token(resp.json()["access_token"]).email == "admin@example.com"
        find.assert_awaited_once_with(security.refresh_token_digest("r" * 40))
        rotate.assert_awaited_once_with(session_id=5, replaced_by=6)

    def test_refresh_revoked(self, client, admin_row):
        revoked = _session(admin_row, revoked_at=datetime.now(timezone.utc))
        with patch("auth.repository.find_session", new=AsyncMock(return_value=revoked)):
            resp = client.post("/api/admin/auth/refresh", json={"refresh_token": "r" * 40})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Refresh token is revoked."}

    def test_refresh_expired(self, client, admin_row):
        expired = _session(admin_row, expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        with patch("auth.repository.find_session", new=AsyncMock(return_value=expired)), \
                patch("auth.repository.end_session", new=AsyncMock()) as end_session:
            resp = client.post("/api/admin/auth/refresh", json={"refresh_token": "r" * 40})
        assert resp.status_code == 401
        end_session.assert_awaited_once_with(5)

    def test_refresh_for_inactive_admin(self, client, admin_row):
        with patch("auth.repository.find_session", new=AsyncMock(return_value=_session(admin_row, is_active=False))), \
                patch("auth.repository.end_session", new=AsyncMock()) as end_session:
            resp = client.post("/api/admin/auth/refresh", json={"refresh_token": "r" * 40})
        assert resp.status_code == 403
        end_session.assert_awaited_once_with(5)

    def test_logout_all_sessions(self, client, admin_headers):
        with patch("auth.repository.end_sessions", new=AsyncMock(return_value=3)) as end_sessions:
            resp = client.post("/api/admin/auth/logout", json={}, headers=admin_headers)
        assert resp.json() == {"ok": True, "ended": 3}
        end_sessions.assert_awaited_once_with(1, token_digest=None)

    def test_logout_one_session(self, client, admin_headers):
        with patch("auth.repository.end_sessions", new=AsyncMock(return_value=1)) as end_sessions:
            resp = client.post("/api/admin/auth/logout", json={"refresh_token": "r" * 40}, headers=admin_headers)
        assert resp.json() == {"ok": True, "ended": 1}
        end_sessions.assert_awaited_once_with(1, token_digest=security.refresh_token_digest("r" * 40))

    def test_me(self, client, admin_headers):
        resp = client.get("/api/admin/auth/me", headers=admin_headers)
        assert resp.json()["email"] == "admin@example.com"


class TestCredentials:
    def test_password_round_trip(self):
        password_hash = security.hash_password("correct horse")
        assert security.password_matches("correct horse", password_hash)
        assert not security.password_matches("wrong horse", password_hash)

    def test_missing_hash_never_matches(self):
        assert not security.password_matches("correct horse", None)
        assert not security.password_matches("correct horse", "not-a-bcrypt-hash")

    def test_password_over_bcrypt_limit(self):
        with pytest.raises(security.CredentialError):
            security.hash_password("x" * (security.BCRYPT_MAX_BYTES + 1))


class TestCreateAdmin:
    @pytest.mark.asyncio
    async def test_short_password(self):
        with pytest.raises(ValueError):
            await service.create_admin("admin@example.com", "short")

    @pytest.mark.asyncio
    async def test_password_too_long_for_bcrypt(self):
        with pytest.raises(ValueError):
            await service.create_admin("admin@example.com", "é" * 40)

    @pytest.mark.asyncio
    async def test_email_is_normalized(self):
        with patch("auth.repository.save_admin", new=AsyncMock(return_value={"id": 3})) as save:
            await service.create_admin(" Admin@Example.com ", "long enough")
        assert save.await_args.kwargs["email"] == "admin@example.com"
        assert security.password_matches("long enough", save.await_args.kwargs["password_hash"])
