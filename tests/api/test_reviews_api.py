"""Endpoint tests for reviews, claims and feedback."""

from unittest.mock import AsyncMock, patch

import asyncpg

LOCATION_ID = "6f1c2f7e-8a4b-4b8e-9a7e-1c2d3e4f5a6b"
REVIEWS_URL = f"/api/locations/{LOCATION_ID}/reviews"


class TestSubmitReview:
    def test_honeypot_is_rejected_before_any_query(self, client):
        with patch("reviews.repository.count_recent_reviews", new=AsyncMock()) as count:
            resp = client.post(REVIEWS_URL, json={"recommended": True, "honeypot": "http://spam"})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Spam detected."}
        count.assert_not_awaited()

    def test_rate_limited_after_three_reviews(self, client):
        with patch("reviews.repository.count_recent_reviews", new=AsyncMock(return_value=3)), \
                patch("reviews.repository.insert_review", new=AsyncMock()) as insert:
            resp = client.post(REVIEWS_URL, json={"recommended": False})
        assert resp.status_code == 429
        insert.assert_not_awaited()

    def test_success_with_email_and_forwarded_ip(self, client):
        with patch("reviews.repository.count_recent_reviews", new=AsyncMock(return_value=2)) as count, \
                patch("reviews.repository.upsert_review_user", new=AsyncMock(return_value={"id": "user-1"})) as upsert, \
                patch("reviews.repository.insert_review", new=AsyncMock()) as insert:
            resp = client.post(
                REVIEWS_URL,
                json={"recommended": True, "comment": "Quick and tidy.", "email": " jo@example.com "},
                headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "User-Agent": "pytest"},
            )

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert count.await_args.kwargs["ip_address"] == "203.0.113.9"
        upsert.assert_awaited_once_with("jo@example.com")
        kwargs = insert.await_args.kwargs
        assert kwargs["review_user_id"] == "user-1"
        assert kwargs["location_id"] == LOCATION_ID
        assert kwargs["user_agent"] == "pytest"

    def test_anonymous_review_skips_user(self, client):
        with patch("reviews.repository.count_recent_reviews", new=AsyncMock(return_value=0)), \
                patch("reviews.repository.upsert_review_user", new=AsyncMock()) as upsert, \
                patch("reviews.repository.insert_review", new=AsyncMock()) as insert:
            resp = client.post(REVIEWS_URL, json={"recommended": True})
        assert resp.status_code == 200
        upsert.assert_not_awaited()
        assert insert.await_args.kwargs["review_user_id"] is None

    def test_insert_failure(self, client):
        with patch("reviews.repository.count_recent_reviews", new=AsyncMock(return_value=0)), \
                patch("reviews.repository.insert_review", new=AsyncMock(side_effect=asyncpg.PostgresError("x"))):
            resp = client.post(REVIEWS_URL, json={"recommended": True})
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Could not save review."}

    def test_location_id_must_be_uuid(self, client):
        assert client.post("/api/locations/not-a-uuid/reviews", json={"recommended": True}).status_code == 422


class TestReviewStats:
    def test_defaults_without_reviews(self, client):
        with patch("reviews.repository.review_stats", new=AsyncMock(return_value=None)):
            resp = client.get(REVIEWS_URL)
        assert resp.json() == {"total": 0, "recommended_count": 0, "percent_recommended": 0, "recent_comments": []}

    def test_stats_row(self, client):
        row = {"total": 4, "recommended_count": 3, "percent_recommended": 75, "recent_comments": []}
        with patch("reviews.repository.review_stats", new=AsyncMock(return_value=row)) as stats:
            resp = client.get(REVIEWS_URL)
        assert resp.json() == row
        stats.assert_awaited_once_with(LOCATION_ID)


class TestClaimsAndFeedback:
    def test_claim(self, client):
        with patch("submissions.repository.insert_claim", new=AsyncMock()) as insert, \
                patch("submissions.repository.mark_claim_pending", new=AsyncMock(return_value=True)) as mark:
            resp = client.post(
                f"/api/locations/{LOCATION_ID}/claim",
                json={"name": " Jo Owner ", "email": "jo@ventpros.example"},
            )
        assert resp.json() == {"success": True}
        insert.assert_awaited_once_with(location_id=LOCATION_ID, name="Jo Owner", email="jo@ventpros.example")
        mark.assert_awaited_once_with(LOCATION_ID)

    def test_duplicate_claim(self, client):
        with patch(
            "submissions.repository.insert_claim",
            new=AsyncMock(side_effect=asyncpg.UniqueViolationError("duplicate key")),
        ):
            resp = client.post(
                f"/api/locations/{LOCATION_ID}/claim",
                json={"name": "Jo", "email": "jo@ventpros.example"},
            )
        assert resp.status_code == 409

    def test_feedback_for_unknown_location(self, client):
        with patch(
            "submissions.repository.insert_feedback",
            new=AsyncMock(side_effect=asyncpg.ForeignKeyViolationError("fk")),
        ):
            resp = client.post(f"/api/locations/{LOCATION_ID}/feedback", json={"feedback": "Phone is wrong"})
        assert resp.status_code == 404

    def test_site_feedback(self, client):
        with patch("submissions.repository.insert_feedback", new=AsyncMock()) as insert:
            resp = client.post("/api/feedback", json={"feedback": " Love it ", "email": ""})
        assert resp.json() == {"success": True}
        insert.assert_awaited_once_with(location_id=None, feedback="Love it", email=None)

    def test_empty_feedback_is_invalid(self, client):
        assert client.post("/api/feedback", json={"feedback": ""}).status_code == 422
