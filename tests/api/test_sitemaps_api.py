"""Endpoint tests for the XML sitemaps."""

import asyncio
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from sitemaps import service

BASE = "https://www.dryerventcleaners.co"


@pytest.fixture(autouse=True)
def default_base_url(monkeypatch):
    monkeypatch.delenv("SITE_BASE_URL", raising=False)


class TestSitemapXml:
    def test_empty_urlset(self):
        assert service.urlset_xml([]) == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n</urlset>'
        )

    def test_urls_are_escaped(self):
        assert "<loc>https://x.example/?a=1&amp;b=2</loc>" in service.urlset_xml(["https://x.example/?a=1&b=2"])

    @pytest.mark.parametrize("total,expected", [(0, 1), (1, 1), (1000, 1), (1001, 2), (2500, 3)])
    def test_batch_count(self, total, expected):
        assert service.location_batch_count(total) == expected


class TestSitemapEndpoints:
    def test_index(self, client):
        with patch("locations.repository.count_visible", new=AsyncMock(return_value=2500)):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/xml")
        assert resp.headers["cache-control"] == "public, max-age=21600, s-maxage=86400, stale-while-revalidate=43200"
        body = resp.text
        assert f"<loc>{BASE}/sitemap-static.xml</loc>" in body
        assert f"<loc>{BASE}/sitemap-cities.xml</loc>" in body
        assert f"<loc>{BASE}/sitemap-locations-3.xml</loc>" in body
        assert "sitemap-locations-4.xml" not in body

    def test_index_database_error(self, client):
        with patch("locations.repository.count_visible", new=AsyncMock(side_effect=asyncpg.PostgresError("x"))):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 500
        assert resp.text == "Error generating sitemap index"

    def test_index_pool_timeout(self, client):
        with patch("locations.repository.count_visible", new=AsyncMock(side_effect=asyncio.TimeoutError())):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 500
        assert resp.text == "Error generating sitemap index"

    def test_static(self, client):
        resp = client.get("/sitemap-static.xml")
        assert f"<loc>{BASE}/dryer-vent-cleaning-near-me</loc>" in resp.text
        assert resp.headers["cache-control"] == "public, max-age=86400, s-maxage=604800, stale-while-revalidate=86400"

    def test_cities(self, client):
        rows = [{"city_slug": "brownsburg", "state": "Indiana"}, {"city_slug": "st-louis", "state": "Missouri"}]
        with patch("locations.repository.distinct_cities", new=AsyncMock(return_value=rows)):
            resp = client.get("/sitemap-cities.xml")
        assert f"<loc>{BASE}/cities/brownsburg-indiana</loc>" in resp.text
        assert f"<loc>{BASE}/cities/st-louis-missouri</loc>" in resp.text

    def test_location_batch(self, client):
        rows = [{"state": "New York", "city_slug": "buffalo", "slug": "vent-pros"}]
        with patch("locations.repository.visible_location_paths", new=AsyncMock(return_value=rows)) as paths:
            resp = client.get("/sitemap-locations-2.xml")
        assert f"<loc>{BASE}/states/new-york/buffalo/vent-pros</loc>" in resp.text
        paths.assert_awaited_once_with(offset=1000, limit=1000)

    def test_batch_must_be_positive(self, client):
        assert client.get("/sitemap-locations-0.xml").status_code == 422
