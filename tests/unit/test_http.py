"""Unit tests for request and cache header helpers."""

from starlette.requests import Request

from core.http import client_ip, private_cache, public_cache


def _request(headers=None, client=("198.51.100.7", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestClientIp:
    def test_first_forwarded_hop(self):
        assert client_ip(_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})) == "203.0.113.9"

    def test_socket_peer(self):
        assert client_ip(_request()) == "198.51.100.7"

    def test_real_ip_then_unknown(self):
        assert client_ip(_request({"X-Real-IP": "192.0.2.4"}, client=None)) == "192.0.2.4"
        assert client_ip(_request(client=None)) == "unknown"


class TestCacheHeaders:
    def test_public(self):
        assert public_cache(300) == "public, max-age=300, s-maxage=300"
        assert public_cache(10, 20, 30) == "public, max-age=10, s-maxage=20, stale-while-revalidate=30"

    def test_private(self):
        assert private_cache(60) == "private, max-age=60, s-maxage=60"
