"""Unit tests for Cloudflare image URLs and placeholder gradients."""

import pytest

from core import images


@pytest.fixture
def account_hash(monkeypatch):
    monkeypatch.setenv("CLOUDFLARE_IMAGES_ACCOUNT_HASH", "abc123")
    return "abc123"


class TestCloudflareImageUrl:
    def test_builds_delivery_url(self, account_hash):
        assert images.cloudflare_image_url("img-1") == "https://imagedelivery.net/abc123/img-1/public"
        assert images.cloudflare_image_url("img-1", "thumbnail").endswith("/img-1/thumbnail")

    def test_missing_hash_raises(self, monkeypatch):
        monkeypatch.delenv("CLOUDFLARE_IMAGES_ACCOUNT_HASH", raising=False)
        with pytest.raises(images.ImageConfigError):
            images.cloudflare_image_url("img-1")


class TestLocationImageUrl:
    rows = [
        {"cf_image_id": "street", "image_type": "street_view", "is_primary": True},
        {"cf_image_id": "second", "image_type": "photo", "is_primary": False},
        {"cf_image_id": "main", "image_type": "photo", "is_primary": True},
    ]

    def test_picks_primary_of_type(self, account_hash):
        assert images.location_image_url(self.rows, "photo", "card") == "https://imagedelivery.net/abc123/main/card"

    def test_no_match(self, account_hash):
        assert images.location_image_url(self.rows, "logo") is None
        assert images.location_image_url(None, "photo") is None

    def test_unconfigured_hash_gives_none(self, monkeypatch):
        monkeypatch.delenv("CLOUDFLARE_IMAGES_ACCOUNT_HASH", raising=False)
        assert images.location_image_url(self.rows, "photo") is None


class TestPlaceholderGradient:
    def test_single_character(self):
        # hash("a") == 97 -> palette entry 1, angle 45.
        assert images.placeholder_gradient("a") == "linear-gradient(45deg, #0891B2, #06B6D4)"

    def test_is_deterministic(self):
        location_id = "6f1c2f7e-8a4b-4b8e-9a7e-1c2d3e4f5a6b"
        assert images.placeholder_gradient(location_id) == images.placeholder_gradient(location_id)

    def test_hash_wraps_like_32_bit_ints(self):
        # Long inputs overflow 32 bits; the result must stay a small non-negative number.
        value = images._string_hash("x" * 500)
        assert 0 <= value <= 2**31

    def test_empty_id(self):
        assert images.placeholder_gradient("") == "linear-gradient(0deg, #4F46E5, #7C3AED)"


class TestNormalizeImageUrl:
    def test_strips_size_suffix(self):
        a = images.normalize_image_url("https://lh5.googleusercontent.com/p/AF1Qip=w800-h500-k-no")
        b = images.normalize_image_url("https://lh5.googleusercontent.com/p/AF1Qip=w1600-h1000")
        assert a == b == "https://lh5.googleusercontent.com/p/AF1Qip"

    def test_plain_url_unchanged(self):
        assert images.normalize_image_url("https://example.com/a.jpg") == "https://example.com/a.jpg"
        assert images.normalize_image_url(None) == ""
