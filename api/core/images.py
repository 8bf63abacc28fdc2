"""
Image helpers for location pages.

Location photos are served from Cloudflare Images; rows in `location_images`
carry the Cloudflare image id, its type and whether it's the primary one.
"""

from __future__ import annotations

from typing import Any, Iterable

from . import settings

IMAGE_TYPES = ("photo", "logo", "street_view", "gallery")
IMAGE_VARIANTS = ("thumbnail", "card", "detail", "public")

GRADIENT_COLORS = [
    ("#4F46E5", "#7C3AED"),  # indigo to purple
    ("#0891B2", "#06B6D4"),  # cyan
    ("#059669", "#10B981"),  # emerald
    ("#DC2626", "#EF4444"),  # red
    ("#EA580C", "#F97316"),  # orange
    ("#8B5CF6", "#A78BFA"),  # purple
    ("#2563EB", "#3B82F6"),  # blue
    ("#DB2777", "#EC4899"),  # pink
]


class ImageConfigError(RuntimeError):
    pass


def cloudflare_image_url(image_id: str, variant: str = "public") -> str:
    account_hash = settings.cloudflare_images_account_hash()
    if not account_hash:
        raise ImageConfigError("CLOUDFLARE_IMAGES_ACCOUNT_HASH is not configured.")
    return f"https://imagedelivery.net/{account_hash}/{image_id}/{variant}"


def location_image_url(
    images: Iterable[dict[str, Any]] | None,
    image_type: str,
    variant: str = "public",
) -> str | None:
    """
    URL of the primary image of `image_type`, or None.

    There is no fallback to the scraped Google URLs.
    """
    if not settings.cloudflare_images_account_hash():
        return None
    for image in images or []:
        if image.get("image_type") == image_type and image.get("is_primary") and image.get("cf_image_id"):
            return cloudflare_image_url(str(image["cf_image_id"]), variant)
    return None


def _string_hash(value: str) -> int:
    # Same arithmetic as the site's front-end: 32-bit `hash * 31 + code_unit`.
    data = value.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def placeholder_gradient(location_id: str) -> str:
    """
    Deterministic CSS gradient for locations without photos.
    """
    h = _string_hash(str(location_id))
    start, end = GRADIENT_COLORS[h % len(GRADIENT_COLORS)]
    angle = (h % 8) * 45
    return f"linear-gradient({angle}deg, {start}, {end})"


def normalize_image_url(url: str | None) -> str:
    """
    Drop Google's size suffix so "...=w800-h500" and "...=w1600" compare equal.
    """
    if not url:
        return ""
    head, _sep, _tail = url.partition("=")
    return head
