"""
Cloudflare Images HTTP client helpers.

Used endpoints (all under /client/v4/accounts/{account_id}/images/v1):
- POST   ""            multipart `url=` or `file=` (+ `metadata`) -> {"result": {"id": ...}}
- GET    "?page=&per_page="                                      -> {"result": {"images": [...]}}
- GET    "/{image_id}"                                           -> {"result": {...}}
- PATCH  "/{image_id}"  {"metadata": {...}}                      -> {"result": {...}}
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from . import settings

API_BASE_URL = "https://api.cloudflare.com/client/v4"

# Google serves 403s to non-browser user agents.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.google.com/",
}


class CloudflareError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _credentials() -> tuple[str, str]:
    account_id = settings.cloudflare_account_id()
    api_token = settings.cloudflare_images_api_token()
    if not account_id or not api_token:
        raise CloudflareError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_IMAGES_API_TOKEN must be set.")
    return account_id, api_token


def _images_url(account_id: str, suffix: str = "") -> str:
    return f"{API_BASE_URL}/accounts/{account_id}/images/v1{suffix}"


def _error_message(resp: httpx.Response, data: dict[str, Any] | None) -> str:
    errors = (data or {}).get("errors") or []
    messages = [str(e.get("message")) for e in errors if isinstance(e, dict) and e.get("message")]
    return ", ".join(messages) or f"HTTP {resp.status_code}"


def _parse_result(resp: httpx.Response) -> Any:
    try:
        data: dict[str, Any] | None = resp.json()
    except ValueError:
        data = None

    if resp.status_code >= 400 or not data or not data.get("success"):
        raise CloudflareError(_error_message(resp, data), status_code=resp.status_code)
    return data.get("result")


def _image_id(result: Any) -> str:
    image_id = result.get("id") if isinstance(result, dict) else None
    if not image_id:
        raise CloudflareError("Upload succeeded without an image id in the result.")
    return str(image_id)


def _metadata_field(metadata: dict[str, Any] | None) -> dict[str, tuple[None, str]]:
    if not metadata:
        return {}
    return {"metadata": (None, json.dumps(metadata))}


async def upload_image_from_url(
    image_url: str,
    *,
    metadata: dict[str, Any] | None = None,
    timeout_s: float = 60.0,
) -> str:
    """
    Let Cloudflare fetch `image_url` itself. Returns the Cloudflare image id.
    """
    account_id, api_token = _credentials()
    # Passing every field through `files` forces multipart/form-data.
    files = {"url": (None, image_url), **_metadata_field(metadata)}

    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.post(
            _images_url(account_id),
            headers={"Authorization": f"Bearer {api_token}"},
            files=files,
        )

    try:
        result = _parse_result(resp)
    except CloudflareError as exc:
        # The source host's refusal only shows up in Cloudflare's error message.
        if "403" in str(exc):
            raise CloudflareError(
                "403 Forbidden: source host blocked Cloudflare from fetching image",
                status_code=403,
            ) from exc
        raise
    return _image_id(result)


async def upload_image_bytes(
    data: bytes,
    *,
    metadata: dict[str, Any] | None = None,
    filename: str = "image.jpg",
    content_type: str = "image/jpeg",
    timeout_s: float = 60.0,
) -> str:
    """
    Upload image bytes we already downloaded. Returns the Cloudflare image id.
    """
    account_id, api_token = _credentials()
    files = {"file": (filename, data, content_type), **_metadata_field(metadata)}

    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.post(
            _images_url(account_id),
            headers={"Authorization": f"Bearer {api_token}"},
            files=files,
        )

    return _image_id(_parse_result(resp))


async def download_image(
    image_url: str,
    *,
    proxy: str | None = None,
    timeout_s: float = 60.0,
) -> bytes:
    async with httpx.AsyncClient(timeout=timeout_s, proxy=proxy, follow_redirects=True) as client:
        resp = await client.get(image_url, headers=BROWSER_HEADERS)

    if resp.status_code != 200:
        raise CloudflareError(f"Failed to download image: HTTP {resp.status_code}", status_code=resp.status_code)
    return resp.content


async def list_images(*, page: int = 1, per_page: int = 100, timeout_s: float = 30.0) -> list[dict[str, Any]]:
    account_id, api_token = _credentials()
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.get(
            _images_url(account_id),
            headers={"Authorization": f"Bearer {api_token}"},
            params={"page": page, "per_page": per_page},
        )

    result = _parse_result(resp) or {}
    images = result.get("images")
    return images if isinstance(images, list) else []


async def list_all_images(*, per_page: int = 100) -> list[dict[str, Any]]:
    """
    Page through every image in the account (a short page marks the end).
    """
    all_images: list[dict[str, Any]] = []
    page = 1
    while True:
        images = await list_images(page=page, per_page=per_page)
        all_images.extend(images)
        if len(images) < per_page:
            return all_images
        page += 1


async def get_image(image_id: str, *, timeout_s: float = 30.0) -> dict[str, Any]:
    account_id, api_token = _credentials()
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.get(
            _images_url(account_id, f"/{image_id}"),
            headers={"Authorization": f"Bearer {api_token}"},
        )
    return _parse_result(resp)


async def update_image_metadata(image_id: str, metadata: dict[str, Any], *, timeout_s: float = 30.0) -> dict[str, Any]:
    account_id, api_token = _credentials()
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.patch(
            _images_url(account_id, f"/{image_id}"),
            headers={"Authorization": f"Bearer {api_token}"},
            json={"metadata": metadata},
        )
    return _parse_result(resp)


async def verify_token(*, timeout_s: float = 15.0) -> bool:
    _account_id, api_token = _credentials()
    async with httpx.AsyncClient(timeout=timeout_s) as client:
        resp = await client.get(
            f"{API_BASE_URL}/user/tokens/verify",
            headers={"Authorization": f"Bearer {api_token}"},
        )
    try:
        _parse_result(resp)
    except CloudflareError:
        return False
    return True


def image_metadata(image: dict[str, Any]) -> dict[str, Any]:
    """
    Listing responses use `meta`, single-image responses may use `metadata`.
    """
    meta = image.get("meta") or image.get("metadata") or {}
    return dict(meta) if isinstance(meta, dict) else {}
