"""Browser-like request headers shared by providers and extractors."""

from __future__ import annotations

from typing import Literal

HeaderProfile = Literal["html", "json", "api"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# User-Agent comes from the shared client; Accept-Encoding and Connection
# are left to httpx.
COMMON_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}


def get_headers(profile: HeaderProfile = "html") -> dict[str, str]:
    """Return a fresh header dict for the given request *profile*."""
    headers = dict(COMMON_HEADERS)
    if profile == "json":
        headers["Accept"] = "application/json, text/plain, */*"
        headers["Content-Type"] = "application/json"
    elif profile == "api":
        headers["Accept"] = "application/json"
        headers["X-Requested-With"] = "XMLHttpRequest"
    return headers


def headers_with_referer(
    referer: str, profile: HeaderProfile = "html"
) -> dict[str, str]:
    headers = get_headers(profile)
    headers["Referer"] = referer
    return headers
