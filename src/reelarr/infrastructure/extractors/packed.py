"""Video URL extraction from packed JWPlayer embed pages.

Many embed hosts ship their player config inside Dean Edwards packed
JavaScript; unpacking it exposes the ``file:"...m3u8"`` source.
"""

from __future__ import annotations

import re

_PACKED_START_RE = re.compile(
    r"eval\s*\(\s*function\s*\(\s*p\s*,\s*a\s*,\s*c\s*,\s*k\s*,\s*e\s*,\s*d\s*\)"
)
_PACKED_ARGS_RE = re.compile(
    r"}\('(.*?)',\s*(\d+),\s*(\d+),\s*'([^']*)'\s*\.split\('\|'\)",
    re.DOTALL,
)
_SOURCE_PATTERNS = (
    re.compile(r"""sources\s*:\s*\[\s*\{[^}]*file\s*:\s*["'](https?://[^"']+)"""),
    re.compile(r"""file\s*:\s*["'](https?://[^"']+\.(?:m3u8|mp4)[^"']*)"""),
    re.compile(r"""(?:source|src)\s*:\s*["'](https?://[^"']+\.(?:m3u8|mp4)[^"']*)"""),
)
_MAX_CHUNK = 65536


def unpack(packed: str) -> str | None:
    """Unpack ``eval(function(p,a,c,k,e,d){...}('payload',base,count,'dict'))``.

    Base-N tokens in the payload are replaced with words from the
    dictionary.  Returns ``None`` when *packed* is not in that format.
    """
    match = _PACKED_ARGS_RE.search(packed)
    if not match:
        return None

    payload, radix, count = match.group(1), int(match.group(2)), int(match.group(3))
    words = match.group(4).split("|")
    if len(words) < count:
        words.extend([""] * (count - len(words)))

    def _swap(m: re.Match[str]) -> str:
        token = m.group(0)
        try:
            index = int(token, radix)
        except ValueError:
            return token
        if index < len(words) and words[index]:
            return words[index]
        return token

    return re.sub(r"\b\w+\b", _swap, payload)


def find_player_source(js: str) -> str | None:
    """First video URL found in a (possibly unpacked) player config."""
    normalized = js.replace("\\'", "'").replace('\\"', '"')
    for pattern in _SOURCE_PATTERNS:
        m = pattern.search(normalized)
        if m:
            return m.group(1)
    return None


def extract_packed_sources(html: str) -> list[str]:
    """Video URLs hidden in every packed script block of *html*."""
    urls: list[str] = []
    for start in _PACKED_START_RE.finditer(html):
        chunk = html[start.start() : start.start() + _MAX_CHUNK]
        unpacked = unpack(chunk)
        if not unpacked:
            continue
        url = find_player_source(unpacked)
        if url and url not in urls:
            urls.append(url)
    return urls
