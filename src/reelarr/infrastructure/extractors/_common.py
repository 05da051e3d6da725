"""Helpers shared by stream extractors."""

from __future__ import annotations

import re

from reelarr.domain.entities.media import Stream

_QUALITY_RE = re.compile(r"(2160p|4k|1440p|1080p|720p|480p|360p)", re.IGNORECASE)


def guess_quality(text: str) -> str | None:
    """Best-effort quality label from a URL or file name."""
    m = _QUALITY_RE.search(text)
    if m is None:
        return None
    label = m.group(1).lower()
    return "2160p" if label == "4k" else label


def dedupe_streams(streams: list[Stream]) -> list[Stream]:
    """Drop streams whose URL was already seen, keeping first occurrence."""
    seen: set[str] = set()
    unique: list[Stream] = []
    for stream in streams:
        if stream.url in seen:
            continue
        seen.add(stream.url)
        unique.append(stream)
    return unique
