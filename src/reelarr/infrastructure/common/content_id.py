"""Content id extraction for embed-template providers."""

from __future__ import annotations

import re

# ``.../movie/603``, ``tv/1399/season/1`` or a bare ``603``
_CONTENT_ID_RE = re.compile(r"(?:movie|tv)/(\d+)|^\s*(\d+)\s*$")


def extract_content_id(link: str) -> str | None:
    """Return the numeric content id embedded in *link*, or ``None``."""
    if not link:
        return None
    match = _CONTENT_ID_RE.search(link)
    if match is None:
        return None
    return match.group(1) or match.group(2)
