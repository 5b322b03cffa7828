"""Compact previews of stream frames and snapshot items for debug logs."""

from __future__ import annotations

import json
from typing import Any

PREVIEW_LIMIT = 200


def frame_preview(data: Any, limit: int = PREVIEW_LIMIT) -> str:
    """One-line text of *data*, cut to *limit* characters.

    Binary frames are decoded leniently and JSON-able values are dumped
    compactly, so a malformed frame shows up in the log the way it arrived.
    """
    if isinstance(data, (bytes, bytearray)):
        text = bytes(data).decode("utf-8", errors="replace")
    elif isinstance(data, str):
        text = data
    else:
        try:
            text = json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
        except ValueError:
            text = repr(data)
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...(+{len(text) - limit} chars)"
