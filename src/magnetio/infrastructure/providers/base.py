"""Helpers shared by the debrid provider implementations."""

from __future__ import annotations

import re
from typing import Any

_VIDEO_RE = re.compile(r"\.(mp4|mkv|avi|mov|webm)$", re.IGNORECASE)


def is_video(filename: str) -> bool:
    return bool(_VIDEO_RE.search(filename or ""))


def to_magnet(magnet_or_hash: str) -> str:
    """Accept either a magnet link or a bare info hash."""
    if magnet_or_hash.startswith("magnet:"):
        return magnet_or_hash
    return f"magnet:?xt=urn:btih:{magnet_or_hash.lower()}"


def largest_video(
    files: list[dict[str, Any]], name_key: str
) -> dict[str, Any] | None:
    """Pick the biggest video file from a provider file listing."""
    videos = [f for f in files if is_video(str(f.get(name_key, "")))]
    if not videos:
        return None
    return max(videos, key=lambda f: f.get("size") or 0)
