"""URL-safe references to magnet links for the playback redirect route."""

from __future__ import annotations

import base64
import binascii


def encode_ref(magnet_link: str) -> str:
    """URL-safe base64 without padding."""
    raw = base64.urlsafe_b64encode(magnet_link.encode("utf-8")).decode("ascii")
    return raw.rstrip("=")


def decode_ref(ref: str) -> str:
    """Inverse of ``encode_ref``; restores padding before decoding.

    Raises:
        ValueError: if *ref* is not valid base64.
    """
    padded = ref + "=" * (-len(ref) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError(f"invalid playback reference: {ref!r}") from exc
