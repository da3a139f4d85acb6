"""Quality ranking for playable streams.

The score is the vertical resolution read from the stream's display name:
``4k`` counts as 2160, a bare 3 or 4 digit number (``1080``, ``720``) counts as
itself, anything else is 0.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from magnetio.domain.entities.stremio import PlayableStream

_QUALITY_TOKEN_RE = re.compile(r"4k|\d{3,4}", re.IGNORECASE)


def quality_score(name: str) -> int:
    """Numeric quality of the first token found in *name*."""
    m = _QUALITY_TOKEN_RE.search(name or "")
    if m is None:
        return 0
    token = m.group(0).lower()
    if token == "4k":
        return 2160
    return int(token)


class StreamSorter:
    """Orders streams best quality first; ties keep their input order."""

    def rank(self, stream: PlayableStream) -> int:
        return quality_score(stream.display_name)

    def sort(self, streams: Iterable[PlayableStream]) -> list[PlayableStream]:
        # sorted() is stable, also with reverse=True.
        return sorted(streams, key=self.rank, reverse=True)
