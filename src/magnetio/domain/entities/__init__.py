from .stremio import (
    CacheStatus,
    Candidate,
    MovieMetadata,
    MovieRecord,
    PlayableStream,
    ProviderCacheInfo,
)

__all__ = [
    "CacheStatus",
    "Candidate",
    "MovieMetadata",
    "MovieRecord",
    "PlayableStream",
    "ProviderCacheInfo",
]
