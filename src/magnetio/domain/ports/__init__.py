from .cache_provider import CacheProvider
from .indexer import IndexerClientPort
from .metadata import MetadataClientPort
from .partition_store import PartitionStorePort

__all__ = [
    "CacheProvider",
    "IndexerClientPort",
    "MetadataClientPort",
    "PartitionStorePort",
]
