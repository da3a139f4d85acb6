"""Debrid provider implementations."""

from .debridlink import DebridLinkProvider
from .factory import ProviderFactory
from .premiumize import PremiumizeProvider

__all__ = [
    "DebridLinkProvider",
    "PremiumizeProvider",
    "ProviderFactory",
]
