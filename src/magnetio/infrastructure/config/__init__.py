from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, PremiumizeConfig

__all__ = ["AppConfig", "EnvOverrides", "PremiumizeConfig", "load_config"]
