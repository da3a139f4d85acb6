"""Built-in configuration, the lowest-precedence layer."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "magnetio",
    "environment": "dev",
    "public_url": None,
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "Stremio",
    },
    # format stays None so AppConfig picks it from the environment
    "logging": {"level": "INFO", "format": None},
    "storage": {"dir": "movies", "lock_timeout_seconds": 10.0},
    "upstream": {
        "cinemeta_url": "https://v3-cinemeta.strem.io",
        "torrentio_url": "https://torrentio.strem.fun",
    },
    "premiumize": {
        "max_retries": 3,
        "timeout_seconds": 30.0,
        "retry_delay_seconds": 2.0,
    },
}
