"""Validated configuration models.

``AppConfig`` exposes flat attributes (``config.data_dir``) but accepts the
sectioned YAML shape (``storage.dir``) as well, through validation aliases.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _in_section(section: str, key: str, flat: str) -> AliasChoices:
    """Accept ``flat`` or ``section.key`` for one field."""
    return AliasChoices(flat, AliasPath(section, key))


def _as_path(value: Any) -> Path:
    # Pure conversion; the store creates directories lazily on first write.
    if isinstance(value, (str, Path)):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _require_positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


class PremiumizeConfig(BaseModel):
    """Premiumize gets its own HTTP client: longer timeout, fixed-delay retries."""

    max_retries: int = Field(default=3, ge=1, description="Attempts per request.")
    timeout_seconds: float = Field(default=30.0, gt=0)
    retry_delay_seconds: float = Field(default=2.0, ge=0)


class AppConfig(BaseModel):
    """Final configuration, built by ``load_config`` from all layers."""

    app_name: str = "magnetio"
    environment: Environment = "dev"
    public_url: Optional[str] = Field(
        default=None,
        description="Base URL for playback links. Taken from the request if unset.",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=_in_section("http", "timeout_seconds", "http_timeout_seconds"),
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=_in_section(
            "http", "follow_redirects", "http_follow_redirects"
        ),
    )
    http_user_agent: str = Field(
        default="Stremio",
        validation_alias=_in_section("http", "user_agent", "http_user_agent"),
    )

    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=_in_section("logging", "level", "log_level"),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=_in_section("logging", "format", "log_format"),
        description="console or json; json in prod when left unset.",
    )

    data_dir: Path = Field(
        default=Path("movies"),
        validation_alias=_in_section("storage", "dir", "data_dir"),
        description="One <year>.json partition per release year lives here.",
    )
    lock_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=_in_section(
            "storage", "lock_timeout_seconds", "lock_timeout_seconds"
        ),
    )

    cinemeta_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        validation_alias=_in_section("upstream", "cinemeta_url", "cinemeta_url"),
    )
    torrentio_url: str = Field(
        default="https://torrentio.strem.fun",
        validation_alias=_in_section("upstream", "torrentio_url", "torrentio_url"),
    )

    premiumize: PremiumizeConfig = Field(default_factory=PremiumizeConfig)

    @field_validator("data_dir", mode="before")
    @classmethod
    def _coerce_data_dir(cls, v: Any) -> Path:
        return _as_path(v)

    @field_validator("http_timeout_seconds", "lock_timeout_seconds")
    @classmethod
    def _positive_timeouts(cls, v: float, info: ValidationInfo) -> float:
        return _require_positive(info.field_name, v)

    @field_validator("cinemeta_url", "torrentio_url", "public_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    @model_validator(mode="after")
    def _pick_log_format(self) -> "AppConfig":
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Dump in the config.yaml layout."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "public_url": self.public_url,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "storage": {
                "dir": str(self.data_dir),
                "lock_timeout_seconds": self.lock_timeout_seconds,
            },
            "upstream": {
                "cinemeta_url": self.cinemeta_url,
                "torrentio_url": self.torrentio_url,
            },
            "premiumize": self.premiumize.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """``MAGNETIO_*`` environment variables, flat names only.

    e.g. ``MAGNETIO_DATA_DIR``, ``MAGNETIO_LOG_LEVEL`` or
    ``MAGNETIO_PREMIUMIZE_MAX_RETRIES``. The loader maps each flat name onto
    its YAML section.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAGNETIO_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None
    public_url: Optional[str] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    data_dir: Optional[Path] = None
    lock_timeout_seconds: Optional[float] = None

    cinemeta_url: Optional[str] = None
    torrentio_url: Optional[str] = None

    premiumize_max_retries: Optional[int] = None
    premiumize_timeout_seconds: Optional[float] = None
    premiumize_retry_delay_seconds: Optional[float] = None

    def to_update_dict(self) -> dict[str, Any]:
        """Only the variables that were actually set."""
        return self.model_dump(exclude_none=True)
