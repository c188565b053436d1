"""Daemon configuration — CLI over environment over config file over defaults.

Settings are read with pydantic-settings.  Every field can be set in a
TOML config file (``./config.toml`` unless ``--config`` says otherwise),
overridden by ``CYCLE_CERTS_*`` environment variables or a ``.env``
file, and finally by command line options.

Examples
--------
Config file::

    domain = "cycle.io"
    hub_id = "5f2b..."
    certificate_path = "/etc/nginx/certs"
    refresh_days = 14
    post_fetch_command = "nginx -s reload"

Environment::

    export CYCLE_CERTS_API_KEY=secret_...
    export CYCLE_CERTS_RECORD__ZONE_ID=...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from cyclecert.core.errors import StartupConfigError
from cyclecert.models.certificate import FIXED_VALIDITY_DAYS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("config.toml")
DEFAULT_CLUSTER = "api.cycle.io"


class RecordSettings(BaseModel):
    """Identifies a certificate by DNS zone and record instead of hostname."""

    model_config = ConfigDict(frozen=True)

    zone_id: str = Field(min_length=1)
    record_id: str = Field(min_length=1)


class ManagerConfig(BaseSettings):
    """Effective configuration, built once at startup and never mutated."""

    model_config = SettingsConfigDict(
        env_prefix="CYCLE_CERTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
        toml_file=DEFAULT_CONFIG_FILE,
    )

    # Certificate identity
    domain: str | None = None
    wildcard: bool = False
    record: RecordSettings | None = None

    # API access
    hub_id: str = ""
    cluster: str = DEFAULT_CLUSTER
    api_key: SecretStr | None = None
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Output
    certificate_path: Path = Path("./")
    filename: str | None = None

    # Schedule
    refresh_days: int = Field(default=14, ge=0)
    retry_interval_seconds: float = Field(default=300.0, gt=0)

    post_fetch_command: str | None = None

    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @property
    def identity(self) -> str:
        """Human-readable name of the certificate being managed."""
        if self.domain:
            return f"*.{self.domain}" if self.wildcard else self.domain
        if self.record:
            return f"zone {self.record.zone_id} record {self.record.record_id}"
        return "<unset>"

    @property
    def lookup_url(self) -> str:
        cluster = self.cluster.rstrip("/")
        if "://" not in cluster:
            cluster = f"https://{cluster}"
        return f"{cluster}/v1/dns/tls/certificates/lookup"


def load_config(
    config_file: Path | str | None = None, **overrides: Any
) -> ManagerConfig:
    """Build the effective configuration.

    *overrides* are command line values; ``None`` means "not given" and
    leaves the lower-precedence sources in charge.  An explicitly named
    config file must exist.
    """
    if config_file is not None:
        path = Path(config_file)
        if not path.is_file():
            raise StartupConfigError(f"Config file not found: {path}")
    else:
        path = DEFAULT_CONFIG_FILE

    settings_cls = type(
        "ManagerConfig",
        (ManagerConfig,),
        {"model_config": SettingsConfigDict(toml_file=path)},
    )
    given = {k: v for k, v in overrides.items() if v is not None}
    try:
        return settings_cls(**given)
    except ValueError as exc:
        raise StartupConfigError(f"Invalid configuration: {exc}") from exc


def validate_config(config: ManagerConfig) -> ManagerConfig:
    """Check that *config* can drive the loop, reporting every violation.

    Raises
    ------
    StartupConfigError
        If no certificate identity, hub or API key is configured, or the
        cluster does not form a usable lookup URL.
    """
    violations: list[str] = []

    if not config.domain and config.record is None:
        violations.append(
            "No hostname or DNS record provided to fetch a certificate for. "
            "Set domain, or record.zone_id and record.record_id."
        )
    if not config.hub_id:
        violations.append("No hub ID provided in config file or arguments.")
    if config.api_key is None or not config.api_key.get_secret_value():
        violations.append(
            "No API key provided. Set api_key or CYCLE_CERTS_API_KEY."
        )
    try:
        lookup = httpx.URL(config.lookup_url)
    except httpx.InvalidURL as exc:
        violations.append(f"Cluster {config.cluster!r} does not form a valid URL: {exc}")
    else:
        if not lookup.host:
            violations.append(f"Cluster {config.cluster!r} names no host.")

    if violations:
        msg = "Configuration is not usable.\n" + "\n".join(
            f"  - {v}" for v in violations
        )
        logger.critical(msg)
        raise StartupConfigError(msg)

    if config.domain and config.record is not None:
        logger.warning(
            "Both domain and DNS record are configured; using domain %s.",
            config.domain,
        )
    if config.wildcard and not config.domain:
        logger.warning("wildcard is only used with a domain; ignoring it.")
    if config.refresh_days >= FIXED_VALIDITY_DAYS:
        logger.warning(
            "refresh_days=%d is not shorter than the %d-day validity window; "
            "the certificate will be refetched on every cycle.",
            config.refresh_days,
            FIXED_VALIDITY_DAYS,
        )

    return config
