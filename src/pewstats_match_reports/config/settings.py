"""Runtime settings loaded from environment variables (and an optional .env file).

Usage:
    >>> from pewstats_match_reports.config.settings import load_settings
    >>> settings = load_settings(".env")
    >>> settings.default_platform
    'steam'
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


SUPPORTED_PLATFORMS = ("steam", "kakao", "psn", "xbox", "stadia")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Plugin configuration.

    Attributes:
        api_key: PUBG developer API key
        cmd_prefix: Chat command prefix (e.g. "#pubg")
        default_platform: Shard used when the user gives none
        cooldown_seconds: Per-user cooldown between network-bound commands
        enable_cache: Whether API responses are cached
        cache_expiry_minutes: Cache TTL in minutes
        request_timeout: HTTP timeout in seconds (bounds telemetry downloads)
        max_retries: Retry attempts for transient API failures
        matches_per_page: Number of matches listed per page
        bindings_file: JSON file holding chat user -> player bindings
        telemetry_units_per_meter: Telemetry coordinate units per metre
        log_level: Logging level name
        metrics_port: Prometheus port, or None to skip the metrics server
    """

    api_key: Optional[str] = None
    cmd_prefix: str = "#pubg"
    default_platform: str = "steam"
    cooldown_seconds: int = 10
    enable_cache: bool = True
    cache_expiry_minutes: int = 5
    request_timeout: int = 30
    max_retries: int = 3
    matches_per_page: int = 5
    bindings_file: str = "user_bind.json"
    telemetry_units_per_meter: float = 100.0
    log_level: str = "INFO"
    metrics_port: Optional[int] = None

    def __post_init__(self):
        """Validate settings."""
        if self.default_platform not in SUPPORTED_PLATFORMS:
            raise ValueError(
                f"Unsupported platform '{self.default_platform}', "
                f"expected one of: {', '.join(SUPPORTED_PLATFORMS)}"
            )
        if self.cooldown_seconds < 0:
            raise ValueError(f"Cooldown must be >= 0, got {self.cooldown_seconds}")
        if self.cache_expiry_minutes <= 0:
            raise ValueError(f"Cache expiry must be positive, got {self.cache_expiry_minutes}")
        if self.telemetry_units_per_meter <= 0:
            raise ValueError(
                f"Telemetry units per meter must be positive, got {self.telemetry_units_per_meter}"
            )

    @property
    def cache_expiry_seconds(self) -> int:
        return self.cache_expiry_minutes * 60


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build Settings from the environment.

    Args:
        env_file: Optional path to a .env file loaded before reading variables

    Returns:
        Settings instance

    Raises:
        ValueError: If a variable holds an invalid value
    """
    if env_file:
        load_dotenv(env_file)

    metrics_port = os.getenv("METRICS_PORT")

    return Settings(
        api_key=os.getenv("PUBG_API_KEY") or None,
        cmd_prefix=os.getenv("PUBG_CMD_PREFIX", "#pubg"),
        default_platform=os.getenv("PUBG_DEFAULT_PLATFORM", "steam").lower(),
        cooldown_seconds=_get_int("PUBG_COOLDOWN_SECONDS", 10),
        enable_cache=_get_bool("PUBG_ENABLE_CACHE", True),
        cache_expiry_minutes=_get_int("PUBG_CACHE_EXPIRY_MINUTES", 5),
        request_timeout=_get_int("PUBG_REQUEST_TIMEOUT", 30),
        max_retries=_get_int("PUBG_MAX_RETRIES", 3),
        matches_per_page=_get_int("PUBG_MATCHES_PER_PAGE", 5),
        bindings_file=os.getenv("PUBG_BINDINGS_FILE", "user_bind.json"),
        telemetry_units_per_meter=_get_float("PUBG_TELEMETRY_UNITS_PER_METER", 100.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        metrics_port=int(metrics_port) if metrics_port else None,
    )


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'")


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{value}'")


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")
