"""
TMDB Gateway configuration handling.

Provides YAML configuration loading and environment variable parsing.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .keys import parse_api_keys

DEFAULT_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


@dataclass
class GatewayConfig:
    """
    TMDB Gateway configuration.

    Can be loaded from a YAML file, read from the environment or
    created programmatically.
    """
    # Upstream
    api_keys: List[str] = field(default_factory=list)
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "en-US"
    timeout: float = 10.0  # seconds, per attempt

    # Cache
    cache_ttl: float = 1800.0  # 30 minutes
    cache_max_entries: int = 1000

    # Pacing
    rate_limit_enabled: bool = True
    rate_limit_min_interval: float = 0.1  # seconds between dispatches

    # Retry
    max_attempts: int = 6
    backoff_base: float = 3.0  # seconds
    backoff_multiplier: float = 1.5

    # Logging
    log_level: str = "INFO"
    log_file: str = ""
    log_format: str = DEFAULT_LOG_FORMAT
    log_max_bytes: int = 10485760  # 10MB
    log_backup_count: int = 3

    # Metrics
    metrics_enabled: bool = False
    metrics_type: str = "simple"  # prometheus, simple
    metrics_port: int = 9090

    @classmethod
    def load(cls, path: str) -> "GatewayConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            GatewayConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If config file is invalid YAML
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            GatewayConfig instance
        """
        tmdb_cfg = data.get("tmdb", {})
        cache_cfg = data.get("cache", {})
        rate_limit_cfg = data.get("rate_limit", {})
        retry_cfg = data.get("retry", {})
        logging_cfg = data.get("logging", {})
        metrics_cfg = data.get("metrics", {})

        api_keys = tmdb_cfg.get("api_keys", [])
        if isinstance(api_keys, str):
            api_keys = parse_api_keys(api_keys)

        return cls(
            api_keys=[str(k) for k in api_keys],
            base_url=tmdb_cfg.get("base_url", "https://api.themoviedb.org/3"),
            language=tmdb_cfg.get("language", "en-US"),
            timeout=float(tmdb_cfg.get("timeout", 10.0)),
            cache_ttl=float(cache_cfg.get("ttl", 1800.0)),
            cache_max_entries=int(cache_cfg.get("max_entries", 1000)),
            rate_limit_enabled=rate_limit_cfg.get("enabled", True),
            rate_limit_min_interval=float(rate_limit_cfg.get("min_interval", 0.1)),
            max_attempts=int(retry_cfg.get("max_attempts", 6)),
            backoff_base=float(retry_cfg.get("backoff_base", 3.0)),
            backoff_multiplier=float(retry_cfg.get("backoff_multiplier", 1.5)),
            log_level=logging_cfg.get("level", "INFO"),
            log_file=logging_cfg.get("file", ""),
            log_format=logging_cfg.get("format", DEFAULT_LOG_FORMAT),
            log_max_bytes=logging_cfg.get("max_bytes", 10485760),
            log_backup_count=logging_cfg.get("backup_count", 3),
            metrics_enabled=metrics_cfg.get("enabled", False),
            metrics_type=metrics_cfg.get("type", "simple"),
            metrics_port=metrics_cfg.get("port", 9090),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        """
        Create configuration from environment variables.

        Reads TMDB_API_KEYS (comma-separated), TMDB_BASE_URL, TMDB_LANGUAGE,
        TMDB_TIMEOUT, TMDB_CACHE_TTL, TMDB_CACHE_MAX_ENTRIES,
        TMDB_REQUEST_DELAY, TMDB_MAX_RETRIES, TMDB_BACKOFF_BASE,
        TMDB_BACKOFF_MULTIPLIER and TMDB_LOG_LEVEL. Unset variables keep
        their defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            GatewayConfig instance
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name: str, default: Any, cast: Any) -> Any:
            raw = env.get(name)
            if raw is None or not str(raw).strip():
                return default
            return cast(str(raw).strip())

        return cls(
            api_keys=parse_api_keys(env.get("TMDB_API_KEYS")),
            base_url=_get("TMDB_BASE_URL", defaults.base_url, str),
            language=_get("TMDB_LANGUAGE", defaults.language, str),
            timeout=_get("TMDB_TIMEOUT", defaults.timeout, float),
            cache_ttl=_get("TMDB_CACHE_TTL", defaults.cache_ttl, float),
            cache_max_entries=_get("TMDB_CACHE_MAX_ENTRIES", defaults.cache_max_entries, int),
            rate_limit_min_interval=_get("TMDB_REQUEST_DELAY", defaults.rate_limit_min_interval, float),
            max_attempts=_get("TMDB_MAX_RETRIES", defaults.max_attempts, int),
            backoff_base=_get("TMDB_BACKOFF_BASE", defaults.backoff_base, float),
            backoff_multiplier=_get("TMDB_BACKOFF_MULTIPLIER", defaults.backoff_multiplier, float),
            log_level=_get("TMDB_LOG_LEVEL", defaults.log_level, str),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Configuration as dictionary
        """
        return {
            "tmdb": {
                "api_keys": list(self.api_keys),
                "base_url": self.base_url,
                "language": self.language,
                "timeout": self.timeout,
            },
            "cache": {
                "ttl": self.cache_ttl,
                "max_entries": self.cache_max_entries,
            },
            "rate_limit": {
                "enabled": self.rate_limit_enabled,
                "min_interval": self.rate_limit_min_interval,
            },
            "retry": {
                "max_attempts": self.max_attempts,
                "backoff_base": self.backoff_base,
                "backoff_multiplier": self.backoff_multiplier,
            },
            "logging": {
                "level": self.log_level,
                "file": self.log_file,
                "format": self.log_format,
                "max_bytes": self.log_max_bytes,
                "backup_count": self.log_backup_count,
            },
            "metrics": {
                "enabled": self.metrics_enabled,
                "type": self.metrics_type,
                "port": self.metrics_port,
            },
        }

    def save(self, path: str) -> None:
        """
        Save configuration to a YAML file.

        Args:
            path: Path to save the configuration file
        """
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True)
