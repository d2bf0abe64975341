"""
Core Configuration
==================
Configuration providers and runtime settings.

Usage:
    from verifly_core.config import CoreSettings, EnvConfigProvider

    settings = CoreSettings.from_provider(EnvConfigProvider())

    # Or read secrets from Vault, falling back to the environment
    settings = CoreSettings.from_provider(
        VaultConfigProvider(path="verifly", fallback=EnvConfigProvider())
    )
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional, Protocol

import hvac
from hvac.exceptions import InvalidPath
import structlog

from .errors import ConfigurationError

logger = structlog.get_logger(__name__)

# Development-only fallback. Production refuses to start without ENCRYPTION_KEY.
DEFAULT_ENCRYPTION_KEY = "verifly-dev-encryption-key-32-chars"
PRODUCTION_ENVIRONMENTS = ("production", "prod", "staging")


class ConfigProvider(Protocol):
    """Anything that can answer ``get(key, default)``."""

    def get(self, key: str, default: Any = None) -> Any:
        ...


class EnvConfigProvider:
    """Reads configuration from environment variables."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def get(self, key: str, default: Any = None) -> Any:
        return os.environ.get(f"{self.prefix}{key}", default)


class DictConfigProvider:
    """Reads configuration from an in-memory mapping."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)


class VaultConfigProvider:
    """
    Reads configuration from a HashiCorp Vault KV v2 secret.

    The secret is read once and cached for the life of the provider.
    Keys missing from the secret are looked up in ``fallback`` when given.
    """

    def __init__(
        self,
        path: str = "verifly",
        url: Optional[str] = None,
        token: Optional[str] = None,
        mount_point: str = "secret",
        client: Optional[hvac.Client] = None,
        fallback: Optional[ConfigProvider] = None,
    ):
        self.path = path
        self.url = url or os.environ.get("VAULT_ADDR", "http://127.0.0.1:8200")
        self.token = token or os.environ.get("VAULT_TOKEN")
        self.mount_point = mount_point
        self.fallback = fallback
        self._client = client
        self._values: Optional[Dict[str, Any]] = None

    @property
    def client(self) -> hvac.Client:
        """Lazy-loaded Vault client."""
        if self._client is None:
            self._client = hvac.Client(url=self.url, token=self.token)
            if not self._client.is_authenticated():
                raise ConfigurationError("Vault authentication failed. Check VAULT_TOKEN.")
        return self._client

    def _load(self) -> Dict[str, Any]:
        if self._values is None:
            try:
                secret = self.client.secrets.kv.v2.read_secret_version(
                    path=self.path,
                    mount_point=self.mount_point,
                )
            except InvalidPath as exc:
                logger.error(
                    "Vault secret not found",
                    path=f"{self.mount_point}/{self.path}",
                )
                raise ConfigurationError("Configuration secret not found in Vault") from exc
            self._values = dict(secret["data"]["data"])
        return self._values

    def get(self, key: str, default: Any = None) -> Any:
        values = self._load()
        if key in values:
            return values[key]
        if self.fallback is not None:
            return self.fallback.get(key, default)
        return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CoreSettings:
    """Runtime settings for verifly-core."""
    encryption_key: str = DEFAULT_ENCRYPTION_KEY
    environment: str = "development"
    service_name: str = "verifly-core"
    request_ttl_hours: int = 24    # Housekeeping horizon for verification requests
    key_validity_days: int = 365   # Lifetime of issued API keys
    log_level: str = "INFO"
    json_logs: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in PRODUCTION_ENVIRONMENTS

    @property
    def request_ttl(self) -> timedelta:
        return timedelta(hours=self.request_ttl_hours)

    @property
    def key_validity(self) -> timedelta:
        return timedelta(days=self.key_validity_days)

    @classmethod
    def from_provider(cls, provider: Optional[ConfigProvider] = None) -> "CoreSettings":
        """
        Load settings from a configuration provider.

        Args:
            provider: Source of configuration (defaults to environment variables)

        Returns:
            Populated CoreSettings

        Raises:
            ConfigurationError: ENCRYPTION_KEY missing in a production environment
        """
        provider = provider or EnvConfigProvider()
        environment = str(provider.get("ENVIRONMENT", "development"))

        encryption_key = provider.get("ENCRYPTION_KEY")
        if not encryption_key:
            if environment.lower() in PRODUCTION_ENVIRONMENTS:
                raise ConfigurationError("ENCRYPTION_KEY must be set in production")
            logger.warning(
                "ENCRYPTION_KEY not set, using development default",
                environment=environment,
            )
            encryption_key = DEFAULT_ENCRYPTION_KEY

        return cls(
            encryption_key=str(encryption_key),
            environment=environment,
            service_name=str(provider.get("SERVICE_NAME", "verifly-core")),
            request_ttl_hours=int(provider.get("REQUEST_TTL_HOURS", 24)),
            key_validity_days=int(provider.get("KEY_VALIDITY_DAYS", 365)),
            log_level=str(provider.get("LOG_LEVEL", "INFO")).upper(),
            json_logs=_as_bool(provider.get("JSON_LOGS", True)),
        )
