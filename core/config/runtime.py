"""
Runtime Configuration

Central configuration for collaborator backends, retry budgets and caching.
"""

from __future__ import annotations

import copy
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


BACKENDS = ("memory", "local", "live")

DEFAULT_DATA_DIR = "./data"


@dataclass
class LedgerConfig:
    """Configuration for the ledger collaborator."""
    rpc_url: str = "https://rpc-amoy.polygon.technology/"
    contract_address: Optional[str] = None
    private_key: Optional[str] = None
    chain_id: Optional[int] = None
    gas_limit: Optional[int] = None
    tx_timeout_s: float = 120.0
    register_attempts: int = 1
    lookup_attempts: int = 2
    # local backend
    db_path: str = f"{DEFAULT_DATA_DIR}/ledger.db"


@dataclass
class ContentConfig:
    """Configuration for the content store collaborator."""
    api_url: str = "https://api.pinata.cloud"
    gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    timeout_s: float = 30.0
    max_attempts: int = 3
    retry_delay: float = 1.0
    # local backend
    data_dir: str = f"{DEFAULT_DATA_DIR}/content"


@dataclass
class SaltsConfig:
    """Configuration for the salt store."""
    db_path: str = f"{DEFAULT_DATA_DIR}/salts.db"
    timeout_s: float = 10.0
    max_attempts: int = 3
    retry_delay: float = 0.5


@dataclass
class CacheConfig:
    """Configuration for the root cache."""
    enabled: bool = True
    ttl_s: float = 300.0
    max_entries: int = 10_000


@dataclass
class HttpConfig:
    """Configuration for HTTP client."""
    timeout: float = 30.0
    user_agent: str = "prodseal/0.1"
    proxy: Optional[str] = None


def _env_bool(name: str) -> bool:
    return os.getenv(name, "false").lower() in ("1", "true", "yes")


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML file
    - Programmatic construction
    """
    backend: str = "memory"
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    salts: SaltsConfig = field(default_factory=SaltsConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    deadline_s: Optional[float] = 180.0
    debug: bool = False

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend {self.backend!r}, expected one of {BACKENDS}")

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - PRODSEAL_BACKEND: memory | local | live
        - PRODSEAL_DEBUG: Enable debug mode (true/false)
        - PRODSEAL_DEADLINE_S: Per-operation deadline in seconds
        - PRODSEAL_CACHE_TTL_S: Root cache TTL in seconds
        - PRODSEAL_SALTS_DB: Salt store sqlite path
        - PRODSEAL_DATA_DIR: Base directory for local backend files
        - PRODSEAL_HTTP_PROXY: HTTP proxy URL
        - RPC_URL, CONTRACT_ADDRESS, PRIVATE_KEY, CHAIN_ID: ledger contract
        - PINATA_API_KEY, PINATA_API_SECRET: content store credentials
        """
        overrides: dict[str, Any] = {}

        if os.getenv("PRODSEAL_BACKEND"):
            overrides["backend"] = os.getenv("PRODSEAL_BACKEND")
        if os.getenv("PRODSEAL_DEBUG"):
            overrides["debug"] = _env_bool("PRODSEAL_DEBUG")
        if os.getenv("PRODSEAL_DEADLINE_S"):
            overrides["deadline_s"] = float(os.environ["PRODSEAL_DEADLINE_S"])

        # Local backend paths
        data_dir = os.getenv("PRODSEAL_DATA_DIR")
        if data_dir:
            overrides.setdefault("ledger", {})["db_path"] = f"{data_dir}/ledger.db"
            overrides.setdefault("content", {})["data_dir"] = f"{data_dir}/content"
            overrides.setdefault("salts", {})["db_path"] = f"{data_dir}/salts.db"
        if os.getenv("PRODSEAL_SALTS_DB"):
            overrides.setdefault("salts", {})["db_path"] = os.getenv("PRODSEAL_SALTS_DB")

        # Ledger contract
        for env_var, key in (
            ("RPC_URL", "rpc_url"),
            ("CONTRACT_ADDRESS", "contract_address"),
            ("PRIVATE_KEY", "private_key"),
        ):
            if os.getenv(env_var):
                overrides.setdefault("ledger", {})[key] = os.getenv(env_var)
        if os.getenv("CHAIN_ID"):
            overrides.setdefault("ledger", {})["chain_id"] = int(os.environ["CHAIN_ID"])

        # Pinata
        if os.getenv("PINATA_API_KEY"):
            overrides.setdefault("content", {})["api_key"] = os.getenv("PINATA_API_KEY")
        if os.getenv("PINATA_API_SECRET"):
            overrides.setdefault("content", {})["api_secret"] = os.getenv("PINATA_API_SECRET")

        if os.getenv("PRODSEAL_CACHE_TTL_S"):
            overrides.setdefault("cache", {})["ttl_s"] = float(os.environ["PRODSEAL_CACHE_TTL_S"])

        if os.getenv("PRODSEAL_HTTP_PROXY"):
            overrides.setdefault("http", {})["proxy"] = os.getenv("PRODSEAL_HTTP_PROXY")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        return cls(
            backend=data.get("backend", "memory"),
            ledger=LedgerConfig(**(data.get("ledger") or {})),
            content=ContentConfig(**(data.get("content") or {})),
            salts=SaltsConfig(**(data.get("salts") or {})),
            cache=CacheConfig(**(data.get("cache") or {})),
            http=HttpConfig(**(data.get("http") or {})),
            deadline_s=data.get("deadline_s", 180.0),
            debug=bool(data.get("debug", False)),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for key, value in overrides.items():
            if isinstance(value, dict):
                section = getattr(new_config, key)
                for field_name, field_value in value.items():
                    setattr(section, field_name, field_value)
            else:
                setattr(new_config, key, value)
        new_config.__post_init__()
        return new_config

    def to_dict(self, *, redact: bool = True) -> dict[str, Any]:
        """Convert configuration to a dictionary. Secrets are masked unless redact=False."""
        data = asdict(self)
        if redact:
            for section, key in (
                ("ledger", "private_key"),
                ("content", "api_key"),
                ("content", "api_secret"),
            ):
                if data[section][key]:
                    data[section][key] = "***"
        return data


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set the default runtime configuration (None resets to env on next get)."""
    global _default_config
    _default_config = config
