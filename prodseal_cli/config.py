"""
CLI Configuration

Configuration management for the prodseal CLI. Wraps the runtime config
with CLI-only settings (logging) and supports JSON or YAML files plus
environment variables.
"""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from core.commitment import CommitmentEngine, Deadline, VerificationEngine
from core.config.runtime import RuntimeConfig
from core.stores.factory import Collaborators, build_collaborators, build_engines


# Environment variable prefix
ENV_PREFIX = "PRODSEAL_"

DEFAULT_CONFIG_PATHS = (
    Path("prodseal.json"),
    Path(".prodseal.json"),
    Path.home() / ".config" / "prodseal" / "config.json",
)


@dataclass
class CLIConfig:
    """Main CLI configuration."""

    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r") as f:
        if path.suffix in (".yaml", ".yml"):
            import yaml
            return yaml.safe_load(f) or {}
        return json.load(f)


def load_config_from_file(path: Path) -> CLIConfig:
    """Load configuration from a JSON or YAML file."""
    data = _read_file(path)
    return CLIConfig(
        runtime=RuntimeConfig.from_dict(data),
        log_level=data.get("log_level", "INFO"),
        log_file=data.get("log_file"),
    )


def load_config(config_path: Path | None = None) -> CLIConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to config file

    Returns:
        Merged configuration
    """
    config = CLIConfig()

    if config_path is not None:
        config = load_config_from_file(config_path)
    else:
        for default_path in DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                config = load_config_from_file(default_path)
                break

    config.runtime = config.runtime.with_env_overrides()
    if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config.log_level = os.environ[f"{ENV_PREFIX}LOG_LEVEL"]
    if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config.log_file = os.environ[f"{ENV_PREFIX}LOG_FILE"]
    return config


@dataclass
class Engines:
    committer: CommitmentEngine
    verifier: VerificationEngine
    collaborators: Collaborators
    deadline_s: float | None = None

    def deadline(self) -> Deadline:
        if self.deadline_s is None:
            return Deadline.never()
        return Deadline.after(self.deadline_s)


@contextmanager
def open_engines(runtime: RuntimeConfig) -> Iterator[Engines]:
    """Build collaborators and engines for one command; closes them on exit."""
    collaborators = build_collaborators(runtime)
    try:
        committer, verifier = build_engines(runtime, collaborators)
        yield Engines(
            committer=committer,
            verifier=verifier,
            collaborators=collaborators,
            deadline_s=runtime.deadline_s,
        )
    finally:
        collaborators.close()


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """{
  "backend": "local",
  "deadline_s": 180,
  "log_level": "INFO",
  "log_file": null,
  "ledger": {
    "rpc_url": "https://rpc-amoy.polygon.technology/",
    "contract_address": null,
    "tx_timeout_s": 120,
    "db_path": "./data/ledger.db"
  },
  "content": {
    "gateway_url": "https://gateway.pinata.cloud/ipfs",
    "timeout_s": 30,
    "max_attempts": 3,
    "data_dir": "./data/content"
  },
  "salts": {
    "db_path": "./data/salts.db",
    "max_attempts": 3
  },
  "cache": {
    "enabled": true,
    "ttl_s": 300
  }
}
"""
