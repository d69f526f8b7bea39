"""
API Dependencies

Dependency injection for the API. Engines are built once per process from
the runtime config; tests replace them through app.dependency_overrides.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from core.commitment import CommitmentEngine, Deadline, VerificationEngine
from core.config.runtime import RuntimeConfig
from core.stores.factory import Collaborators, build_collaborators, build_engines

logger = logging.getLogger(__name__)


def _load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from config file, then overlay environment variables.

    Search order for config file:
      1. ./prodseal.json
      2. ./.prodseal.json
      3. ~/.config/prodseal/config.json

    Environment variables ALWAYS override config file values.
    The .env file is loaded automatically by core.config.runtime on import.
    """
    search_paths = [
        Path.cwd() / "prodseal.json",
        Path.cwd() / ".prodseal.json",
        Path.home() / ".config" / "prodseal" / "config.json",
    ]

    config: RuntimeConfig | None = None

    for path in search_paths:
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                logger.info(f"Loaded config from {path}")
                config = RuntimeConfig.from_dict(data)
                break
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to parse {path}: {e}")

    if config is None:
        config = RuntimeConfig()

    return config.with_env_overrides()


@dataclass
class ProductService:
    """Engines plus the config they were built from."""
    config: RuntimeConfig
    collaborators: Collaborators
    committer: CommitmentEngine
    verifier: VerificationEngine

    def deadline(self) -> Deadline:
        if self.config.deadline_s is None:
            return Deadline.never()
        return Deadline.after(self.config.deadline_s)

    def close(self) -> None:
        self.collaborators.close()


def build_service(config: Optional[RuntimeConfig] = None) -> ProductService:
    config = config or _load_runtime_config()
    collaborators = build_collaborators(config)
    committer, verifier = build_engines(config, collaborators)
    return ProductService(
        config=config,
        collaborators=collaborators,
        committer=committer,
        verifier=verifier,
    )


@lru_cache(maxsize=1)
def get_service() -> ProductService:
    """Process-wide service, built on first request."""
    service = build_service()
    logger.info(f"Product service ready (backend={service.config.backend})")
    return service
