"""Runtime configuration: env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from .env file and PROVENANT_* environment variables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProvenantConfig(BaseSettings):
    """Host configuration with environment variable overrides.

    All settings can be overridden via PROVENANT_* environment variables
    or a .env file in the project root.

    Examples
    --------
    Override via environment::

        export PROVENANT_ENVIRONMENT=staging
        export PROVENANT_LOG_LEVEL=DEBUG
        export PROVENANT_STATE_BACKEND=sqlite
        export PROVENANT_STATE_PATH=/data/state.db

    Or via .env file::

        PROVENANT_DEPLOYER_IDENTITY=ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM
        PROVENANT_JOURNAL_RECEIPTS=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PROVENANT_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # State store
    state_backend: Literal["memory", "sqlite"] = "memory"
    state_path: Path = Path(".provenant/state.db")

    # Receipts
    journal_receipts: bool = True
    receipts_path: Path = Path(".provenant/receipts.db")

    # Ledger bootstrap
    deployer_identity: str = "deployer"  # initial admin on a fresh store
    genesis_block_height: int = Field(default=0, ge=0)
