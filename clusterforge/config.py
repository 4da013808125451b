"""Runtime configuration — env-driven, immutable.

Centralized config using pydantic-settings.  Reads from a .env file and
CLUSTERFORGE_* environment variables.  Values are frozen after
construction; code receives them explicitly instead of reading mutable
module state.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ForgeConfig(BaseSettings):
    """Runtime configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CLUSTERFORGE_LOG_LEVEL=DEBUG
        export CLUSTERFORGE_ASSET_DIR=/work/cluster-0
        export CLUSTERFORGE_LOAD_FROM_DISK=false

    Or via .env file::

        CLUSTERFORGE_API_TIMEOUT_SECONDS=600
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CLUSTERFORGE_",
        env_file_encoding="utf-8",
        frozen=True,
    )

    # Logging
    log_level: str = "INFO"

    # Build
    asset_dir: Path = Path(".")
    load_from_disk: bool = True

    # Readiness polling
    api_timeout_seconds: float = 20 * 60
    api_poll_interval_seconds: float = 2.0
    api_log_downsample: int = 15
    api_verify_tls: bool = True
