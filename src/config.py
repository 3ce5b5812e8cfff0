from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Probing
    poll_interval_seconds: float = 10.0
    strict_check: bool = False  # all probes must succeed
    probe_timeout_seconds: float = 3.0
    default_prober: str = "tcp"  # "tcp" | "http"; runs probes given only a target

    # Probe list (absolute or relative to CWD); missing file = built-in defaults
    probes_file: str = "probes.yaml"

    # Host link-state watcher (re-probe when interfaces go up/down)
    link_watch_enabled: bool = True
    link_watch_interval_seconds: float = 2.0

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    stream_keepalive_seconds: int = 30

    # Logging
    log_level: str = "INFO"

    @property
    def probes_path(self) -> Path:
        return Path(self.probes_file)


settings = Settings()
