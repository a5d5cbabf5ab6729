"""
Configuration management for the Directory Monitor.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API Configuration
    api_port: int = 7014
    log_level: str = "INFO"
    api_title: str = "Directory Monitor API"
    api_version: str = "1.0.0"

    # Monitor toolkit (external scripts and their logs)
    monitor_dir: Path = Path("lhi_node_modules/lhi_directory_monitor")
    monitor_script: Path = Path("src/lhi_directory_monitor.sh")
    registry_script: Path = Path("src/lhi_directory_monitor_registry.sh")
    logs_dir: Optional[Path] = None
    log_dir_prefix: str = "ldm_"

    # Process matching
    watch_utility: str = "fswatch"
    monitor_process_name: str = "lhi_directory_monitor"
    process_tag_env: str = "DIRECTORY_MONITOR_TAG"

    # Per-directory files
    manifest_filename: str = ".lhi_manifest"
    excludes_filename: str = ".lhi_excludes"
    fallback_excludes_filename: str = ".gitignore"

    # Registry document (defaults to the per-platform location)
    registry_file: Optional[Path] = None

    # Timing (seconds)
    start_settle_seconds: float = 2.0
    refresh_wait_seconds: float = 5.0
    manifest_quiet_seconds: float = 0.5
    probe_poll_interval: float = 0.25

    recent_changes_limit: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_monitor_dir(self) -> Path:
        """Absolute path of the monitor toolkit."""
        return self.monitor_dir.expanduser().absolute()

    def get_monitor_script(self) -> Path:
        """Script that runs the watch loop (and writes the manifest)."""
        return self.get_monitor_dir() / self.monitor_script

    def get_registry_script(self) -> Path:
        """Registration helper script."""
        return self.get_monitor_dir() / self.registry_script

    def get_logs_dir(self) -> Path:
        """Root directory holding per-run activity logs."""
        if self.logs_dir is not None:
            return self.logs_dir.expanduser()
        return self.get_monitor_dir() / "logs"

    def get_registry_file(self) -> Path:
        """
        Resolve the registry document location.

        macOS: ~/Library/Application Support/LHI/DirectoryMonitor/registry.json
        Other: ~/.config/lhi/directory-monitor/registry.json
        """
        if self.registry_file is not None:
            return self.registry_file.expanduser()

        if sys.platform == "darwin":
            relative = Path("Library/Application Support/LHI/DirectoryMonitor/registry.json")
        else:
            relative = Path(".config/lhi/directory-monitor/registry.json")
        return Path.home() / relative


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
