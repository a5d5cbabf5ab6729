"""
Registry of watched directories.

The registry is a JSON document maintained by the external registration
helper:

    {"monitors": {"/abs/dir": {"manifest": ..., "last_update": ...,
                                "last_update_est": ...}}}

Listing reads the document directly. Adding and removing go through the
helper. Writes issued from this process are serialised by one lock.
"""

import json
import subprocess
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from app.models.schemas import RegistryResult, WatchedDirectory
from app.utils.config import Settings, get_settings
from app.utils.errors import DirectoryNotFoundError, OperationalError
from app.utils.helpers import display_timestamp, now_iso, require_directory

_write_lock = threading.RLock()


class RegistryStore:
    """Durable mapping of watched directories to their manifest state."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.path = self.settings.get_registry_file()

    def _load(self) -> Dict[str, Any]:
        """Read the registry document; an absent document is empty."""
        if not self.path.is_file():
            return {"monitors": {}}

        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise OperationalError(f"Failed to read registry {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise OperationalError(f"Registry {self.path} is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise OperationalError(f"Registry {self.path} is not a JSON object")

        monitors = document.get("monitors")
        if monitors is None:
            document["monitors"] = {}
        elif not isinstance(monitors, dict):
            raise OperationalError(f"Registry {self.path} has a malformed \"monitors\" section")
        return document

    def list(self) -> List[WatchedDirectory]:
        """All registered directories in document order."""
        entries = []

        for directory, data in self._load()["monitors"].items():
            data = data or {}
            if not isinstance(data, dict):
                logger.warning(f"Skipping malformed registry entry for {directory}")
                continue

            entries.append(
                WatchedDirectory(
                    directory=directory,
                    manifest=data.get("manifest"),
                    last_update=data.get("last_update"),
                    last_update_display=data.get("last_update_est"),
                )
            )

        return entries

    def directories(self) -> List[str]:
        """Registered directory paths."""
        return [entry.directory for entry in self.list()]

    def _run_helper(self, command: str, directory: str) -> str:
        """Run the registration helper and return its stdout."""
        script = self.settings.get_registry_script()

        try:
            completed = subprocess.run(
                ["bash", str(script), command, directory],
                cwd=str(self.settings.get_monitor_dir()),
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or "").strip() or f"exit code {e.returncode}"
            raise OperationalError(f"Registry {command} failed for {directory}: {detail}") from e
        except OSError as e:
            raise OperationalError(f"Failed to run registry helper: {e}") from e

        return completed.stdout

    def add(self, path: Optional[str]) -> RegistryResult:
        """
        Register a directory.

        Raises:
            InvalidRequestError: if the path is missing or does not exist
            OperationalError: if the registration helper fails
        """
        directory = require_directory(path)
        if not Path(directory).is_dir():
            raise DirectoryNotFoundError(directory)

        with _write_lock:
            output = self._run_helper("add", directory)

        logger.info(f"Registered directory: {directory}")
        return RegistryResult(success=True, message=f"Directory added: {directory}", output=output)

    def remove(self, path: Optional[str]) -> RegistryResult:
        """Deregister a directory. Removing an unknown directory is not an error here."""
        directory = require_directory(path)

        with _write_lock:
            output = self._run_helper("remove-direct", directory)

        logger.info(f"Deregistered directory: {directory}")
        return RegistryResult(success=True, message=f"Directory removed: {directory}", output=output)

    def record_update(self, directory: str, manifest: Optional[str] = None) -> bool:
        """
        Stamp a registered directory with a fresh manifest update time.

        Returns:
            False if the directory is not registered
        """
        directory = require_directory(directory)

        with _write_lock:
            document = self._load()
            entry = document["monitors"].get(directory)
            if not isinstance(entry, dict):
                if entry is not None:
                    logger.warning(f"Registry entry for {directory} is malformed; not updated")
                return False

            if manifest:
                entry["manifest"] = manifest
            entry["last_update"] = now_iso()
            entry["last_update_est"] = display_timestamp()
            self._dump(document)

        logger.debug(f"Registry updated for {directory}")
        return True

    def _dump(self, document: Dict[str, Any]) -> None:
        """Atomically replace the registry document."""
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise OperationalError(f"Failed to write registry {self.path}: {e}") from e


def get_registry_store() -> RegistryStore:
    """Get a registry store bound to the current settings."""
    return RegistryStore(get_settings())
