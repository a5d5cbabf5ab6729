"""
Process probe for watch processes.

Answers "is a watch process running for this directory?" by scanning the
OS process table on every call. Nothing is cached: a stale answer would
let the UI and the real process state drift apart.

Processes spawned by the lifecycle controller carry a per-directory tag in
their environment, which is matched exactly. Processes without a readable
tag (started by hand or by older tooling) fall back to loose command-line
matching: the utility name followed somewhere by the directory path.
"""

import os
import re
import time
from typing import List, Optional

import psutil
from loguru import logger

from app.models.schemas import ProbeResult
from app.utils.config import Settings, get_settings
from app.utils.helpers import directory_tag, format_elapsed


class ProcessProbe:
    """Finds processes working on a watched directory."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize probe.

        Args:
            settings: Application settings (defaults to cached settings)
        """
        self.settings = settings or get_settings()

    def _read_tag(self, process: psutil.Process) -> Optional[str]:
        """Per-directory tag from the process environment, if readable."""
        try:
            return process.environ().get(self.settings.process_tag_env)
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, OSError):
            return None

    def find(self, directory: str, name: str) -> List[psutil.Process]:
        """
        Find processes whose command line names `name` and work on `directory`.

        Args:
            directory: Watched directory path
            name: Executable or script name to look for

        Returns:
            Matching processes in process-table order
        """
        pattern = re.compile(re.escape(name) + r".*" + re.escape(directory))
        tag = directory_tag(directory)
        own_pid = os.getpid()
        matches = []

        for process in psutil.process_iter(attrs=["pid", "cmdline"], ad_value=None):
            info = process.info
            if info.get("pid") == own_pid:
                continue

            cmdline = " ".join(info.get("cmdline") or [])
            if name not in cmdline:
                continue

            process_tag = self._read_tag(process)
            if process_tag is not None:
                if process_tag == tag:
                    matches.append(process)
            elif pattern.search(cmdline):
                matches.append(process)

        return matches

    def uptime(self, process: psutil.Process) -> Optional[str]:
        """Elapsed time since the process started, or None if unknown."""
        try:
            return format_elapsed(time.time() - process.create_time())
        except (psutil.NoSuchProcess, psutil.AccessDenied, OSError) as e:
            logger.debug(f"Uptime lookup failed for pid {process.pid}: {e}")
            return None

    def probe(self, directory: str) -> ProbeResult:
        """
        Check whether a watch process is active for a directory.

        More than one match is tolerated; the first is reported and the
        total count is left for the caller to judge.
        """
        matches = self.find(directory, self.settings.watch_utility)
        if not matches:
            return ProbeResult(running=False)

        first = matches[0]
        if len(matches) > 1:
            logger.warning(f"{len(matches)} watch processes found for {directory}")

        return ProbeResult(
            running=True,
            pid=first.pid,
            uptime=self.uptime(first),
            pids=[process.pid for process in matches],
            match_count=len(matches),
        )
