"""
Monitor lifecycle controller.

Per directory: stopped -> starting -> running -> stopping -> stopped.
Running/stopped is always derived from a fresh probe; starting/stopping
are only reported while a call is in flight in this process.

There is no mutual exclusion between callers. Two concurrent starts for
the same directory can both observe "not running" and both spawn; a
later stop terminates every match, so the state converges.
"""

import os
import signal
import subprocess
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import psutil
from loguru import logger

from app.models.schemas import (
    MonitorActionResult,
    MonitorState,
    MonitorStatus,
    ProbeResult,
    RefreshResult,
)
from app.utils.config import Settings, get_settings
from app.utils.errors import DirectoryNotFoundError, OperationalError
from app.utils.helpers import directory_tag, require_directory
from domains.directory_monitor.manifest import manifest_mtime, manifest_path
from domains.directory_monitor.probe import ProcessProbe
from domains.directory_monitor.watchers.manifest import ManifestWaiter


class MonitorController:
    """Starts, stops and refreshes watch processes per directory."""

    def __init__(self, settings: Optional[Settings] = None, probe: Optional[ProcessProbe] = None):
        """
        Initialize controller.

        Args:
            settings: Application settings (defaults to cached settings)
            probe: Process probe (defaults to one built from settings)
        """
        self.settings = settings or get_settings()
        self.probe = probe or ProcessProbe(self.settings)
        self._in_flight: Dict[str, List[MonitorState]] = {}
        self._lock = threading.Lock()

    @contextmanager
    def _transition(self, directory: str, state: MonitorState):
        # Overlapping calls each hold an entry; the newest one is reported.
        with self._lock:
            self._in_flight.setdefault(directory, []).append(state)
        try:
            yield
        finally:
            with self._lock:
                pending = self._in_flight[directory]
                pending.remove(state)
                if not pending:
                    del self._in_flight[directory]

    def _require_existing(self, directory: str) -> None:
        if not Path(directory).is_dir():
            raise DirectoryNotFoundError(directory)

    # Status -----------------------------------------------------------------------

    def status(self, directory: str) -> MonitorStatus:
        """
        Current status of a directory's watch process.

        Args:
            directory: Watched directory path

        Returns:
            Probe result combined with any in-flight transition
        """
        directory = require_directory(directory)
        probe = self.probe.probe(directory)

        with self._lock:
            pending = self._in_flight.get(directory)
            state = pending[-1] if pending else None
        if state is None:
            state = MonitorState.RUNNING if probe.running else MonitorState.STOPPED

        return MonitorStatus(
            directory=directory,
            state=state,
            running=probe.running,
            pid=probe.pid,
            uptime=probe.uptime,
            match_count=probe.match_count,
            last_manifest_update=manifest_mtime(directory, self.settings),
        )

    def status_many(self, directories: Iterable[str]) -> List[MonitorStatus]:
        """Status for several directories; one failure never hides the others."""
        statuses = []

        for directory in directories:
            try:
                statuses.append(self.status(directory))
            except Exception as e:
                logger.error(f"Status check failed for {directory}: {e}")
                statuses.append(
                    MonitorStatus(
                        directory=directory,
                        state=MonitorState.STOPPED,
                        running=False,
                        error=str(e),
                    )
                )

        return statuses

    # Spawning ---------------------------------------------------------------------

    def _spawn(self, directory: str, extra_args: Sequence[str] = ()) -> subprocess.Popen:
        """Launch the monitor script for a directory in its own session."""
        script = self.settings.get_monitor_script()
        if not script.is_file():
            raise OperationalError(f"Monitor script not found: {script}")

        env = dict(os.environ)
        env[self.settings.process_tag_env] = directory_tag(directory)

        try:
            child = subprocess.Popen(
                ["bash", str(script), "-d", directory, *extra_args],
                cwd=str(self.settings.get_monitor_dir()),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            raise OperationalError(f"Failed to launch monitor for {directory}: {e}") from e

        logger.debug(f"Spawned monitor script for {directory} (pid {child.pid})")
        return child

    def _await_running(self, directory: str, child: subprocess.Popen) -> ProbeResult:
        """Poll the probe until the watch process shows up or the settle interval ends."""
        deadline = time.monotonic() + self.settings.start_settle_seconds

        while True:
            result = self.probe.probe(directory)
            if result.running:
                return result

            code = child.poll()
            if code is not None and code != 0:
                raise OperationalError(f"Monitor for {directory} exited with code {code}")

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return result
            time.sleep(min(self.settings.probe_poll_interval, remaining))

    # Transitions ------------------------------------------------------------------

    def start(self, directory: str) -> MonitorActionResult:
        """
        Start watching a directory.

        A no-op when a watch process is already running. Otherwise the
        monitor script is launched detached and the call blocks for at
        most the settle interval until the probe sees it.
        """
        directory = require_directory(directory)
        self._require_existing(directory)

        current = self.probe.probe(directory)
        if current.running:
            logger.info(f"Monitor already running for {directory} (pid {current.pid})")
            return MonitorActionResult(
                success=True,
                message="Monitor already running for this directory",
                directory=directory,
                state=MonitorState.RUNNING,
                already_running=True,
                pid=current.pid,
            )

        with self._transition(directory, MonitorState.STARTING):
            logger.info(f"Starting monitor for {directory}")
            child = self._spawn(directory, ["--verbose"])
            result = self._await_running(directory, child)

        if result.running:
            logger.success(f"Monitor started for {directory} (pid {result.pid})")
            return MonitorActionResult(
                success=True,
                message=f"Monitor started for {directory}",
                directory=directory,
                state=MonitorState.RUNNING,
                pid=result.pid,
            )

        logger.warning(f"Monitor launched for {directory} but no watch process seen yet")
        return MonitorActionResult(
            success=True,
            message=f"Monitor launched for {directory}; watch process not observed yet",
            directory=directory,
            state=MonitorState.STARTING,
        )

    def _terminate(self, processes: List[psutil.Process]) -> List[int]:
        """SIGTERM each process; vanished or protected ones are skipped."""
        signalled = []

        for process in processes:
            try:
                process.terminate()
                signalled.append(process.pid)
            except psutil.NoSuchProcess:
                logger.debug(f"Process {process.pid} already exited")
            except psutil.AccessDenied:
                logger.warning(f"Not permitted to stop process {process.pid}")

        return signalled

    def stop(self, directory: str) -> MonitorActionResult:
        """
        Stop every watch and helper process for a directory.

        Finding nothing to stop is a success.
        """
        directory = require_directory(directory)

        with self._transition(directory, MonitorState.STOPPING):
            watchers = self.probe.find(directory, self.settings.watch_utility)
            stopped = self._terminate(watchers)

            helpers = [
                process
                for process in self.probe.find(directory, self.settings.monitor_process_name)
                if process.pid not in stopped
            ]
            stopped += self._terminate(helpers)

            if stopped:
                psutil.wait_procs(watchers + helpers, timeout=self.settings.start_settle_seconds)

        if stopped:
            logger.success(f"Monitor stopped for {directory} (pids {stopped})")
        else:
            logger.info(f"No monitor processes running for {directory}")

        return MonitorActionResult(
            success=True,
            message=f"Monitor stopped for {directory}",
            directory=directory,
            state=MonitorState.STOPPED,
            stopped_pids=stopped,
        )

    def _terminate_group(self, child: subprocess.Popen) -> None:
        """SIGTERM the process group of a child started in its own session."""
        try:
            os.killpg(child.pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.debug(f"Process group {child.pid} already exited")
        except PermissionError as e:
            logger.warning(f"Could not signal process group {child.pid}: {e}")

        try:
            child.wait(timeout=self.settings.probe_poll_interval * 4)
        except subprocess.TimeoutExpired:
            logger.debug(f"Process group {child.pid} still exiting")

    def refresh(self, directory: str) -> RefreshResult:
        """
        Regenerate the manifest of a directory.

        Runs the monitor script once, waits until the manifest has been
        written and gone quiet (bounded by the refresh interval), then
        terminates the spawned process group so its watch loop does not
        linger.
        """
        directory = require_directory(directory)
        self._require_existing(directory)

        manifest = manifest_path(directory, self.settings)
        started = time.monotonic()
        logger.info(f"Refreshing manifest for {directory}")

        try:
            with ManifestWaiter(manifest, self.settings.manifest_quiet_seconds) as waiter:
                child = self._spawn(directory)
                try:
                    written = waiter.wait(self.settings.refresh_wait_seconds)
                finally:
                    self._terminate_group(child)
        except OSError as e:
            raise OperationalError(f"Failed to watch {directory} for manifest writes: {e}") from e

        waited = round(time.monotonic() - started, 2)

        if written:
            logger.success(f"Manifest refreshed for {directory} in {waited}s")
            message = "Manifest refreshed"
        else:
            logger.warning(f"No manifest write observed for {directory} within {waited}s")
            message = "Manifest generator ran but no manifest write was observed"

        return RefreshResult(
            success=True,
            message=message,
            directory=directory,
            manifest_updated=written,
            waited_seconds=waited,
        )


# Global controller instance
_controller: Optional[MonitorController] = None


def get_monitor_controller() -> MonitorController:
    """Get global monitor controller instance."""
    global _controller
    if _controller is None:
        _controller = MonitorController()
    return _controller
