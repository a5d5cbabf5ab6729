"""Shared fixtures: isolated settings, a fake process table and a fake spawner."""

import time
from pathlib import Path

import psutil
import pytest

from app.utils import config
from domains.directory_monitor import lifecycle


class FakeProcess:
    """Stand-in for psutil.Process as yielded by process_iter."""

    def __init__(self, table, pid, cmdline, environ=None, started=None):
        self.table = table
        self.pid = pid
        self.info = {"pid": pid, "cmdline": list(cmdline)}
        self._environ = environ
        self._started = started

    def environ(self):
        if self._environ is None:
            raise psutil.AccessDenied(self.pid)
        return self._environ

    def create_time(self):
        if self._started is None:
            raise psutil.AccessDenied(self.pid)
        return self._started

    def terminate(self):
        if self not in self.table.processes:
            raise psutil.NoSuchProcess(self.pid)
        self.table.processes.remove(self)
        self.table.terminated.append(self.pid)


class ProcessTable:
    """In-memory process table served through psutil.process_iter."""

    def __init__(self):
        self.processes = []
        self.terminated = []
        self._next_pid = 1000

    def spawn(self, *cmdline, environ=None, age=65.0, pid=None):
        if pid is None:
            self._next_pid += 1
            pid = self._next_pid
        process = FakeProcess(self, pid, cmdline, environ, time.time() - age)
        self.processes.append(process)
        return process

    def process_iter(self, attrs=None, ad_value=None):
        return iter(list(self.processes))


class FakePopen:
    """Records launches instead of starting processes."""

    def __init__(self, recorder, args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.pid = 4242 + len(recorder.launches)
        self.returncode = recorder.returncode
        recorder.launches.append(self)
        if recorder.on_spawn is not None:
            recorder.on_spawn(self)

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        return self.returncode


class Spawner:
    """Configurable replacement for subprocess.Popen in the lifecycle module."""

    def __init__(self):
        self.launches = []
        self.on_spawn = None
        self.returncode = None

    def __call__(self, args, **kwargs):
        return FakePopen(self, args, **kwargs)


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a temporary toolkit and registry, with short waits."""
    toolkit = tmp_path / "toolkit"
    (toolkit / "src").mkdir(parents=True)
    (toolkit / "src" / "lhi_directory_monitor.sh").write_text("#!/bin/bash\n")
    (toolkit / "logs").mkdir()

    monkeypatch.setenv("MONITOR_DIR", str(toolkit))
    monkeypatch.setenv("REGISTRY_FILE", str(tmp_path / "registry.json"))
    monkeypatch.setenv("START_SETTLE_SECONDS", "0.05")
    monkeypatch.setenv("REFRESH_WAIT_SECONDS", "1.0")
    monkeypatch.setenv("MANIFEST_QUIET_SECONDS", "0.05")
    monkeypatch.setenv("PROBE_POLL_INTERVAL", "0.01")

    config.get_settings.cache_clear()
    monkeypatch.setattr(lifecycle, "_controller", None)
    yield config.get_settings()
    config.get_settings.cache_clear()


@pytest.fixture
def watched(tmp_path) -> Path:
    """An existing directory to monitor."""
    directory = tmp_path / "watched"
    directory.mkdir()
    return directory


@pytest.fixture
def process_table(monkeypatch):
    """Replace the OS process table seen by the probe and the stop path."""
    table = ProcessTable()
    monkeypatch.setattr(psutil, "process_iter", table.process_iter)
    monkeypatch.setattr(psutil, "wait_procs", lambda procs, timeout=None: (list(procs), []))
    return table


@pytest.fixture
def spawner(monkeypatch):
    """Replace subprocess.Popen for the lifecycle controller."""
    fake = Spawner()
    monkeypatch.setattr(lifecycle.subprocess, "Popen", fake)
    return fake
