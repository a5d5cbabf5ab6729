import os

from app.utils.helpers import directory_tag
from domains.directory_monitor.probe import ProcessProbe


def test_no_processes_means_not_running(settings, process_table):
    result = ProcessProbe(settings).probe("/srv/project")

    assert result.running is False
    assert result.pid is None
    assert result.match_count == 0


def test_untagged_process_matches_loosely(settings, process_table):
    process = process_table.spawn("fswatch", "-r", "/srv/project", age=65)

    result = ProcessProbe(settings).probe("/srv/project")

    assert result.running is True
    assert result.pid == process.pid
    assert result.uptime == "01:05"
    assert result.match_count == 1


def test_utility_must_precede_directory(settings, process_table):
    process_table.spawn("tail", "/srv/project/fswatch.log")

    assert ProcessProbe(settings).probe("/srv/project").running is False


def test_tagged_process_matches_only_its_directory(settings, process_table):
    # Loose matching would confuse these: one path is a prefix of the other.
    short = process_table.spawn(
        "fswatch", "/srv/app", environ={"DIRECTORY_MONITOR_TAG": directory_tag("/srv/app")}
    )
    process_table.spawn(
        "fswatch", "/srv/app-backup", environ={"DIRECTORY_MONITOR_TAG": directory_tag("/srv/app-backup")}
    )

    probe = ProcessProbe(settings)

    assert [p.pid for p in probe.find("/srv/app", "fswatch")] == [short.pid]
    assert probe.probe("/srv/app-backup").match_count == 1


def test_readable_environment_without_tag_uses_loose_match(settings, process_table):
    process_table.spawn("fswatch", "/srv/project", environ={"PATH": "/usr/bin"})

    assert ProcessProbe(settings).probe("/srv/project").running is True


def test_multiple_matches_report_first(settings, process_table):
    first = process_table.spawn("fswatch", "/srv/project")
    second = process_table.spawn("fswatch", "/srv/project")

    result = ProcessProbe(settings).probe("/srv/project")

    assert result.pid == first.pid
    assert result.pids == [first.pid, second.pid]
    assert result.match_count == 2


def test_own_process_is_ignored(settings, process_table):
    process_table.spawn("fswatch", "/srv/project", pid=os.getpid())

    assert ProcessProbe(settings).probe("/srv/project").running is False


def test_unknown_start_time_leaves_uptime_empty(settings, process_table):
    process = process_table.spawn("fswatch", "/srv/project")
    process._started = None

    result = ProcessProbe(settings).probe("/srv/project")

    assert result.running is True
    assert result.uptime is None


def test_probe_is_not_cached(settings, process_table):
    probe = ProcessProbe(settings)
    process = process_table.spawn("fswatch", "/srv/project")
    assert probe.probe("/srv/project").running is True

    process_table.processes.remove(process)

    assert probe.probe("/srv/project").running is False
