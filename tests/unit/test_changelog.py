import os

from domains.directory_monitor.changelog import parse_changes, recent_changes

LOG = """\
[2026-01-19 16:00:00][fswatch] Starting watch on /srv/My Project
[2026-01-19 16:00:01][fswatch] Change detected: /srv/My Project/a.txt
[2026-01-19 16:00:02][fswatch] Change detected: /srv/My Project/b.txt
[fswatch] Change detected: missing timestamp
[2026-01-19 16:00:03][fswatch] Change detected: /srv/My Project/c.txt
"""


def make_log_dir(settings, name, content, mtime=None):
    log_dir = settings.get_logs_dir() / name
    log_dir.mkdir()
    (log_dir / "monitor.log").write_text(content)
    if mtime is not None:
        os.utime(log_dir, (mtime, mtime))
    return log_dir


def test_parse_changes_newest_first():
    changes = parse_changes(LOG, "fswatch", 5)

    assert [change.file for change in changes] == [
        "/srv/My Project/c.txt",
        "/srv/My Project/b.txt",
        "/srv/My Project/a.txt",
    ]
    assert changes[0].timestamp == "2026-01-19 16:00:03"


def test_parse_changes_limit_counts_marker_lines():
    # The malformed marker line takes one of the two slots and is dropped.
    changes = parse_changes(LOG, "fswatch", 2)

    assert [change.file for change in changes] == ["/srv/My Project/c.txt"]


def test_parse_changes_zero_limit():
    assert parse_changes(LOG, "fswatch", 0) == []


def test_recent_changes_reads_latest_log_dir(settings):
    make_log_dir(settings, "ldm_my_project_old", "[t0][fswatch] Change detected: /old\n", mtime=1_000_000)
    make_log_dir(settings, "ldm_my_project_new", LOG)

    changes = recent_changes("/srv/My Project", settings=settings)

    assert len(changes) == 3
    assert changes[-1].file == "/srv/My Project/a.txt"


def test_recent_changes_honours_limit(settings):
    make_log_dir(settings, "ldm_my_project_1", LOG)

    changes = recent_changes("/srv/My Project", limit=1, settings=settings)

    assert [change.file for change in changes] == ["/srv/My Project/c.txt"]


def test_recent_changes_without_logs(settings):
    assert recent_changes("/srv/unknown", settings=settings) == []


def test_recent_changes_ignores_other_prefixes(settings):
    make_log_dir(settings, "other_my_project", LOG)

    assert recent_changes("/srv/My Project", settings=settings) == []


def test_recent_changes_empty_log_dir(settings):
    (settings.get_logs_dir() / "ldm_my_project").mkdir()

    assert recent_changes("/srv/My Project", settings=settings) == []
