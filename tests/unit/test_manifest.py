from app.models.schemas import FileRecord
from domains.directory_monitor.manifest import (
    implied_directories,
    manifest_mtime,
    parse_manifest,
    read_manifest,
)

BANNER = """\
======================================================================
LHI Directory Monitor - MANIFEST
======================================================================
Monitor PID: 2113
Generated by: Directory Monitor v1.1
Timestamp: 2026-01-19 04:10:57 PM EST
Directory: /Users/someone/projects
"""

LISTING = """\
File Listing:
-------------
".claude/PLAN.md" (4422 bytes) - Modified: 2025-08-06 13:58:55
"src/app/main.py" (128 bytes) - Modified: 2025-08-07 09:00:01
"README.md" (10 bytes) - Modified: 2025-08-01 12:00:00
"""


def test_summary_counts_take_precedence():
    text = BANNER + LISTING + "Summary:\n--------\nTotal Files: 123\nTotal Directories: 45\n"

    document = parse_manifest(text)

    assert document.timestamp == "2026-01-19 04:10:57 PM EST"
    assert document.directory == "/Users/someone/projects"
    assert document.total_files == 123
    assert document.total_directories == 45
    assert len(document.files) == 3


def test_counts_derived_without_summary():
    document = parse_manifest(BANNER + LISTING)

    assert document.total_files == 3
    # .claude, src, src/app
    assert document.total_directories == 3


def test_zero_summary_falls_back_to_listing():
    text = BANNER + LISTING + "Summary:\n--------\nTotal Files: 0\nTotal Directories: 0\n"

    document = parse_manifest(text)

    assert document.total_files == 3
    assert document.total_directories == 3


def test_summary_files_only_still_derives_directories():
    text = BANNER + LISTING + "Summary:\n--------\nTotal Files: 7\n"

    document = parse_manifest(text)

    assert document.total_files == 7
    assert document.total_directories == 3


def test_file_records_carry_fields_verbatim():
    document = parse_manifest(BANNER + LISTING)

    first = document.files[0]
    assert first == FileRecord(path=".claude/PLAN.md", size=4422, modified="2025-08-06 13:58:55")
    assert [record.path for record in document.files] == [
        ".claude/PLAN.md",
        "src/app/main.py",
        "README.md",
    ]


def test_stray_lines_in_listing_are_skipped():
    text = BANNER + (
        "File Listing:\n"
        "-------------\n"
        "[fswatch] starting watch loop\n"
        '"a.txt" (5 bytes) - Modified: yesterday\n'
        "\n"
        '"b.txt" (abc bytes) - Modified: never\n'
        "random noise\n"
    )

    document = parse_manifest(text)

    assert [record.path for record in document.files] == ["a.txt"]
    assert document.total_files == 1
    assert document.total_directories == 0


def test_summary_lines_outside_summary_are_ignored():
    text = "Total Files: 99\n" + LISTING

    document = parse_manifest(text)

    assert document.total_files == 3


def test_windows_line_endings():
    text = (BANNER + LISTING).replace("\n", "\r\n")

    document = parse_manifest(text)

    assert document.timestamp == "2026-01-19 04:10:57 PM EST"
    assert document.files[2].modified == "2025-08-01 12:00:00"


def test_empty_text():
    document = parse_manifest("")

    assert document.files == []
    assert document.total_files == 0
    assert document.total_directories == 0
    assert document.timestamp is None


def test_implied_directories_are_proper_prefixes():
    records = [
        FileRecord(path="a/b/c.txt", size=1, modified="x"),
        FileRecord(path="a/d.txt", size=1, modified="x"),
        FileRecord(path="top.txt", size=1, modified="x"),
    ]

    assert implied_directories(records) == {"a", "a/b"}


def test_read_manifest_absent(settings, watched):
    assert read_manifest(str(watched), settings) is None
    assert manifest_mtime(str(watched), settings) is None


def test_read_manifest_present(settings, watched):
    (watched / ".lhi_manifest").write_text(BANNER + LISTING)

    document = read_manifest(str(watched), settings)

    assert document is not None
    assert document.total_files == 3
    assert manifest_mtime(str(watched), settings) is not None
