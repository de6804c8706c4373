"""Tests for collecting unmarked tests across files."""

from pathlib import Path
from typing import Any

import pytest

from cut.core.collector import UnmarkedTestCollector, run
from cut.core.models import WarningKind
from cut.core.utils import iter_python_files


class RecordingProgressCallback:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def update(self, message: str, **fields: Any) -> None:
        self.calls.append((message, fields))


def node_ids(result):
    return [record.node_id for record in result.unmarked]


@pytest.mark.unit
def test_marked_and_unmarked_in_one_file(markers):
    source = "@pytest.mark.unit\ndef test_a(): pass\n\ndef test_b(): pass"
    result = run([("test_mod.py", source)], markers("unit"))

    assert node_ids(result) == ["test_mod.py::test_b"]
    assert result.has_unmarked
    assert result.total_tests == 2
    assert result.files_scanned == 1


@pytest.mark.unit
def test_single_undecorated_test_with_defaults(default_markers):
    result = run([("test_mod.py", "def test_a(): pass")], default_markers)
    assert [r.name for r in result.unmarked] == ["test_a"]


@pytest.mark.unit
def test_empty_marker_set_reports_every_test(markers):
    source = "@pytest.mark.unit\ndef test_a(): pass\n\n@skip\ndef test_b(): pass\n"
    result = run([("test_mod.py", source)], markers())
    assert [r.name for r in result.unmarked] == ["test_a", "test_b"]


@pytest.mark.unit
def test_no_unmarked_tests(default_markers):
    result = run([("test_mod.py", "@pytest.mark.slow\ndef test_a(): pass\n")], default_markers)
    assert result.unmarked == ()
    assert not result.has_unmarked


@pytest.mark.unit
def test_results_follow_file_then_line_order(markers):
    files = [
        ("z_test.py", "def test_z1(): pass\ndef test_z2(): pass\n"),
        ("a_test.py", "def test_a1(): pass\n"),
        (Path("m_test.py"), "class TestM:\n    def test_m(self): pass\n"),
    ]
    result = run(files, markers("unit"))
    assert node_ids(result) == [
        "z_test.py::test_z1",
        "z_test.py::test_z2",
        "a_test.py::test_a1",
        "m_test.py::TestM::test_m",
    ]


@pytest.mark.unit
def test_parallel_run_matches_sequential(markers):
    files = [
        (f"test_{i:03d}.py", "".join(f"def test_{i}_{j}(): pass\n" for j in range(i % 5 + 1)))
        for i in range(60)
    ]
    sequential = UnmarkedTestCollector(markers("unit"), jobs=1).run(files)
    parallel = UnmarkedTestCollector(markers("unit"), jobs=8).run(files)

    assert node_ids(parallel) == node_ids(sequential)
    assert parallel.total_tests == sequential.total_tests


@pytest.mark.unit
def test_malformed_source_is_a_warning(markers):
    files = [
        ("bad.py", "@pytest.mark.parametrize(\n    'x',\ndef test_a():\n    pass\n"),
        ("good.py", "def test_b(): pass\n"),
    ]
    result = run(files, markers("unit"))

    assert node_ids(result) == ["bad.py::test_a", "good.py::test_b"]
    (warning,) = result.warnings
    assert warning.kind is WarningKind.MALFORMED_SOURCE
    assert warning.location == "bad.py:1"
    assert not result.degraded


@pytest.mark.integration
def test_collect_walks_directories_in_stable_order(write_file, tmp_path, default_markers):
    write_file("tests/unit/test_b.py", "def test_b(): pass\n")
    write_file("tests/unit/test_a.py", "@pytest.mark.unit\ndef test_a(): pass\n")
    write_file("tests/integration/test_c.py", "def test_c(): pass\n")
    write_file("tests/.venv/lib/test_vendored.py", "def test_vendored(): pass\n")
    write_file("tests/data/notes.txt", "def test_not_python(): pass\n")

    collector = UnmarkedTestCollector(default_markers)
    result = collector.collect([tmp_path / "tests"])

    assert [r.name for r in result.unmarked] == ["test_c", "test_b"]
    assert result.files_scanned == 3
    assert result.total_tests == 3
    assert result.warnings == ()


@pytest.mark.integration
def test_collect_continues_past_unreadable_file(write_file, tmp_path, default_markers):
    write_file("tests/test_ok.py", "def test_ok(): pass\n")
    (tmp_path / "tests" / "test_binary.py").write_bytes(b"def test_x(): pass\n\xff\xfe\x00")

    result = UnmarkedTestCollector(default_markers).collect([tmp_path / "tests"])

    assert [r.name for r in result.unmarked] == ["test_ok"]
    assert result.files_scanned == 1
    (warning,) = result.warnings
    assert warning.kind is WarningKind.UNREADABLE_FILE
    assert warning.file_path.endswith("test_binary.py")
    assert result.degraded


@pytest.mark.integration
def test_collect_reports_missing_roots(write_file, tmp_path, default_markers):
    write_file("pkg_a/tests/test_a.py", "def test_a(): pass\n")

    result = UnmarkedTestCollector(default_markers).collect(
        [tmp_path / "pkg_a", tmp_path / "pkg_missing"]
    )

    assert [r.name for r in result.unmarked] == ["test_a"]
    (warning,) = result.warnings
    assert warning.kind is WarningKind.MISSING_ROOT
    assert not result.degraded


@pytest.mark.integration
def test_collect_reports_progress(write_file, tmp_path, default_markers):
    write_file("tests/test_a.py", "def test_a(): pass\n")
    write_file("tests/test_b.py", "def test_b(): pass\n")
    callback = RecordingProgressCallback()

    UnmarkedTestCollector(default_markers, jobs=2).collect([tmp_path / "tests"], progress_callback=callback)

    assert [fields["completed"] for _, fields in callback.calls] == [1, 2]
    assert all(fields["total"] == 2 for _, fields in callback.calls)
    assert callback.calls[0][0].endswith("test_a.py")


@pytest.mark.integration
def test_iter_python_files_accepts_single_file(write_file, tmp_path):
    path = write_file("test_single.py", "def test_a(): pass\n")
    other = write_file("README.md", "# docs\n")

    assert iter_python_files(path) == [path]
    assert iter_python_files(other) == []
