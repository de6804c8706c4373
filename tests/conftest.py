"""Pytest configuration and fixtures."""

import textwrap
from pathlib import Path

import pytest

from cut.core.config import parse_marker_list
from cut.core.models import DecoratorInfo, MarkerSet, TestFunctionRecord
from cut.core.scanner import SourceScanner


@pytest.fixture
def scanner():
    """Scanner with default options."""
    return SourceScanner()


@pytest.fixture
def default_markers():
    """The default excluded marker set."""
    return parse_marker_list(None)


@pytest.fixture
def make_record():
    """Build a TestFunctionRecord from decorator strings."""

    def _make(*decorators: str, class_decorators: tuple[str, ...] = (), name: str = "test_x"):
        return TestFunctionRecord(
            name=name,
            line_number=len(decorators) + 1,
            decorators=tuple(
                DecoratorInfo(text=text, start_line=i, end_line=i)
                for i, text in enumerate(decorators, start=1)
            ),
            class_decorators=tuple(
                DecoratorInfo(text=text, start_line=1, end_line=1) for text in class_decorators
            ),
        )

    return _make


@pytest.fixture
def markers():
    """Build a MarkerSet from names."""

    def _markers(*names: str) -> MarkerSet:
        return MarkerSet(excluded_markers=frozenset(names))

    return _markers


@pytest.fixture
def write_file(tmp_path):
    """Write dedented source to a file below tmp_path and return its path."""

    def _write(relative: str, source: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write
