"""Utility functions for finding and reading test files."""

from __future__ import annotations

import logging
from pathlib import Path

from cut.core.exceptions import UnreadableFileError

logger = logging.getLogger(__name__)

IGNORED_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".tox",
        ".nox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "__pycache__",
        ".venv",
        "venv",
        "node_modules",
    }
)


def iter_python_files(root: Path) -> list[Path]:
    """
    Recursively collect ``*.py`` files under ``root`` in a stable order.

    Directories in ``IGNORED_DIRS`` below the root are skipped. A root that is
    itself a ``.py`` file is returned as-is.
    """
    if root.is_file():
        return [root] if root.suffix == ".py" else []

    files = [
        p
        for p in root.rglob("*.py")
        if p.is_file() and not any(part in IGNORED_DIRS for part in p.relative_to(root).parts[:-1])
    ]
    return sorted(files, key=lambda p: p.relative_to(root).parts)


def read_source(path: Path) -> str:
    """
    Read a source file as UTF-8.

    Raises:
        UnreadableFileError: if the file cannot be read or is not valid UTF-8
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise UnreadableFileError(path, f"not valid UTF-8 ({e.reason})") from e
    except OSError as e:
        raise UnreadableFileError(path, e.strerror or str(e)) from e


def display_path(path: Path) -> str:
    """Path as shown in reports: relative to the working directory when possible."""
    if not path.is_absolute():
        return path.as_posix()
    try:
        return path.resolve().relative_to(Path.cwd().resolve()).as_posix()
    except ValueError:
        return path.as_posix()
