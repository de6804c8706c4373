"""Data models for unmarked test collection."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def is_valid_marker_name(name: str) -> bool:
    """Marker names are used verbatim as ``pytest.mark`` attributes."""
    return bool(name) and name.isidentifier()


class DecoratorInfo(BaseModel):
    """A logical decorator line, possibly reassembled from several physical lines."""

    model_config = ConfigDict(frozen=True)

    text: str
    start_line: int
    end_line: int
    indent: int = 0

    @property
    def spans_lines(self) -> bool:
        return self.end_line > self.start_line


class TestFunctionRecord(BaseModel):
    """A ``test_*`` function definition found in source text."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(frozen=True)

    name: str
    line_number: int
    file_path: str = ""
    indent: int = 0
    is_async: bool = False
    decorators: tuple[DecoratorInfo, ...] = ()
    class_decorators: tuple[DecoratorInfo, ...] = ()
    class_names: tuple[str, ...] = ()

    @property
    def decorator_lines(self) -> list[str]:
        return [decorator.text for decorator in self.decorators]

    @property
    def qualname(self) -> str:
        return "::".join((*self.class_names, self.name))

    @property
    def node_id(self) -> str:
        """Pytest-style node id, e.g. ``tests/test_api.py::TestApi::test_get``."""
        if not self.file_path:
            return self.qualname
        return f"{self.file_path}::{self.qualname}"


class MarkerSet(BaseModel):
    """Marker names whose presence makes a test count as categorized."""

    model_config = ConfigDict(frozen=True)

    excluded_markers: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("excluded_markers")
    @classmethod
    def _check_names(cls, value: frozenset[str]) -> frozenset[str]:
        invalid = sorted(name for name in value if not is_valid_marker_name(name))
        if invalid:
            raise ValueError(f"invalid marker names: {invalid}")
        return value

    def __contains__(self, marker: object) -> bool:
        return marker in self.excluded_markers

    def sorted_names(self) -> list[str]:
        return sorted(self.excluded_markers)


class WarningKind(str, Enum):
    UNREADABLE_FILE = "unreadable_file"
    MALFORMED_SOURCE = "malformed_source"
    MISSING_ROOT = "missing_root"


class ScanWarning(BaseModel):
    """A per-file problem that was recovered from during a run."""

    model_config = ConfigDict(frozen=True)

    kind: WarningKind
    file_path: str
    message: str
    line_number: int | None = None

    @property
    def location(self) -> str:
        if self.line_number is None:
            return self.file_path
        return f"{self.file_path}:{self.line_number}"


class ScanOutcome(BaseModel):
    """Everything the scanner found in one file."""

    model_config = ConfigDict(frozen=True)

    records: tuple[TestFunctionRecord, ...] = ()
    warnings: tuple[ScanWarning, ...] = ()


class ScanResult(BaseModel):
    """Results of scanning for unmarked tests."""

    model_config = ConfigDict(frozen=True)

    unmarked: tuple[TestFunctionRecord, ...] = ()
    warnings: tuple[ScanWarning, ...] = ()
    files_scanned: int = 0
    total_tests: int = 0
    scan_duration: float = 0.0

    @property
    def has_unmarked(self) -> bool:
        return bool(self.unmarked)

    @property
    def degraded(self) -> bool:
        """True when at least one file could not be read."""
        return any(w.kind is WarningKind.UNREADABLE_FILE for w in self.warnings)
