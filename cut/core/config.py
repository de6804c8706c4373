"""Configuration for unmarked test collection."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cut.core.exceptions import InvalidMarkerConfigurationError
from cut.core.models import MarkerSet, is_valid_marker_name

DEFAULT_EXCLUDED_MARKERS: tuple[str, ...] = ("unit", "integration", "component", "skip", "slow")
DEFAULT_TEST_PREFIX = "test_"
DEFAULT_MAX_CONTINUATION_LINES = 100


class ScannerOptions(BaseModel):
    """Options controlling how source text is scanned."""

    model_config = ConfigDict(frozen=True)

    test_prefix: str = DEFAULT_TEST_PREFIX
    strict_comments: bool = False
    max_continuation_lines: int = Field(default=DEFAULT_MAX_CONTINUATION_LINES, ge=1)

    @field_validator("test_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"test prefix must be an identifier, got {value!r}")
        return value


def split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",")]


def build_marker_set(markers: Iterable[str]) -> MarkerSet:
    """
    Validate marker names and build a MarkerSet.

    Raises:
        InvalidMarkerConfigurationError: if a name is empty or not an identifier
    """
    names = list(markers)
    for name in names:
        if not name:
            raise InvalidMarkerConfigurationError("Empty marker name in marker list", marker=name)
        if not is_valid_marker_name(name):
            raise InvalidMarkerConfigurationError(f"Invalid marker name: {name!r}", marker=name)
    return MarkerSet(excluded_markers=frozenset(names))


def parse_marker_list(value: str | None) -> MarkerSet:
    """
    Parse a comma-separated marker list such as ``"unit,integration"``.

    ``None`` selects the default markers. Surrounding whitespace around each
    name is ignored, whitespace inside a name is an error.
    """
    if value is None:
        return build_marker_set(DEFAULT_EXCLUDED_MARKERS)
    return build_marker_set(split_csv(value))
