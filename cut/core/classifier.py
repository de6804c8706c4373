"""Decide whether a test function carries one of the excluded markers."""

import logging
import re
from collections.abc import Iterator
from enum import Enum

from cut.core.models import DecoratorInfo, MarkerSet, TestFunctionRecord

logger = logging.getLogger(__name__)

# Anything after the marker name must be a call, a comment or nothing.
_TAIL = r"\s*(?:\(.*|#.*)?$"

PYTEST_MARK_RE = re.compile(r"^@\s*pytest\s*\.\s*mark\s*\.\s*([A-Za-z_]\w*)" + _TAIL)
BARE_NAME_RE = re.compile(r"^@\s*([A-Za-z_]\w*)" + _TAIL)


class MarkStatus(str, Enum):
    MARKED = "marked"
    UNMARKED = "unmarked"


def extract_marker(decorator_line: str) -> str | None:
    """
    Extract the marker name from a decorator line.

    Handles:
        @pytest.mark.unit               -> "unit"
        @pytest.mark.parametrize(...)   -> "parametrize"
        @skip / @skip("reason")         -> "skip"

    Dotted decorators that are not ``pytest.mark.*`` (``@mock.patch``,
    ``@pytest.fixture``) carry no marker.
    """
    line = decorator_line.strip()

    match = PYTEST_MARK_RE.match(line)
    if match:
        return match.group(1)

    match = BARE_NAME_RE.match(line)
    if match and match.group(1) != "pytest":
        return match.group(1)

    return None


def _all_decorators(record: TestFunctionRecord) -> Iterator[DecoratorInfo]:
    yield from record.decorators
    yield from record.class_decorators


def matched_markers(record: TestFunctionRecord, excluded: MarkerSet) -> list[str]:
    """Return the excluded markers found on a record, in decorator order."""
    found: list[str] = []
    for decorator in _all_decorators(record):
        marker = extract_marker(decorator.text)
        if marker is not None and marker in excluded and marker not in found:
            found.append(marker)
    return found


def classify(record: TestFunctionRecord, excluded: MarkerSet) -> MarkStatus:
    """Classify a record as marked or unmarked against the excluded markers."""
    for decorator in _all_decorators(record):
        marker = extract_marker(decorator.text)
        if marker is not None and marker in excluded:
            logger.debug(f"{record.qualname} is marked with {marker!r}")
            return MarkStatus.MARKED
    return MarkStatus.UNMARKED
