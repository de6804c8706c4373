"""Tests for marker configuration parsing."""

import pytest
from pydantic import ValidationError

from cut.core.config import DEFAULT_EXCLUDED_MARKERS, ScannerOptions, build_marker_set, parse_marker_list
from cut.core.exceptions import InvalidMarkerConfigurationError
from cut.core.models import MarkerSet


@pytest.mark.unit
def test_defaults_when_unspecified():
    marker_set = parse_marker_list(None)
    assert marker_set.excluded_markers == frozenset(DEFAULT_EXCLUDED_MARKERS)
    assert marker_set.sorted_names() == ["component", "integration", "skip", "slow", "unit"]


@pytest.mark.unit
def test_comma_separated_list():
    marker_set = parse_marker_list("unit, slow ,unit")
    assert marker_set.excluded_markers == {"unit", "slow"}
    assert "slow" in marker_set
    assert "integration" not in marker_set


@pytest.mark.unit
@pytest.mark.parametrize("value", ["", "unit,,slow", "unit,", "my marker", "unit,slow-tests", "1st"])
def test_invalid_marker_lists(value):
    with pytest.raises(InvalidMarkerConfigurationError):
        parse_marker_list(value)


@pytest.mark.unit
def test_invalid_marker_is_reported():
    with pytest.raises(InvalidMarkerConfigurationError) as exc_info:
        build_marker_set(["unit", "not valid"])
    assert exc_info.value.marker == "not valid"
    assert "not valid" in str(exc_info.value)


@pytest.mark.unit
def test_marker_set_model_validates_names():
    assert MarkerSet().excluded_markers == frozenset()
    with pytest.raises(ValidationError):
        MarkerSet(excluded_markers=frozenset({"has space"}))


@pytest.mark.unit
def test_scanner_options():
    options = ScannerOptions()
    assert options.test_prefix == "test_"
    assert not options.strict_comments
    assert options.max_continuation_lines == 100

    with pytest.raises(ValidationError):
        ScannerOptions(test_prefix="test-")
    with pytest.raises(ValidationError):
        ScannerOptions(max_continuation_lines=0)
