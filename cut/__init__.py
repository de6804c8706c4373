"""
Collect Unmarked Tests - Find pytest tests that lack a category marker.
"""

__version__ = "0.1.0"

from cut.core.classifier import MarkStatus, classify, extract_marker
from cut.core.collector import UnmarkedTestCollector, run
from cut.core.config import DEFAULT_EXCLUDED_MARKERS, ScannerOptions, parse_marker_list
from cut.core.models import MarkerSet, ScanResult, TestFunctionRecord
from cut.core.scanner import SourceScanner, scan

__all__ = [
    "DEFAULT_EXCLUDED_MARKERS",
    "MarkStatus",
    "MarkerSet",
    "ScanResult",
    "ScannerOptions",
    "SourceScanner",
    "TestFunctionRecord",
    "UnmarkedTestCollector",
    "classify",
    "extract_marker",
    "parse_marker_list",
    "run",
    "scan",
]
