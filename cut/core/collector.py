"""Main unmarked test collector."""

import logging
import time
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from cut.core.classifier import MarkStatus, classify, matched_markers
from cut.core.config import ScannerOptions
from cut.core.exceptions import UnreadableFileError
from cut.core.models import (
    MarkerSet,
    ScanResult,
    ScanWarning,
    TestFunctionRecord,
    WarningKind,
)
from cut.core.protocols import ProgressCallback
from cut.core.scanner import SourceScanner
from cut.core.utils import display_path, iter_python_files, read_source

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class _FileReport:
    path: str
    readable: bool = True
    total_tests: int = 0
    unmarked: list[TestFunctionRecord] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)


class UnmarkedTestCollector:
    """Main class for collecting test functions that carry none of the excluded markers."""

    def __init__(
        self,
        markers: MarkerSet,
        options: ScannerOptions | None = None,
        jobs: int = 1,
    ) -> None:
        self.markers = markers
        self.scanner = SourceScanner(options)
        self.jobs = max(1, jobs)

    def run(self, files: Iterable[tuple[Path | str, str]]) -> ScanResult:
        """
        Scan already-loaded files.

        Args:
            files: ``(path, text)`` pairs, in the order results should be reported

        Returns:
            ScanResult with unmarked tests in file-then-line order
        """
        start_time = time.time()
        items = [(_path_str(path), text) for path, text in files]
        reports = self._map(lambda item: self._scan_text(*item), items)
        return self._build_result(reports, [], start_time)

    def collect(
        self,
        roots: Sequence[Path],
        progress_callback: ProgressCallback | None = None,
    ) -> ScanResult:
        """
        Find, read and scan every Python file under ``roots``.

        Missing roots and unreadable files become warnings; they do not stop
        the run.
        """
        start_time = time.time()
        warnings: list[ScanWarning] = []
        paths: list[Path] = []

        for root in roots:
            if not root.exists():
                logger.warning(f"Path does not exist: {root}")
                warnings.append(
                    ScanWarning(
                        kind=WarningKind.MISSING_ROOT,
                        file_path=display_path(root),
                        message="Path does not exist",
                    )
                )
                continue
            paths.extend(iter_python_files(root))

        logger.debug(f"Found {len(paths)} Python files to scan")

        def track(reports: Iterable[_FileReport]) -> Iterator[_FileReport]:
            for done, report in enumerate(reports, start=1):
                if progress_callback is not None:
                    progress_callback.update(f"Scanned {report.path}", completed=done, total=len(paths))
                yield report

        reports = track(self._map(self._scan_path, paths))
        return self._build_result(reports, warnings, start_time)

    def _map(self, fn: Callable[[T], R], items: Sequence[T]) -> Iterator[R]:
        """Apply ``fn`` to every item, in parallel when configured, keeping input order."""
        if self.jobs == 1 or len(items) < 2:
            yield from map(fn, items)
            return
        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            # Executor.map yields in submission order, not completion order.
            yield from pool.map(fn, items)

    def _scan_path(self, path: Path) -> _FileReport:
        shown = display_path(path)
        try:
            text = read_source(path)
        except UnreadableFileError as e:
            logger.warning(f"Failed to read {shown}: {e.reason}")
            return _FileReport(
                path=shown,
                readable=False,
                warnings=[
                    ScanWarning(
                        kind=WarningKind.UNREADABLE_FILE,
                        file_path=shown,
                        message=e.reason,
                    )
                ],
            )
        return self._scan_text(shown, text)

    def _scan_text(self, path: str, text: str) -> _FileReport:
        logger.debug(f"Processing {path}")
        outcome = self.scanner.scan_source(text, file_path=path)
        report = _FileReport(
            path=path,
            total_tests=len(outcome.records),
            warnings=list(outcome.warnings),
        )

        for record in outcome.records:
            if classify(record, self.markers) is MarkStatus.UNMARKED:
                report.unmarked.append(record)
            else:
                logger.debug(
                    f"Skipping {record.node_id} - marked {matched_markers(record, self.markers)}"
                )
        return report

    def _build_result(
        self,
        reports: Iterable[_FileReport],
        warnings: list[ScanWarning],
        start_time: float,
    ) -> ScanResult:
        unmarked: list[TestFunctionRecord] = []
        files_scanned = 0
        total_tests = 0

        for report in reports:
            if report.readable:
                files_scanned += 1
            total_tests += report.total_tests
            unmarked.extend(report.unmarked)
            warnings.extend(report.warnings)

        logger.debug(f"Found {len(unmarked)} unmarked tests out of {total_tests}")

        return ScanResult(
            unmarked=tuple(unmarked),
            warnings=tuple(warnings),
            files_scanned=files_scanned,
            total_tests=total_tests,
            scan_duration=time.time() - start_time,
        )


def _path_str(path: Path | str) -> str:
    return display_path(path) if isinstance(path, Path) else path


def run(
    files: Iterable[tuple[Path | str, str]],
    excluded: MarkerSet,
    options: ScannerOptions | None = None,
) -> ScanResult:
    """Scan ``(path, text)`` pairs sequentially and return the unmarked tests."""
    return UnmarkedTestCollector(excluded, options=options).run(files)
