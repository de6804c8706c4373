"""
Line-oriented scanner that finds test functions and their decorators.

The scanner does not build an AST. It walks the source one physical line at a
time through a small state machine:

    DEFAULT                      structural matching of decorators, defs, classes
    INSIDE_TRIPLE_STRING         waiting for the closing triple quote
    INSIDE_UNBALANCED_DECORATOR  collecting continuation lines of a decorator call

String literals and comments are skipped by a per-line lexer, so text such as
``"@pytest.mark.unit"`` inside a string never looks like a decorator.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from cut.core.config import ScannerOptions
from cut.core.exceptions import MalformedSourceError
from cut.core.models import (
    DecoratorInfo,
    ScanOutcome,
    ScanWarning,
    TestFunctionRecord,
    WarningKind,
)

logger = logging.getLogger(__name__)

LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
DECORATOR_RE = re.compile(r"^\s*@\s*[A-Za-z_]")
ANY_DEF_RE = re.compile(r"^\s*(?:async\s+)?def\s+[A-Za-z_]\w*\s*\(")
CLASS_RE = re.compile(r"^\s*class\s+([A-Za-z_]\w*)")

_OPENERS = "([{"
_CLOSERS = ")]}"


class ScannerState(str, Enum):
    DEFAULT = "default"
    INSIDE_TRIPLE_STRING = "inside_triple_string"
    INSIDE_UNBALANCED_DECORATOR = "inside_unbalanced_decorator"


@dataclass(frozen=True)
class LexedLine:
    """What the lexer saw on one physical line, outside strings and comments."""

    depth_delta: int
    has_code: bool
    open_quote: str | None


def split_lines(source_text: str) -> list[str]:
    """Split on ``\\n``, ``\\r\\n`` and ``\\r`` only, like the Python tokenizer."""
    if not source_text:
        return []
    text = source_text.removeprefix("\ufeff")
    lines = LINE_BREAK_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _find_closing(line: str, start: int, quote: str) -> int:
    """Return the index just past the closing ``quote``, or -1 if the line ends first."""
    i = start
    n = len(line)
    while i < n:
        if line[i] == "\\":
            i += 2
            continue
        if line.startswith(quote, i):
            return i + len(quote)
        i += 1
    return -1


def lex_line(line: str, open_quote: str | None = None) -> LexedLine:
    """
    Lex one physical line.

    Args:
        line: The line, without its line break
        open_quote: Triple-quote delimiter still open from a previous line

    Returns:
        Bracket depth change, whether any code appears outside strings and
        comments, and the triple-quote delimiter left open at end of line.
    """
    depth = 0
    has_code = False
    quote = open_quote
    i = 0
    n = len(line)

    while i < n:
        if quote is not None:
            end = _find_closing(line, i, quote)
            if end == -1:
                break
            i = end
            quote = None
            continue

        ch = line[i]
        if ch == "#":
            break
        if ch in "\"'":
            has_code = True
            if line.startswith(ch * 3, i):
                quote = ch * 3
                i += 3
            else:
                quote = ch
                i += 1
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        if not ch.isspace():
            has_code = True
        i += 1

    # An unterminated single-quoted string ends with its line.
    if quote is not None and len(quote) == 1:
        quote = None
    return LexedLine(depth_delta=depth, has_code=has_code, open_quote=quote)


@dataclass
class _ClassFrame:
    indent: int
    name: str
    decorators: tuple[DecoratorInfo, ...]


@dataclass
class _ScanRun:
    """Mutable state for scanning one source text."""

    lines: list[str]
    options: ScannerOptions
    test_def_re: re.Pattern[str]
    file_path: str = ""

    state: ScannerState = ScannerState.DEFAULT
    index: int = 0
    degraded: bool = False
    pending: list[DecoratorInfo] = field(default_factory=list)
    classes: list[_ClassFrame] = field(default_factory=list)
    records: list[TestFunctionRecord] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)

    # Open triple-quoted string
    quote: str | None = None
    string_start: int = 0

    # Bracket depth of an ordinary multi-line statement
    code_depth: int = 0
    statement_start: int = 0

    # Decorator unit being collected
    unit_lines: list[str] = field(default_factory=list)
    unit_start: int = 0
    unit_indent: int = 0
    unit_depth: int = 0

    def execute(self) -> ScanOutcome:
        while True:
            try:
                self._run_lines()
                self._check_end_of_file()
                break
            except MalformedSourceError as exc:
                self._degrade(exc)
        return ScanOutcome(records=tuple(self.records), warnings=tuple(self.warnings))

    def _run_lines(self) -> None:
        while self.index < len(self.lines):
            line = self.lines[self.index]
            self.index += 1
            line_number = self.index
            if self.degraded:
                self._visit_degraded(line, line_number)
            elif self.state is ScannerState.INSIDE_TRIPLE_STRING:
                self._visit_string(line)
            elif self.state is ScannerState.INSIDE_UNBALANCED_DECORATOR:
                self._visit_decorator_continuation(line, line_number)
            else:
                self._visit_default(line, line_number)

    def _check_end_of_file(self) -> None:
        if self.degraded:
            return
        if self.state is ScannerState.INSIDE_TRIPLE_STRING:
            raise MalformedSourceError(
                "Unterminated triple-quoted string",
                line_number=self.string_start,
                resume_at=self.string_start + 1,
            )
        if self.state is ScannerState.INSIDE_UNBALANCED_DECORATOR:
            raise MalformedSourceError(
                "Decorator brackets are never closed",
                line_number=self.unit_start,
                resume_at=self.unit_start,
            )

    def _degrade(self, exc: MalformedSourceError) -> None:
        """Fall back to plain line-by-line matching from ``exc.resume_at`` on."""
        logger.warning(
            f"{self.file_path or '<source>'}:{exc.line_number}: {exc.message}; "
            "scanning the rest of the file line by line"
        )
        self.warnings.append(
            ScanWarning(
                kind=WarningKind.MALFORMED_SOURCE,
                file_path=self.file_path,
                line_number=exc.line_number,
                message=exc.message,
            )
        )
        self.degraded = True
        self.state = ScannerState.DEFAULT
        self.index = exc.resume_at - 1
        self.quote = None
        self.code_depth = 0
        self.unit_lines = []
        self.unit_depth = 0

    # DEFAULT

    def _visit_default(self, line: str, line_number: int) -> None:
        if not line.strip():
            return
        lexed = lex_line(line)

        if self.code_depth > 0:
            self._visit_statement_continuation(line, line_number, lexed)
            return

        if not lexed.has_code:
            if self.options.strict_comments:
                self.pending.clear()
            return

        indent = indent_of(line)
        self._close_classes(indent)

        if DECORATOR_RE.match(line):
            self._start_decorator(line, line_number, indent, lexed)
            return

        self._visit_statement(line, line_number, indent)
        self.code_depth = max(0, lexed.depth_delta)
        self.statement_start = line_number
        self._enter_string_if_open(lexed, line_number)

    def _visit_statement_continuation(
        self, line: str, line_number: int, lexed: LexedLine
    ) -> None:
        if ANY_DEF_RE.match(line) or CLASS_RE.match(line):
            raise MalformedSourceError(
                "Brackets are never closed",
                line_number=self.statement_start,
                resume_at=line_number,
            )
        self.code_depth = max(0, self.code_depth + lexed.depth_delta)
        self._enter_string_if_open(lexed, line_number)

    def _enter_string_if_open(self, lexed: LexedLine, line_number: int) -> None:
        if lexed.open_quote is not None:
            self.state = ScannerState.INSIDE_TRIPLE_STRING
            self.quote = lexed.open_quote
            self.string_start = line_number

    def _visit_statement(self, line: str, line_number: int, indent: int) -> None:
        match = self.test_def_re.match(line)
        if match:
            self._emit(match.group(2), line_number, indent, is_async=bool(match.group(1)))
            return

        class_match = CLASS_RE.match(line)
        if class_match:
            self.classes.append(
                _ClassFrame(
                    indent=indent,
                    name=class_match.group(1),
                    decorators=self._take_pending(indent),
                )
            )
            return

        # Any other def, or any other statement, ends the decorator chain.
        self.pending.clear()

    def _close_classes(self, indent: int) -> None:
        while self.classes and self.classes[-1].indent >= indent:
            self.classes.pop()

    def _take_pending(self, indent: int) -> tuple[DecoratorInfo, ...]:
        decorators = tuple(d for d in self.pending if d.indent == indent)
        self.pending.clear()
        return decorators

    def _emit(self, name: str, line_number: int, indent: int, is_async: bool) -> None:
        class_decorators: list[DecoratorInfo] = []
        for frame in self.classes:
            class_decorators.extend(frame.decorators)

        record = TestFunctionRecord(
            name=name,
            line_number=line_number,
            file_path=self.file_path,
            indent=indent,
            is_async=is_async,
            decorators=self._take_pending(indent),
            class_decorators=tuple(class_decorators),
            class_names=tuple(frame.name for frame in self.classes),
        )
        logger.debug(f"Found {record.qualname} at line {line_number}")
        self.records.append(record)

    # INSIDE_TRIPLE_STRING

    def _visit_string(self, line: str) -> None:
        lexed = lex_line(line, self.quote)
        self.quote = lexed.open_quote
        if self.quote is None:
            self.state = ScannerState.DEFAULT
            # Brackets after the closing quote still belong to the statement.
            self.code_depth = max(0, self.code_depth + lexed.depth_delta)

    # INSIDE_UNBALANCED_DECORATOR

    def _start_decorator(self, line: str, line_number: int, indent: int, lexed: LexedLine) -> None:
        self.unit_lines = [line.strip()]
        self.unit_start = line_number
        self.unit_indent = indent
        self.unit_depth = lexed.depth_delta
        self.quote = lexed.open_quote
        if self.unit_depth > 0 or self.quote is not None:
            self.state = ScannerState.INSIDE_UNBALANCED_DECORATOR
        else:
            self._finish_decorator(line_number)

    def _visit_decorator_continuation(self, line: str, line_number: int) -> None:
        if self.quote is None and (ANY_DEF_RE.match(line) or CLASS_RE.match(line)):
            raise MalformedSourceError(
                "Decorator brackets are never closed",
                line_number=self.unit_start,
                resume_at=self.unit_start,
            )
        lexed = lex_line(line, self.quote)
        self.quote = lexed.open_quote
        self.unit_depth += lexed.depth_delta
        stripped = line.strip()
        # Balance is tracked to the end; only the kept text is bounded.
        span = line_number - self.unit_start + 1
        if stripped and span <= self.options.max_continuation_lines:
            self.unit_lines.append(stripped)
        elif span == self.options.max_continuation_lines + 1:
            logger.debug(
                f"{self.file_path or '<source>'}:{self.unit_start}: decorator text "
                f"truncated after {self.options.max_continuation_lines} lines"
            )

        if self.unit_depth <= 0 and self.quote is None:
            self._finish_decorator(line_number)

    def _finish_decorator(self, end_line: int) -> None:
        self.pending.append(
            DecoratorInfo(
                text=" ".join(self.unit_lines),
                start_line=self.unit_start,
                end_line=end_line,
                indent=self.unit_indent,
            )
        )
        self.unit_lines = []
        self.unit_depth = 0
        self.state = ScannerState.DEFAULT

    # Degraded mode

    def _visit_degraded(self, line: str, line_number: int) -> None:
        """
        Match one line with bracket counting only.

        Triple-quoted strings are not tracked. A decorator whose brackets are
        still open keeps collecting lines until they balance or a ``def`` or
        ``class`` line ends it.
        """
        stripped = line.strip()
        if not stripped:
            return

        if self.unit_lines:
            if not (ANY_DEF_RE.match(line) or CLASS_RE.match(line)):
                self.unit_depth += lex_line(line).depth_delta
                if len(self.unit_lines) < self.options.max_continuation_lines:
                    self.unit_lines.append(stripped)
                if self.unit_depth <= 0:
                    self._finish_decorator(line_number)
                return
            self._finish_decorator(line_number - 1)

        if stripped.startswith("#"):
            if self.options.strict_comments:
                self.pending.clear()
            return

        indent = indent_of(line)
        self._close_classes(indent)

        if DECORATOR_RE.match(line):
            self.unit_lines = [stripped]
            self.unit_start = line_number
            self.unit_indent = indent
            self.unit_depth = lex_line(line).depth_delta
            if self.unit_depth <= 0:
                self._finish_decorator(line_number)
            return
        self._visit_statement(line, line_number, indent)


class SourceScanner:
    """
    Find test functions in Python source text.

    A scanner holds only read-only options, so one instance can be shared
    between threads.
    """

    def __init__(self, options: ScannerOptions | None = None) -> None:
        self.options = options or ScannerOptions()
        self.test_def_re = re.compile(
            rf"^\s*(async\s+)?def\s+({re.escape(self.options.test_prefix)}\w*)\s*\("
        )

    def scan(self, source_text: str) -> list[TestFunctionRecord]:
        """Return the test functions in ``source_text``, in source order."""
        return list(self.scan_source(source_text).records)

    def scan_source(self, source_text: str, file_path: str = "") -> ScanOutcome:
        """Scan one file's text, returning records plus any recovered problems."""
        run = _ScanRun(
            lines=split_lines(source_text),
            options=self.options,
            test_def_re=self.test_def_re,
            file_path=file_path,
        )
        return run.execute()


def scan(source_text: str, options: ScannerOptions | None = None) -> list[TestFunctionRecord]:
    """Convenience wrapper around ``SourceScanner(options).scan``."""
    return SourceScanner(options).scan(source_text)
