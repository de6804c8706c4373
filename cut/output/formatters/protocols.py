"""Base formatter interface for output formatting."""

from io import StringIO
from pathlib import Path
from typing import Protocol

from rich.console import Console, RenderableType

from cut.core.models import ScanResult


def render_plain(renderable: RenderableType, width: int = 120) -> str:
    """Render a rich renderable to plain text without colors or markup."""
    if isinstance(renderable, str):
        return renderable
    buffer = StringIO()
    console = Console(file=buffer, width=width, color_system=None, force_terminal=False)
    console.print(renderable)
    return buffer.getvalue()


class BaseFormatter(Protocol):
    """Base class for output formatters."""

    def format(self, result: ScanResult) -> RenderableType:
        """Format the scan result into a string or rich renderable."""
        ...

    def save(self, result: ScanResult, output_file: Path) -> None:
        """Save formatted result to a file."""
        content = render_plain(self.format(result))
        output_file.write_text(content, encoding="utf-8")
