"""Plain text formatter, one node id per line."""

from cut.core.models import ScanResult
from cut.output.formatters.protocols import BaseFormatter

NO_UNMARKED_MESSAGE = "No unmarked tests found."


class TextFormatter(BaseFormatter):
    """Format results as a plain list of pytest node ids."""

    def format(self, result: ScanResult) -> str:
        if not result.unmarked:
            return NO_UNMARKED_MESSAGE

        lines = [f"Found {len(result.unmarked)} unmarked test(s):"]
        lines.extend(f"  {record.node_id}" for record in result.unmarked)
        return "\n".join(lines)
