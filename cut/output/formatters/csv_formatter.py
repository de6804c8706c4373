"""CSV formatter for spreadsheet-compatible output."""

import csv
from io import StringIO

from cut.core.models import ScanResult
from cut.output.formatters.protocols import BaseFormatter


class CsvFormatter(BaseFormatter):
    """Format results as CSV."""

    def format(self, result: ScanResult) -> str:
        """Format scan results as CSV."""
        output = StringIO()
        writer = csv.writer(output, lineterminator="\n")

        writer.writerow(["File", "Test", "Line", "Node ID"])

        for record in result.unmarked:
            writer.writerow(
                [
                    record.file_path,
                    record.qualname,
                    record.line_number,
                    record.node_id,
                ]
            )

        return output.getvalue()
