"""JSON formatter for structured output."""

import json

from cut.core.models import ScanResult
from cut.output.formatters.protocols import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Format results as JSON."""

    def format(self, result: ScanResult) -> str:
        """Format scan results as JSON."""
        data = {
            "summary": {
                "files_scanned": result.files_scanned,
                "total_tests": result.total_tests,
                "unmarked_tests_count": len(result.unmarked),
                "warnings_count": len(result.warnings),
                "degraded": result.degraded,
                "scan_duration": result.scan_duration,
            },
            "unmarked_tests": [
                {
                    "file": record.file_path,
                    "name": record.name,
                    "node_id": record.node_id,
                    "line": record.line_number,
                    "classes": list(record.class_names),
                    "decorators": record.decorator_lines,
                }
                for record in result.unmarked
            ],
            "warnings": [
                {
                    "kind": warning.kind.value,
                    "file": warning.file_path,
                    "line": warning.line_number,
                    "message": warning.message,
                }
                for warning in result.warnings
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)
