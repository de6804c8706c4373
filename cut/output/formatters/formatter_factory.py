from cut.output.formatters.csv_formatter import CsvFormatter
from cut.output.formatters.enums import OutputFormat
from cut.output.formatters.json_formatter import JsonFormatter
from cut.output.formatters.protocols import BaseFormatter
from cut.output.formatters.text_formatter import TextFormatter
from cut.output.formatters.tree_formatter import TreeFormatter


def get_formatter(output_format: OutputFormat) -> BaseFormatter:
    """Get the appropriate formatter for the output format."""
    formatters: dict[OutputFormat, BaseFormatter] = {
        OutputFormat.TEXT: TextFormatter(),
        OutputFormat.TREE: TreeFormatter(),
        OutputFormat.JSON: JsonFormatter(),
        OutputFormat.CSV: CsvFormatter(),
    }

    return formatters[output_format]
