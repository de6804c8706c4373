"""Tree formatter for rich terminal output."""

from collections import defaultdict
from pathlib import PurePosixPath

from rich.console import Group, RenderableType
from rich.text import Text
from rich.tree import Tree

from cut.core.models import ScanResult, TestFunctionRecord
from cut.output.formatters.protocols import BaseFormatter


class TreeFormatter(BaseFormatter):
    """Format results as a rich tree for terminal output."""

    def format(self, result: ScanResult) -> RenderableType:
        """Format scan results as a rich tree grouped by directory and file."""
        if not result.unmarked:
            done = Text("✅ No unmarked tests found!", style="green")
            if result.degraded:
                return Group(done, self._degraded_notice())
            return done

        return Group(self._build_tree(result), Text(""), self._summary(result))

    def _build_tree(self, result: ScanResult) -> Tree:
        records_by_file: dict[str, list[TestFunctionRecord]] = defaultdict(list)
        for record in result.unmarked:
            records_by_file[record.file_path].append(record)

        root_tree = Tree(
            f"🔍 Unmarked tests by file (total {len(result.unmarked)} tests)",
            guide_style="dim",
        )

        dir_nodes: dict[tuple[str, ...], Tree] = {(): root_tree}

        for file_path in sorted(records_by_file):
            parts = PurePosixPath(file_path).parts if file_path else ("<source>",)

            parent_key: tuple[str, ...] = ()
            parent_node: Tree = root_tree
            for part in parts[:-1]:
                key = (*parent_key, part)
                if key not in dir_nodes:
                    # Folder node (with trailing slash)
                    parent_node = parent_node.add(
                        f"[bold blue]{part.rstrip('/')}/[/bold blue]", guide_style="dim"
                    )
                    dir_nodes[key] = parent_node
                else:
                    parent_node = dir_nodes[key]
                parent_key = key

            file_node = parent_node.add(f"[bold green]{parts[-1]}[/bold green]", guide_style="dim")

            for record in sorted(records_by_file[file_path], key=lambda r: r.line_number):
                test_text = Text(f"{record.qualname} ", style="magenta")
                test_text.append(f"(line {record.line_number})", style="grey50")
                file_node.add(test_text)

        return root_tree

    def _summary(self, result: ScanResult) -> Text:
        summary = Text("📊 Summary:\n")
        summary.append(f"   Files scanned: {result.files_scanned}\n")
        summary.append(f"   Tests found: {result.total_tests}\n")
        summary.append(f"   Unmarked tests: {len(result.unmarked)}\n")
        if result.warnings:
            summary.append(f"   Warnings: {len(result.warnings)}\n", style="yellow")
        if result.degraded:
            summary.append("   Degraded: some files could not be read\n", style="yellow")
        summary.append(f"   Scan duration: {result.scan_duration:.2f}s")
        return summary

    def _degraded_notice(self) -> Text:
        return Text("⚠️  Degraded: some files could not be read", style="yellow")
