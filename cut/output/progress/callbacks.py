from typing import Any

from rich.progress import Progress, TaskID

from cut.core.protocols import ProgressCallback


class RichProgressCallback(ProgressCallback):
    """Forward collector progress to a rich progress task."""

    def __init__(self, progress: Progress, task_id: TaskID, max_description: int = 60) -> None:
        self.progress = progress
        self.task_id = task_id
        self.max_description = max_description

    def update(self, message: str, **fields: Any) -> None:
        if len(message) > self.max_description:
            message = "…" + message[-(self.max_description - 1) :]
        self.progress.update(self.task_id, description=message, **fields)
