"""Rich progress display driven by export/import progress events."""

from __future__ import annotations

from types import TracebackType

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn


class ProgressReporter:
    """Translate ``on_progress(event, payload)`` calls into rich tasks.

    Use as a context manager and pass :meth:`emit` as the progress callback.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            console=console or Console(stderr=True),
            transient=True,
        )
        self._tasks: dict[str, TaskID] = {}
        self._totals: dict[str, int] = {}

    def __enter__(self) -> ProgressReporter:
        self.progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.progress.stop()

    def add_step(self, description: str, total: int | None = None) -> TaskID:
        return self.progress.add_task(description, total=total)

    def finish_task(self, task_id: TaskID) -> None:
        if task_id in self.progress.task_ids:
            self.progress.remove_task(task_id)

    def _start(self, key: str, description: str, total: int | None) -> None:
        if key in self._tasks:
            return
        self._tasks[key] = self.add_step(description, total=total)
        if total is not None:
            self._totals[key] = total

    def _advance(self, key: str) -> None:
        task_id = self._tasks.get(key)
        if task_id is not None:
            self.progress.advance(task_id)

    def _finish(self, key: str) -> None:
        task_id = self._tasks.pop(key, None)
        if task_id is not None:
            self.finish_task(task_id)
        self._totals.pop(key, None)

    def emit(self, event: str, payload: dict[str, int | str]) -> None:
        if event == "export:start":
            self._start("assets", f"Packing {payload.get('title', 'note')}", int(payload.get("assets", 0)))
        elif event in ("asset:added", "asset:missing"):
            self._advance("assets")
        elif event == "export:finalized":
            self._finish("assets")
        elif event == "import:start":
            self._start("import", "Unpacking archive", None)
        elif event == "import:extracted":
            self._finish("import")
            self._start("assets", "Importing assets", int(payload.get("entries", 0)))
        elif event in ("asset:imported", "source:imported"):
            self._advance("assets")
        elif event == "import:finalized":
            self._finish("assets")


__all__ = ["ProgressReporter"]
