"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


@dataclass
class ProgressState:
    total: int
    completed: int = 0
    alive: int = 0
    dead: int = 0
    current_url: str | None = None


class RateColumn(ProgressColumn):
    """Render the probe rate as ``X.X url/s``."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} url/s", style="progress.percentage")


class ProgressReporter:
    """Render probe progress and keep counters; safe to advance from worker threads."""

    def __init__(
        self,
        enabled: bool = True,
        console: Console | None = None,
        label: str = "Checking",
        max_url_length: int = 60,
    ) -> None:
        self.enabled = enabled
        self.label = label
        self.max_url_length = max_url_length
        self.state: ProgressState | None = None
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        console = self._console or Console()
        if not console.is_terminal:
            # Non-interactive output falls back to silent mode.
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[label]:<10}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[green]✓{task.fields[alive]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[dead]:>4}", justify="right"),
            TextColumn("[dim]{task.fields[current_url]}", justify="left"),
            console=console,
            transient=True,
            refresh_per_second=12,
            expand=True,
        )
        try:
            self._progress.__enter__()
        except LiveError:
            # Another live display owns the console.
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "probe",
            total=total,
            label=self.label,
            alive=0,
            dead=0,
            current_url="",
        )

    def advance(self, healthy: bool, current_url: str | None = None) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        with self._lock:
            self.state.completed += 1
            if healthy:
                self.state.alive += 1
            else:
                self.state.dead += 1
            if current_url:
                self.state.current_url = current_url
            if self._progress is not None and self._task_id is not None:
                self._progress.update(
                    self._task_id,
                    advance=1,
                    alive=self.state.alive,
                    dead=self.state.dead,
                    current_url=self._shorten(self.state.current_url or ""),
                )

    def on_probe(self, completed: int, total: int, url: str, healthy: bool) -> None:
        """Adapter matching the bounded prober's progress callback."""

        self.advance(healthy=healthy, current_url=url)

    def close(self) -> None:
        if self._progress is not None:
            try:
                self._progress.stop()
            finally:
                self._progress.__exit__(None, None, None)
                self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"completed": 0, "alive": 0, "dead": 0}
        return {
            "completed": self.state.completed,
            "alive": self.state.alive,
            "dead": self.state.dead,
        }

    def _shorten(self, url: str) -> str:
        if len(url) > self.max_url_length:
            return url[: self.max_url_length - 3] + "..."
        return url


__all__ = ["ProgressReporter", "ProgressState", "RateColumn"]
