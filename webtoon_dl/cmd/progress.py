from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Sequence

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)
from rich.text import Text

from webtoon_dl.core.webtoon.downloaders.callbacks import BatchProgressType
from webtoon_dl.core.webtoon.models import EpisodeBatch


class HumanReadableSpeedColumn(ProgressColumn):
    """Renders human readable transfer speed."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        readable = "?" if speed is None else f"{speed:2.0f}"
        speed_type = task.fields.get("type", "units")
        return Text(f"{readable} {speed_type}/s", style="progress.data.speed", justify="center")


def init_progress(console: Console) -> Progress:
    """
    Initialize and configure the progress bar for the downloader.

    Args:
        console   : The rich console object to which the progress bar will be output.

    Returns:
        Progress  : A configured Progress object ready for use in tracking download tasks.
    """
    return Progress(
        TextColumn("[bold cyan2]{task.description}", justify="left", style="cyan2"),
        BarColumn(bar_width=None, finished_style="cyan"),
        "[progress.percentage]{task.percentage:>3.0f}%",
        "•",
        SpinnerColumn(style="progress.data.speed"),
        HumanReadableSpeedColumn(),
        "•",
        TextColumn(
            "[bold cyan2]{task.completed:>02.0f}[/]/[bold cyan2]{task.fields[rendered_total]}[/]",
            justify="left",
            style="cyan2",
        ),
        "•",
        TimeRemainingColumn(),
        console=console,
        transient=True,
        refresh_per_second=10,
        expand=True,
    )


@dataclass
class BatchProgressManager:
    """
    Manages the progress display of batch downloads.

    A task tracks the files of the series being downloaded, and a transient task tracks
    the pages of each batch in flight.

    Attributes:
        progress            : The rich progress object used to display the download progress.
        files_task          : The task counting the output files.
    """

    progress: Progress
    files_task: TaskID

    _task_ids: dict[EpisodeBatch, TaskID] = field(init=False)
    _planned: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self._task_ids = {}

    async def on_batches_planned(self, series: str, batches: Sequence[EpisodeBatch]) -> None:
        """
        Adds the planned batches of a series to the total of the files task.

        Args:
            series      : The series slug.
            batches     : The planned batches of the series.
        """
        self._planned += len(batches)
        self.progress.update(
            self.files_task,
            description=f"Downloading {series}...",
            total=self._planned,
            rendered_total=f"{self._planned:02}",
        )

    async def advance_progress(self, batch: EpisodeBatch, progress_type: BatchProgressType) -> None:
        """
        Advance the progress of a batch download based on its current state.

        Args:
            batch           : The batch being downloaded.
            progress_type   : The type of progress update to process.
        """
        if progress_type == "Start":
            self._add_task(batch)
        elif progress_type == "PageCompleted":
            self.progress.update(self._task_ids[batch], advance=1)
        elif progress_type in ("Completed", "Failed"):
            self.progress.update(self.files_task, advance=1)
            await self._remove_task(batch)
        elif progress_type == "Skipped":
            self.progress.update(self.files_task, advance=1)

    def _add_task(self, batch: EpisodeBatch) -> None:
        """Add a new progress task for a batch."""
        if batch.min_episode == batch.max_episode:
            description = f"[plum2]Episode {batch.min_episode}."
        else:
            description = f"[plum2]Episodes {batch.min_episode}-{batch.max_episode}."

        total = len(batch.image_links)
        self._task_ids[batch] = self.progress.add_task(
            description,
            type="Pages",
            total=total,
            rendered_total=f"{total:02}",
        )

    async def _remove_task(self, batch: EpisodeBatch) -> None:
        """Remove the progress task of a finished batch."""
        task_id = self._task_ids.pop(batch, None)
        if task_id is None:
            return
        await asyncio.sleep(0.5)
        self.progress.remove_task(task_id)
