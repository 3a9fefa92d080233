from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Sequence

from typing_extensions import TypeAlias

from webtoon_dl.core.webtoon.models import EpisodeBatch

BatchStatus: TypeAlias = Literal["completed", "skipped", "failed"]


@dataclass(frozen=True)
class BatchResult:
    """
    Outcome of a single batch download.

    Attributes:
        batch   : The downloaded batch.
        path    : The output file of the batch.
        status  : Whether the file was written, skipped because it already existed, or failed.
        error   : The error that made the batch fail.
    """

    batch: EpisodeBatch
    path: Path
    status: BatchStatus
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"


@dataclass(frozen=True)
class SeriesResult:
    """
    Outcome of a series download.

    Attributes:
        series          : The series slug.
        language        : The language code of the series.
        results         : The result of every batch, in batch order.
        last_chapter    : The last episode recorded in the progress store, None if nothing was recorded.
    """

    series: str
    language: str
    results: Sequence[BatchResult] = field(default_factory=tuple)
    last_chapter: int | None = None

    @property
    def failed(self) -> list[BatchResult]:
        return [result for result in self.results if not result.ok]


def last_completed_episode(results: Sequence[BatchResult]) -> int | None:
    """
    Returns the last episode of the leading run of successful batches.

    Episodes after a failed batch are not counted so that a resumed run downloads them again.
    """
    last = None
    for result in results:
        if not result.ok:
            break
        last = result.batch.max_episode
    return last
