from __future__ import annotations

from typing import Awaitable, Callable, Literal, Sequence

from typing_extensions import TypeAlias

from webtoon_dl.core.webtoon.models import EpisodeBatch

OnBatchesPlannedCallback: TypeAlias = Callable[[str, Sequence[EpisodeBatch]], Awaitable[None]]
"""
Callback called once the batches of a series are planned. Takes the series slug and the batches.
"""

BatchProgressType: TypeAlias = Literal["Start", "PageCompleted", "Completed", "Skipped", "Failed"]
"""
Type of progress being reported.
"""

BatchProgressCallback: TypeAlias = Callable[[EpisodeBatch, BatchProgressType], Awaitable[None]]
"""
Progress callback called during each batch download. Takes the batch and progress type
"""
