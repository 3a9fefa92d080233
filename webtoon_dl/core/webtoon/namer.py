from __future__ import annotations

import re
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from webtoon_dl.core.webtoon.models import EpisodeBatch

MAX_TITLE_LENGTH = 200
"""Batch titles longer than this are replaced by the series slug to stay under file name limits"""


def slugify_name(name: str) -> str:
    """Replaces spaces with underscores and removes the characters that are unsafe in file names."""
    return re.sub(r"[^\w.-]", "", name.strip().replace(" ", "_")).strip(".")


@dataclass(frozen=True)
class OutputNamer:
    """
    Generates the output path of each batch of a series.

    Files are stored under ``<directory>/<series>/<language>/``. The file is named after the
    slugified batch title followed by the episode range (``Notice-epNo3-epNo4``), so batches
    sharing a caption never share a file. The series slug replaces the title when the batch
    has no usable title (``<series>-epNo3``).

    Attributes:
        series          : The series slug.
        language        : The language code of the series.
        output_format   : The output format, used as the file extension.
        directory       : The parent directory of all downloads.
    """

    series: str
    language: str
    output_format: str
    directory: str | PathLike[str] = "."

    @property
    def series_directory(self) -> Path:
        return Path(self.directory) / self.series / self.language

    def get_path(self, batch: EpisodeBatch) -> Path:
        """Returns the path of the output file of a batch."""
        name = slugify_name(batch.title)
        if not name or len(name) > MAX_TITLE_LENGTH:
            name = self.series
        return self.series_directory / f"{name}-{get_episode_range(batch)}.{self.output_format}"


def get_episode_range(batch: EpisodeBatch) -> str:
    """Returns ``epNo<min>`` for a single episode batch, ``epNo<min>-epNo<max>`` otherwise."""
    if batch.min_episode != batch.max_episode:
        return f"epNo{batch.min_episode}-epNo{batch.max_episode}"
    return f"epNo{batch.min_episode}"
