from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Literal

from typing_extensions import TypeAlias

from webtoon_dl.core.webtoon.client import RetryStrategy
from webtoon_dl.core.webtoon.downloaders.callbacks import BatchProgressCallback, OnBatchesPlannedCallback
from webtoon_dl.core.webtoon.resolver import DEFAULT_REQUEST_DELAY
from webtoon_dl.storage.progress import DEFAULT_DATABASE_PATH

OutputFormat: TypeAlias = Literal["pdf", "cbz", "zip"]
"""Valid formats for the output files."""

DEFAULT_MAX_EPISODE = sys.maxsize

DEFAULT_EPISODES_PER_FILE = 1

DEFAULT_OUTPUT_FORMAT: OutputFormat = "pdf"

DEFAULT_CONCURRENT_BATCH_DOWNLOADS = 10
"""Default number of batches downloaded concurrently for one series."""

DEFAULT_CONCURRENT_SERIES_DOWNLOADS = 2
"""Default number of series downloaded concurrently in database mode."""


@dataclass(frozen=True)
class DownloadOptions:
    """
    Options for downloading a series.

    Built once from the command line and passed to every component. Per series copies are
    derived with `dataclasses.replace`.

    Attributes:
        series_url              : Series listing URL or single episode viewer URL.
        min_episode             : First episode number to download (inclusive). None resumes after the last stored episode.
        max_episode             : Last episode number to download (inclusive).
        episodes_per_file       : Number of episodes stored in each output file. None reuses the stored preference.
        output_format           : Format of the output files. None reuses the stored preference.
        destination             : The directory where the output files are written.
        episode_concurrency     : The number of batches downloaded concurrently.
        series_concurrency      : The number of series downloaded concurrently in database mode.
        all_series_at_once      : Download all the stored series at once, ignoring series_concurrency.
        skip_existing           : Skip batches whose output file already exists.
        use_database            : Download every series stored in the progress database.
        database_path           : Path of the progress database.
        request_delay           : Delay in seconds observed after each page fetch.
        retry_strategy          : The strategy to use for retrying failed requests.
        proxy                   : proxy address to use for making requests.
        batch_progress_callback : Callback function for batch download progress.
        on_batches_planned      : Callback invoked once the batches of a series are planned.
    """

    series_url: str = ""

    min_episode: int | None = None
    max_episode: int = DEFAULT_MAX_EPISODE
    episodes_per_file: int | None = None
    output_format: OutputFormat | None = None
    destination: str = "."

    episode_concurrency: int = DEFAULT_CONCURRENT_BATCH_DOWNLOADS
    series_concurrency: int = DEFAULT_CONCURRENT_SERIES_DOWNLOADS
    all_series_at_once: bool = False
    skip_existing: bool = False

    use_database: bool = False
    database_path: str = DEFAULT_DATABASE_PATH

    request_delay: float = DEFAULT_REQUEST_DELAY
    retry_strategy: RetryStrategy | None = None
    proxy: str | None = None

    batch_progress_callback: BatchProgressCallback | None = None
    on_batches_planned: OnBatchesPlannedCallback | None = None
