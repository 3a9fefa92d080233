from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from webtoon_dl.core.downloaders.image import ImageDownloader, is_supported_image
from webtoon_dl.core.exceptions import BatchDownloadError
from webtoon_dl.core.webtoon.downloaders.callbacks import BatchProgressCallback, BatchProgressType
from webtoon_dl.core.webtoon.downloaders.result import BatchResult
from webtoon_dl.core.webtoon.models import EpisodeBatch
from webtoon_dl.core.webtoon.namer import OutputNamer
from webtoon_dl.storage import ComicBuilder

log = logging.getLogger(__name__)


@dataclass
class BatchDownloader:
    """
    Downloads the images of episode batches and assembles them into output files.

    Every call to `run` is a failure boundary: errors are logged and reported in the
    returned `BatchResult`, they never reach the caller, so sibling batches keep running.

    Attributes:
        image_downloader            : Downloader for the batch images.
        builder_factory             : Returns a new, empty output file builder.
        namer                       : Generator for the output path of each batch.
        concurrent_downloads_limit  : The number of batches to download concurrently.
        skip_existing               : Skip batches whose output file already exists.
        series_url                  : URL of the series, used as context when reporting errors.
        progress_callback           : Optional callback for reporting batch download progress.
    """

    image_downloader: ImageDownloader
    builder_factory: Callable[[], ComicBuilder]
    namer: OutputNamer
    concurrent_downloads_limit: int

    skip_existing: bool = False
    series_url: str = ""
    progress_callback: BatchProgressCallback | None = None

    _semaphore: asyncio.Semaphore = field(init=False)

    def __post_init__(self) -> None:
        self._semaphore = asyncio.Semaphore(self.concurrent_downloads_limit)

    async def run(self, batch: EpisodeBatch) -> BatchResult:
        """
        Downloads a batch and writes its output file.

        Args:
            batch: The batch to download.

        Returns:
            The result of the batch download.
        """
        path = self.namer.get_path(batch)
        if self.skip_existing and path.exists():
            log.info('Skipping episodes %d-%d, "%s" already exists', batch.min_episode, batch.max_episode, path)
            await self._report_progress(batch, "Skipped")
            return BatchResult(batch, path, "skipped")

        try:
            async with self._semaphore:
                await self._run(batch, path)
        except Exception as exc:
            error = BatchDownloadError(self.series_url, exc, batch=batch)
            log.error("Failed %s", error, exc_info=log.isEnabledFor(logging.DEBUG))
            await self._report_progress(batch, "Failed")
            return BatchResult(batch, path, "failed", error)

        log.info('Saved episodes %d-%d to "%s"', batch.min_episode, batch.max_episode, path)
        await self._report_progress(batch, "Completed")
        return BatchResult(batch, path, "completed")

    async def _run(self, batch: EpisodeBatch, path: Path) -> None:
        """Fetches the images one after the other so pages are appended in reading order."""
        await self._report_progress(batch, "Start")
        builder = self.builder_factory()
        try:
            total = len(batch.image_links)
            for n, url in enumerate(batch.image_links, start=1):
                if not is_supported_image(url):
                    log.warning('Skipping unsupported animated image "%s"', url)
                    await self._report_progress(batch, "PageCompleted")
                    continue

                await builder.append(await self.image_downloader.run(url))
                log.debug("Episodes %d-%d: added page %d/%d", batch.min_episode, batch.max_episode, n, total)
                await self._report_progress(batch, "PageCompleted")

            await builder.finalize(path)
        finally:
            builder.close()

    async def _report_progress(self, batch: EpisodeBatch, progress_type: BatchProgressType) -> None:
        """
        Reports the progress of the batch download if a progress callback is provided.

        Args:
            batch           : The batch being downloaded.
            progress_type   : The type of progress being reported.
        """
        if not self.progress_callback:
            return
        await self.progress_callback(batch, progress_type)
