from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from functools import partial

from webtoon_dl.core.downloaders.image import ImageDownloader
from webtoon_dl.core.exceptions import NoEpisodesFoundError, PageLayoutError, SeriesDownloadError
from webtoon_dl.core.webtoon.client import WebtoonHttpClient
from webtoon_dl.core.webtoon.downloaders.batch import BatchDownloader
from webtoon_dl.core.webtoon.downloaders.callbacks import OnBatchesPlannedCallback
from webtoon_dl.core.webtoon.downloaders.options import (
    DEFAULT_EPISODES_PER_FILE,
    DEFAULT_OUTPUT_FORMAT,
    DownloadOptions,
)
from webtoon_dl.core.webtoon.downloaders.result import SeriesResult, last_completed_episode
from webtoon_dl.core.webtoon.fetchers import EpisodeCatalogCrawler
from webtoon_dl.core.webtoon.namer import OutputNamer
from webtoon_dl.core.webtoon.planner import BatchPlanner
from webtoon_dl.core.webtoon.resolver import ImageLinkResolver
from webtoon_dl.core.webtoon.urls import (
    get_listing_url,
    get_series_and_language,
    is_viewer_url,
    normalize_url,
)
from webtoon_dl.storage import ProgressRecord, ProgressStore, new_comic_builder

log = logging.getLogger(__name__)


@dataclass
class SeriesDownloader:
    """
    Downloads the requested episodes of one series.

    Plans the batches, downloads all of them concurrently and records the progress once
    every batch is done.

    Attributes:
        url                 : Listing or viewer URL of the series.
        series              : The series slug.
        language            : The language code of the series.
        planner             : Planner turning the URL into episode batches.
        batch_downloader    : Downloader of the batches.
        min_episode         : First episode to download.
        max_episode         : Last episode to download.
        episodes_per_file   : The number of episodes per output file.
        output_format       : The output format, recorded with the progress.
        store               : Optional progress store updated after the download.
        on_batches_planned  : Optional callback executed after planning the batches.
    """

    url: str
    series: str
    language: str
    planner: BatchPlanner
    batch_downloader: BatchDownloader
    min_episode: int
    max_episode: int
    episodes_per_file: int
    output_format: str

    store: ProgressStore | None = None
    on_batches_planned: OnBatchesPlannedCallback | None = None

    async def run(self) -> SeriesResult:
        """
        Downloads the series.

        Returns:
            The result of every batch, in batch order.

        Raises:
            NoEpisodesFoundError    : No episode is within the requested range.
            PageLayoutError         : An episode page does not have the expected layout.
        """
        batches = await self.planner.plan(self.url, self.min_episode, self.max_episode, self.episodes_per_file)
        total_pages = sum(len(batch.image_links) for batch in batches)
        total_episodes = batches[-1].max_episode - batches[0].min_episode + 1
        log.info("Found %d total image links across %d episodes", total_pages, total_episodes)
        log.info("Saving into %d files with max of %d episodes per file", len(batches), self.episodes_per_file)

        if self.on_batches_planned:
            await self.on_batches_planned(self.series, batches)

        tasks = [asyncio.create_task(self.batch_downloader.run(batch)) for batch in batches]
        results = await asyncio.gather(*tasks)

        failed = [result for result in results if not result.ok]
        if failed:
            log.warning("%d/%d files of %s (%s) could not be saved", len(failed), len(results), self.series, self.language)

        last_chapter = await self._save_progress(last_completed_episode(results))
        return SeriesResult(self.series, self.language, results, last_chapter)

    async def _save_progress(self, last_chapter: int | None) -> int | None:
        """
        Records the last downloaded episode. The stored episode never goes backwards so that
        downloading an older episode alone does not reset the progress of the series.
        """
        if self.store is None or last_chapter is None:
            return None

        previous = await self.store.get(self.series, self.language)
        if previous is not None:
            last_chapter = max(last_chapter, previous.last_chapter)

        await self.store.upsert(
            ProgressRecord(
                series=self.series,
                language=self.language,
                url=get_listing_url(self.url),
                last_chapter=last_chapter,
                episodes_per_file=self.episodes_per_file,
                output_format=self.output_format,
            )
        )
        return last_chapter


def resolve_options(opts: DownloadOptions, record: ProgressRecord | None) -> DownloadOptions:
    """
    Fills the options left unset with the stored progress of the series.

    Without a `min_episode` the download resumes right after the last stored episode.
    """
    min_episode = opts.min_episode
    if min_episode is None:
        min_episode = record.last_chapter + 1 if record else 0

    return replace(
        opts,
        min_episode=min_episode,
        episodes_per_file=opts.episodes_per_file or (record.episodes_per_file if record else DEFAULT_EPISODES_PER_FILE),
        output_format=opts.output_format or (record.output_format if record else DEFAULT_OUTPUT_FORMAT),
    )


async def _download_series(
    opts: DownloadOptions, client: WebtoonHttpClient, store: ProgressStore | None
) -> SeriesResult:
    url = normalize_url(opts.series_url)
    series, language = get_series_and_language(url)
    record = await store.get(series, language) if store else None
    opts = resolve_options(opts, record)
    if is_viewer_url(url):
        log.info("Downloading a single episode of %s (%s)", series, language)
    else:
        log.info("Downloading %s (%s) from episode %s", series, language, opts.min_episode)

    planner = BatchPlanner(
        crawler=EpisodeCatalogCrawler(client, request_delay=opts.request_delay),
        resolver=ImageLinkResolver(client, request_delay=opts.request_delay),
    )
    output_format = opts.output_format or DEFAULT_OUTPUT_FORMAT
    batch_downloader = BatchDownloader(
        image_downloader=ImageDownloader(client),
        builder_factory=partial(new_comic_builder, output_format),
        namer=OutputNamer(series, language, output_format, opts.destination),
        concurrent_downloads_limit=opts.episode_concurrency,
        skip_existing=opts.skip_existing,
        series_url=url,
        progress_callback=opts.batch_progress_callback,
    )
    downloader = SeriesDownloader(
        url=url,
        series=series,
        language=language,
        planner=planner,
        batch_downloader=batch_downloader,
        min_episode=opts.min_episode or 0,
        max_episode=opts.max_episode,
        episodes_per_file=opts.episodes_per_file or DEFAULT_EPISODES_PER_FILE,
        output_format=output_format,
        store=store,
        on_batches_planned=opts.on_batches_planned,
    )
    return await downloader.run()


async def download_series(
    opts: DownloadOptions,
    store: ProgressStore | None = None,
    client: WebtoonHttpClient | None = None,
) -> SeriesResult:
    """
    Downloads the series given by `opts.series_url`.

    Args:
        opts    : Options for downloading the series.
        store   : Optional progress store used to resume the download and record its progress.
        client  : Optional HTTP client, one is created from the options otherwise.

    Returns:
        The result of the series download.

    Raises:
        SeriesDownloadError if the series could not be downloaded. Failed batches do not raise.
    """
    client = client or WebtoonHttpClient(proxy=opts.proxy, retry_strategy=opts.retry_strategy)
    async with client:
        try:
            return await _download_series(opts, client, store)
        except Exception as exc:
            raise SeriesDownloadError(opts.series_url, exc) from exc


async def download_library(
    opts: DownloadOptions,
    store: ProgressStore,
    client: WebtoonHttpClient | None = None,
) -> list[SeriesResult | None]:
    """
    Downloads the new episodes of every series stored in the progress store.

    Each series is an independent job: its errors are logged and its result is None. Only
    page layout errors stop the whole run since every other series would hit them as well.

    Args:
        opts    : Options shared by all series. The URL and the episode range come from the store.
        store   : The progress store listing the series to download.
        client  : Optional HTTP client, one is created from the options otherwise.

    Returns:
        The result of each series, in store order.
    """
    records = await store.all()
    if not records:
        log.warning('No series found in the database "%s"', store.path)
        return []

    limit = len(records) if opts.all_series_at_once else opts.series_concurrency
    semaphore = asyncio.Semaphore(limit)
    log.info("Updating %d series, %d at a time", len(records), limit)

    client = client or WebtoonHttpClient(proxy=opts.proxy, retry_strategy=opts.retry_strategy)

    async def job(record: ProgressRecord) -> SeriesResult | None:
        series_opts = replace(opts, series_url=record.url, min_episode=None)
        async with semaphore:
            try:
                return await _download_series(series_opts, client, store)
            except PageLayoutError:
                raise
            except NoEpisodesFoundError:
                log.info("%s (%s) is up to date", record.series, record.language)
            except Exception as exc:
                log.error('Failed to update %s (%s) from "%s": %s', record.series, record.language, record.url, exc)
                log.debug("Series download error", exc_info=exc)
        return None

    async with client:
        tasks = [asyncio.create_task(job(record)) for record in records]
        try:
            return await asyncio.gather(*tasks)
        except PageLayoutError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
