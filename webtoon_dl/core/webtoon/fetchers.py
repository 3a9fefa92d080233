from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from webtoon_dl.core.exceptions import FetchError
from webtoon_dl.core.webtoon.client import WebtoonHttpClient
from webtoon_dl.core.webtoon.extractor import WebtoonListPageExtractor
from webtoon_dl.core.webtoon.models import EpisodeRef
from webtoon_dl.core.webtoon.resolver import DEFAULT_REQUEST_DELAY
from webtoon_dl.core.webtoon.urls import extract_episode_number, with_page

log = logging.getLogger(__name__)


@dataclass
class EpisodeCatalogCrawler:
    """
    Collects every episode of a series by walking its paginated listing.

    The listing has no "last page" marker: any page number past the end renders the last
    page again. The crawl therefore stops on the first episode that was already collected.
    A failed page fetch also ends the crawl, so a transient error may under-report episodes.
    A page without any episode ends it too, so a changed listing layout can not loop forever.

    Attributes:
        client          : The HTTP client used for fetching listing pages.
        request_delay   : Delay in seconds observed after every page fetch.
    """

    client: WebtoonHttpClient
    request_delay: float = DEFAULT_REQUEST_DELAY

    async def crawl(self, series_url: str) -> list[EpisodeRef]:
        """
        Fetches all listing pages of a series.

        Args:
            series_url: URL of the series listing page.

        Returns:
            The unique episodes of the series, sorted by ascending episode number.
        """
        seen: set[EpisodeRef] = set()
        episodes: list[EpisodeRef] = []
        page = 1
        while True:
            page_url = with_page(series_url, page)
            refs = await self._get_page(page_url)
            if refs is None:
                break

            if not refs:
                log.warning('No episode found in listing page "%s", stopping', page_url)
                break

            repeated = False
            for ref in refs:
                if ref in seen:
                    repeated = True
                    break
                seen.add(ref)
                episodes.append(ref)

            if repeated:
                log.debug('Listing page "%s" repeats a previous page, reached the last page', page_url)
                break

            log.debug('Found %d episodes in "%s"', len(refs), page_url)
            page += 1

        log.info("Found %d total episodes", len(episodes))
        return sorted(episodes, key=lambda ref: extract_episode_number(ref.url))

    async def _get_page(self, page_url: str) -> list[EpisodeRef] | None:
        """Returns the episodes of a single listing page, or None if the page could not be fetched."""
        try:
            html = await self.client.get_html(page_url)
        except (httpx.HTTPError, FetchError) as exc:
            log.warning('Failed to fetch listing page "%s", stopping: %s', page_url, exc)
            return None
        finally:
            await asyncio.sleep(self.request_delay)

        return WebtoonListPageExtractor(html).get_episode_refs()
