from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, TypeVar

from webtoon_dl.core.exceptions import NoEpisodesFoundError
from webtoon_dl.core.webtoon.fetchers import EpisodeCatalogCrawler
from webtoon_dl.core.webtoon.models import EpisodeBatch, EpisodeRef
from webtoon_dl.core.webtoon.resolver import ImageLinkResolver
from webtoon_dl.core.webtoon.urls import extract_episode_number, get_episode_slug, is_viewer_url

log = logging.getLogger(__name__)

T = TypeVar("T")

TITLE_SEPARATOR = "_"


def chunk_episodes(episodes: Sequence[T], size: int) -> list[Sequence[T]]:
    """
    Splits `episodes` into contiguous chunks of `size` elements, preserving order.

    The last chunk holds the remaining elements and may be shorter.
    """
    if size < 1:
        raise ValueError(f"Chunk size must be greater than or equal to 1, got {size}")
    return [episodes[start : start + size] for start in range(0, len(episodes), size)]


def create_title(titles: Sequence[str]) -> str:
    """Joins the episode titles of a batch, ex: ``["A", "B", "C"]`` => ``"A_B_C"``."""
    return TITLE_SEPARATOR.join(titles)


def filter_episodes(catalog: Sequence[EpisodeRef], min_episode: int, max_episode: int) -> list[EpisodeRef]:
    """Keeps the episodes whose number is within ``[min_episode, max_episode]``."""
    return [ref for ref in catalog if min_episode <= extract_episode_number(ref.url) <= max_episode]


@dataclass
class BatchPlanner:
    """
    Turns a series or episode URL into the batches of episodes to download.

    Attributes:
        crawler     : Crawler used to list the episodes of a series.
        resolver    : Resolver used to get the image URLs of each episode.
    """

    crawler: EpisodeCatalogCrawler
    resolver: ImageLinkResolver

    async def plan(self, url: str, min_episode: int, max_episode: int, episodes_per_file: int) -> list[EpisodeBatch]:
        """
        Plans the batches for `url`.

        A viewer URL yields a single batch for that episode. A listing URL is crawled and
        the episodes within ``[min_episode, max_episode]`` are grouped `episodes_per_file` at a time.

        Raises:
            NoEpisodesFoundError if no episode is within the requested range.
        """
        if episodes_per_file < 1:
            raise ValueError(f"episodes_per_file must be greater than or equal to 1, got {episodes_per_file}")

        if is_viewer_url(url):
            return [await self._plan_single_episode(url)]

        log.info("Scanning all pages to get all episode links")
        catalog = await self.crawler.crawl(url)
        episodes = filter_episodes(catalog, min_episode, max_episode)
        if not episodes:
            raise NoEpisodesFoundError(
                f"No episode found between {min_episode} and {max_episode} ({len(catalog)} episodes available)"
            )

        actual_min = max(min_episode, extract_episode_number(episodes[0].url))
        actual_max = min(max_episode, extract_episode_number(episodes[-1].url))
        log.info("Fetching image links for episodes %d through %d", actual_min, actual_max)

        batches = []
        for chunk in chunk_episodes(episodes, episodes_per_file):
            batches.append(await self._plan_batch(chunk, actual_max))
        return batches

    async def _plan_single_episode(self, url: str) -> EpisodeBatch:
        episode_no = extract_episode_number(url)
        image_links = await self.resolver.resolve(url)
        return EpisodeBatch(image_links, get_episode_slug(url), episode_no, episode_no)

    async def _plan_batch(self, chunk: Sequence[EpisodeRef], last_episode: int) -> EpisodeBatch:
        """Resolves the image links of every episode of the chunk, one episode after the other."""
        image_links: list[str] = []
        for ref in chunk:
            log.debug("Fetching image links for episode %d/%d", extract_episode_number(ref.url), last_episode)
            image_links.extend(await self.resolver.resolve(ref.url))

        return EpisodeBatch(
            image_links=tuple(image_links),
            title=create_title([ref.title for ref in chunk]),
            min_episode=extract_episode_number(chunk[0].url),
            max_episode=extract_episode_number(chunk[-1].url),
        )
