from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

import dacite
import httpx

from webtoon_dl.core.exceptions import (
    EpisodeFetchError,
    FetchError,
    ManifestFetchError,
    ManifestURLNotFoundError,
    PathRuleNotFoundError,
)
from webtoon_dl.core.webtoon.client import WebtoonHttpClient
from webtoon_dl.core.webtoon.extractor import FILENAME_PLACEHOLDER, WebtoonViewerPageExtractor
from webtoon_dl.core.webtoon.models import MotiontoonManifest

log = logging.getLogger(__name__)

DEFAULT_REQUEST_DELAY = 0.2
"""Delay in seconds observed after every page fetch to avoid hammering the origin"""


@dataclass
class ImageLinkResolver:
    """
    Resolves the ordered image URLs of a single episode.

    Images are read from the viewer page markup. Some series serve their images from the
    motiontoon backend instead; the viewer page then only embeds the URL of a JSON manifest
    and a path rule used to build each image URL.

    Attributes:
        client          : HTTP client used to fetch viewer pages and manifests.
        request_delay   : Delay in seconds observed after each viewer page fetch.
    """

    client: WebtoonHttpClient
    request_delay: float = DEFAULT_REQUEST_DELAY

    async def resolve(self, episode_url: str) -> list[str]:
        """
        Returns the image URLs of the episode in reading order.

        Raises:
            EpisodeFetchError   : The viewer page could not be fetched.
            PageLayoutError     : The page matches neither the standard nor the motiontoon layout.
        """
        try:
            html = await self.client.get_html(episode_url)
        except (httpx.HTTPError, FetchError) as exc:
            raise EpisodeFetchError(f"Failed to fetch episode page {episode_url}: {exc}") from exc
        finally:
            await asyncio.sleep(self.request_delay)

        extractor = WebtoonViewerPageExtractor(html)
        img_urls = extractor.get_img_urls()
        if img_urls:
            return img_urls

        log.debug('No image found in "%s", falling back to the motiontoon manifest', episode_url)
        return await self._resolve_motiontoon(episode_url, extractor)

    async def _resolve_motiontoon(self, episode_url: str, extractor: WebtoonViewerPageExtractor) -> list[str]:
        """Builds the image URLs from the motiontoon manifest referenced by the viewer page."""
        document_url = extractor.get_motiontoon_document_url()
        if not document_url:
            raise ManifestURLNotFoundError(episode_url)

        manifest = await self._get_manifest(episode_url, document_url)

        path_rule = extractor.get_motiontoon_path_rule()
        if not path_rule:
            raise PathRuleNotFoundError(episode_url)

        return [path_rule.replace(FILENAME_PLACEHOLDER, filename) for filename in manifest.sorted_filenames()]

    async def _get_manifest(self, episode_url: str, document_url: str) -> MotiontoonManifest:
        try:
            data = await self.client.get_json(document_url)
            return dacite.from_dict(data_class=MotiontoonManifest, data=data)
        except (httpx.HTTPError, FetchError, json.JSONDecodeError, dacite.DaciteError, AttributeError) as exc:
            raise ManifestFetchError(episode_url, f"Could not read the motiontoon manifest {document_url}: {exc}") from exc
