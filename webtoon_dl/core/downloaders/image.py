from __future__ import annotations

import logging
from dataclasses import dataclass

from furl import furl

from webtoon_dl.core.exceptions import ImageDownloadError
from webtoon_dl.core.webtoon.client import WebtoonHttpClient

log = logging.getLogger(__name__)

UNSUPPORTED_EXTENSIONS = (".gif",)
"""Animated images can not be stored in the output files"""


def is_supported_image(url: str) -> bool:
    """Returns False for image URLs pointing to an animated format."""
    segments = furl(url).path.segments
    name = segments[-1].lower() if segments else ""
    return not name.endswith(UNSUPPORTED_EXTENSIONS)


@dataclass
class ImageDownloader:
    """
    Downloads the raw bytes of images.

    Attributes:
        client: HTTP client used for fetching the images.
    """

    client: WebtoonHttpClient

    async def run(self, url: str) -> bytes:
        """
        Downloads an image from a specified URL.

        Args:
            url: The URL of the image to be downloaded.

        Returns:
            The image bytes, untouched.

        Raises:
            ImageDownloadError: If an error occurs during the download process.
        """
        try:
            data = await self.client.get_image(url)
        except Exception as exc:
            raise ImageDownloadError(url=url, cause=exc) from exc

        log.debug('Downloaded "%s" (%d bytes)', url, len(data))
        return data
