from __future__ import annotations

from dataclasses import dataclass, field

from webtoon_dl.core.webtoon.models import EpisodeBatch


@dataclass
class DownloadError(Exception):
    """BaseException raised for download errors."""

    url: str
    cause: Exception | None = None
    base_message: str = "Failed to download from"
    message: str | None = field(default=None)

    def __str__(self) -> str:
        if self.message:
            return self.message

        if self.cause:
            cause_msg = str(self.cause)
            if cause_msg:
                return f'{self.base_message} "{self.url}" => {cause_msg}'

            return f'{self.base_message} "{self.url}" due to: {self.cause.__class__.__name__}'

        return f'{self.base_message}: "{self.url}"'


@dataclass
class SeriesDownloadError(DownloadError):
    """Exception raised when a whole series could not be downloaded"""

    base_message: str = "Failed to download series"


@dataclass
class ImageDownloadError(DownloadError):
    """Exception raised for image download errors"""

    base_message: str = "downloading image"


@dataclass
class BatchDownloadError(DownloadError):
    """Exception raised when an episode batch could not be assembled"""

    base_message: str = "downloading episodes"

    batch: EpisodeBatch | None = None

    def __str__(self) -> str:
        if self.batch is None or self.message:
            return super().__str__()

        cause = f" => {self.cause}" if self.cause else ""
        return f'{self.base_message} {self.batch.min_episode}-{self.batch.max_episode} of "{self.url}"{cause}'


@dataclass
class InvalidURL(Exception):
    """Exception raised due to an invalid URL"""

    url: str

    def __str__(self) -> str:
        return f"Invalid URL: {self.url}"


@dataclass
class FetchError(Exception):
    """Exception raised due to a fetch error"""

    msg: str | None = None


@dataclass
class EpisodeFetchError(FetchError):
    """Exception raised when an episode viewer page could not be fetched"""

    def __str__(self) -> str:
        if self.msg:
            return self.msg

        return "Failed to fetch episode page"


@dataclass
class NoEpisodesFoundError(FetchError):
    """Exception raised when no episode matches the requested range"""

    def __str__(self) -> str:
        if self.msg:
            return self.msg

        return "No episode found"


@dataclass
class RateLimitedError(FetchError):
    """Exception raised when we suspect the server is rate limiting us"""

    def __str__(self) -> str:
        if self.msg:
            return self.msg

        return "Rate limited"


@dataclass
class PageLayoutError(Exception):
    """
    Raised when a page does not match the markup the downloader relies on.

    Retrying does not help with these errors, the whole run has to stop.
    """

    url: str
    msg: str | None = None

    def __str__(self) -> str:
        if self.msg:
            return f'{self.msg} in "{self.url}"'

        return f'Unexpected page layout in "{self.url}"'


@dataclass
class ManifestURLNotFoundError(PageLayoutError):
    """Exception raised when the motiontoon document URL is missing from a viewer page"""

    msg: str | None = "Could not find the motiontoon documentURL"


@dataclass
class PathRuleNotFoundError(PageLayoutError):
    """Exception raised when the motiontoon image path rule is missing from a viewer page"""

    msg: str | None = "Could not find the motiontoon pathRule"


@dataclass
class ManifestFetchError(PageLayoutError):
    """Exception raised when the motiontoon manifest can not be fetched or parsed"""

    msg: str | None = "Could not read the motiontoon manifest"
