from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from webtoon_dl.core.webtoon.models import EpisodeRef
from webtoon_dl.core.webtoon.urls import get_episode_slug, is_viewer_url

log = logging.getLogger(__name__)

_DOCUMENT_URL_PATTERN = re.compile(
    r"viewerOptions:\s*\{.*?containerId:\s*'#ozViewer',.*?documentURL:\s*'([^']+)'",
    re.DOTALL,
)
_PATH_RULE_PATTERN = re.compile(
    r"motiontoonParam:\s*\{\s*pathRuleParam:\s*\{.*?stillcut:\s*'([^']+)'",
    re.DOTALL,
)

FILENAME_PLACEHOLDER = "{=filename}"
"""Placeholder of the motiontoon path rule replaced by each image file name"""


class InvalidHTMLObject(TypeError):
    """Exception raised when variable is neither a string nor a BeautifulSoup object."""

    def __str__(self) -> str:
        return "Variable passed is neither a string nor a BeautifulSoup object"


def _ensure_beautiful_soup(html: str | BeautifulSoup) -> BeautifulSoup:
    """Ensure the provided HTML is a BeautifulSoup object."""
    if not isinstance(html, str) and not isinstance(html, BeautifulSoup):
        raise InvalidHTMLObject()

    return html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, "lxml")


@dataclass
class WebtoonListPageExtractor:
    """Extractor for a listing page of a Webtoon series.

    Attributes:
        html: HTML content of a listing page. (ex: https://www.webtoons.com/en/fantasy/tower-of-god/list?title_no=95&page=2)
    """

    html: str | BeautifulSoup

    _soup: BeautifulSoup = field(init=False)

    def __post_init__(self) -> None:
        self._soup = _ensure_beautiful_soup(self.html)

    def get_episode_refs(self) -> list[EpisodeRef]:
        """Extracts the viewer links of the page along with their captions, in page order."""
        _list = self._soup.find("div", class_="detail_lst")
        if not isinstance(_list, Tag):
            log.debug("episode list container not found in listing page")
            return []

        refs: list[EpisodeRef] = []
        for anchor in _list.find_all("a"):
            href = anchor.get("href")
            if isinstance(href, list):
                href = href[0]
            if not href or not is_viewer_url(href):
                continue
            refs.append(EpisodeRef(url=href, title=self._get_caption(anchor) or get_episode_slug(href)))
        return refs

    def _get_caption(self, anchor: Tag) -> str:
        """Returns the caption of an episode anchor, or an empty string if the anchor has none."""
        subject = anchor.find("span", class_="subj")
        if not isinstance(subject, Tag):
            return ""

        caption = subject.find("span")
        if not isinstance(caption, Tag):
            caption = subject

        return caption.get_text().strip()


@dataclass
class WebtoonViewerPageExtractor:
    """Extractor for a viewer page of a Webtoon.

    Attributes:
        html: HTML content of a Webtoon viewer page. (ex: https://www.webtoons.com/en/fantasy/tower-of-god/season-3-ep-173/viewer?title_no=95&episode_no=591)
    """

    html: str

    _soup: BeautifulSoup = field(init=False)

    def __post_init__(self) -> None:
        self._soup = _ensure_beautiful_soup(self.html)

    def get_img_urls(self) -> list[str]:
        """
        Extracts image URLs from the image container of the episode.

        Returns an empty list if the page serves its images from the motiontoon backend.
        """
        _container = self._soup.find("div", class_="viewer_lst")
        if not isinstance(_container, Tag):
            _container = self._soup.find("div", class_=re.compile(r"\b_img_viewer_area\b"))

        if not isinstance(_container, Tag):
            log.debug("img container not found in viewer page")
            return []

        img_urls = []
        for tag in _container.find_all("img"):
            data_url = tag.get("data-url")
            if data_url:
                img_urls.append(str(data_url))
        return img_urls

    def get_motiontoon_document_url(self) -> str | None:
        """Extracts the URL of the motiontoon manifest embedded in the viewer options script."""
        match = _DOCUMENT_URL_PATTERN.search(self.html)
        return match.group(1) if match else None

    def get_motiontoon_path_rule(self) -> str | None:
        """Extracts the still image path rule, which contains the ``{=filename}`` placeholder."""
        match = _PATH_RULE_PATTERN.search(self.html)
        return match.group(1) if match else None
