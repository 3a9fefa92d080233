"""Helpers for the webtoons.com URL grammar.

Listing pages look like ``https://www.webtoons.com/en/fantasy/tower-of-god/list?title_no=95&page=2``
and viewer pages like ``https://www.webtoons.com/en/fantasy/tower-of-god/season-3-ep-234/viewer?title_no=95&episode_no=652``.
"""

from __future__ import annotations

import re

from furl import furl

from webtoon_dl.core.exceptions import InvalidURL

_EPISODE_NO_PATTERN = re.compile(r"episode_no=([0-9]+)")


def extract_episode_number(url: str) -> int:
    """
    Extracts the episode number from the ``episode_no`` query argument of a URL.

    Returns 0 when the argument is missing or not a number. Callers must treat 0 as
    "unknown": if every URL of a series yields 0, range filtering and sorting do nothing useful.
    A series that really numbers an episode 0 can not be told apart from a missing number.
    """
    match = _EPISODE_NO_PATTERN.search(url)
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        return 0


def is_viewer_url(url: str) -> bool:
    """Returns True if the URL points to a single episode viewer page rather than a series listing."""
    return "/viewer" in url


def with_page(url: str, page: int) -> str:
    """Returns the listing URL with its ``page`` query argument set to `page`."""
    f = furl(url)
    f.args["page"] = str(page)
    return f.url


def normalize_url(url: str) -> str:
    """
    Sanitizes a user provided URL.

    Removes the backslashes shells tend to leave before query separators and adds
    a scheme if there is none.

    Raises:
        InvalidURL if the URL has no host.
    """
    url = re.sub(r"\\(?=[?=&])", "", url.strip())
    if not furl(url).scheme:
        url = f"https://{url}"

    f = furl(url)
    if not f.scheme or not f.host:
        raise InvalidURL(url)
    return f.url


def get_series_and_language(url: str) -> tuple[str, str]:
    """
    Returns the series slug and the language code of a listing or viewer URL.

    ex: ``https://www.webtoons.com/en/fantasy/tower-of-god/list?title_no=95`` => ``("tower-of-god", "en")``
    """
    segments = [segment for segment in furl(url).path.segments if segment]
    if len(segments) < 3:
        raise InvalidURL(url)
    return segments[2], segments[0]


def get_listing_url(url: str) -> str:
    """
    Returns the series listing URL of a viewer URL. Listing URLs are returned as is.

    ex: ``https://www.webtoons.com/en/fantasy/tower-of-god/season-3-ep-234/viewer?title_no=95&episode_no=652``
    => ``https://www.webtoons.com/en/fantasy/tower-of-god/list?title_no=95``
    """
    if not is_viewer_url(url):
        return url

    f = furl(url)
    segments = [segment for segment in f.path.segments if segment]
    if len(segments) < 3:
        raise InvalidURL(url)

    f.path.segments = [*segments[:3], "list"]
    f.args = {key: value for key, value in f.args.items() if key == "title_no"}
    return f.url


def get_episode_slug(url: str) -> str:
    """Returns the episode slug of a viewer URL, or an empty string if the URL has none."""
    segments = [segment for segment in furl(url).path.segments if segment]
    if len(segments) < 5 or segments[-1] != "viewer":
        return ""
    return segments[3]
