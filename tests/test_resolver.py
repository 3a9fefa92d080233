from __future__ import annotations

import httpx
import pytest
from fake_site import motiontoon_html, viewer_html

from webtoon_dl.core.exceptions import (
    EpisodeFetchError,
    ManifestFetchError,
    ManifestURLNotFoundError,
    PageLayoutError,
    PathRuleNotFoundError,
    RateLimitedError,
)
from webtoon_dl.core.webtoon.client import WebtoonHttpClient
from webtoon_dl.core.webtoon.resolver import ImageLinkResolver

EPISODE_URL = "https://www.webtoons.com/en/thriller/motion/ep-1/viewer?title_no=3&episode_no=1"
DOCUMENT_URL = "https://global.apis.naver.com/lineWebtoon/webtoon/motiontoonJson.json?seq=2830"
PATH_RULE = "https://ewebtoon-phinf.pstatic.net/motiontoon/3536/{=filename}?type=q70"

MANIFEST = {
    "assets": {
        "image": {
            "layer-c": "c.png",
            "layer-a": "a.png",
            "layer-b": "b.png",
        },
        "sound": {"bgm": "bgm.mp3"},
    },
    "documentVersion": "1.0",
}


def make_resolver(pages: dict[str, httpx.Response]) -> ImageLinkResolver:
    def handler(request: httpx.Request) -> httpx.Response:
        return pages.get(str(request.url), httpx.Response(404))

    return ImageLinkResolver(WebtoonHttpClient(transport=httpx.MockTransport(handler)), request_delay=0)


@pytest.mark.asyncio
async def test_resolve_viewer_images() -> None:
    img_urls = ["https://cdn/1.jpg", "https://cdn/2.jpg"]
    resolver = make_resolver({EPISODE_URL: httpx.Response(200, text=viewer_html(img_urls))})

    assert await resolver.resolve(EPISODE_URL) == img_urls


@pytest.mark.asyncio
async def test_resolve_motiontoon_in_key_order() -> None:
    resolver = make_resolver(
        {
            EPISODE_URL: httpx.Response(200, text=motiontoon_html(DOCUMENT_URL, PATH_RULE)),
            DOCUMENT_URL: httpx.Response(200, json=MANIFEST),
        }
    )

    assert await resolver.resolve(EPISODE_URL) == [
        "https://ewebtoon-phinf.pstatic.net/motiontoon/3536/a.png?type=q70",
        "https://ewebtoon-phinf.pstatic.net/motiontoon/3536/b.png?type=q70",
        "https://ewebtoon-phinf.pstatic.net/motiontoon/3536/c.png?type=q70",
    ]


@pytest.mark.asyncio
async def test_missing_document_url() -> None:
    resolver = make_resolver({EPISODE_URL: httpx.Response(200, text=motiontoon_html(None, PATH_RULE))})

    with pytest.raises(ManifestURLNotFoundError) as exc_info:
        await resolver.resolve(EPISODE_URL)

    assert isinstance(exc_info.value, PageLayoutError)
    assert exc_info.value.url == EPISODE_URL


@pytest.mark.asyncio
async def test_missing_path_rule() -> None:
    resolver = make_resolver(
        {
            EPISODE_URL: httpx.Response(200, text=motiontoon_html(DOCUMENT_URL, None)),
            DOCUMENT_URL: httpx.Response(200, json=MANIFEST),
        }
    )

    with pytest.raises(PathRuleNotFoundError):
        await resolver.resolve(EPISODE_URL)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "manifest_response",
    [
        httpx.Response(500),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"assets": {"sound": {}}}),
    ],
    ids=["ServerError", "NotJson", "NoImages"],
)
async def test_invalid_manifest(manifest_response: httpx.Response) -> None:
    resolver = make_resolver(
        {
            EPISODE_URL: httpx.Response(200, text=motiontoon_html(DOCUMENT_URL, PATH_RULE)),
            DOCUMENT_URL: manifest_response,
        }
    )

    with pytest.raises(ManifestFetchError):
        await resolver.resolve(EPISODE_URL)


@pytest.mark.asyncio
async def test_episode_fetch_error() -> None:
    resolver = make_resolver({})

    with pytest.raises(EpisodeFetchError) as exc_info:
        await resolver.resolve(EPISODE_URL)

    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_rate_limited() -> None:
    resolver = make_resolver({EPISODE_URL: httpx.Response(429)})

    with pytest.raises(EpisodeFetchError) as exc_info:
        await resolver.resolve(EPISODE_URL)

    assert isinstance(exc_info.value.__cause__, RateLimitedError)


@pytest.mark.asyncio
async def test_delay_after_viewer_page(sleeps: list[float]) -> None:
    resolver = make_resolver(
        {
            EPISODE_URL: httpx.Response(200, text=motiontoon_html(DOCUMENT_URL, PATH_RULE)),
            DOCUMENT_URL: httpx.Response(200, json=MANIFEST),
        }
    )
    resolver.request_delay = 0.25

    await resolver.resolve(EPISODE_URL)

    # the manifest fetch is not delayed
    assert sleeps == [0.25]


@pytest.mark.asyncio
async def test_delay_after_failed_viewer_page(sleeps: list[float]) -> None:
    resolver = make_resolver({})
    resolver.request_delay = 0.25

    with pytest.raises(EpisodeFetchError):
        await resolver.resolve(EPISODE_URL)

    assert sleeps == [0.25]
