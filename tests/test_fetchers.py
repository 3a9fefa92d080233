import httpx
import pytest
from fake_site import SERIES_URL, FakeWebtoonSite, listing_html, viewer_url

from webtoon_dl.core.webtoon.client import WebtoonHttpClient
from webtoon_dl.core.webtoon.fetchers import EpisodeCatalogCrawler
from webtoon_dl.core.webtoon.resolver import DEFAULT_REQUEST_DELAY


@pytest.mark.asyncio
async def test_crawl_stops_on_repeated_page() -> None:
    site = FakeWebtoonSite(episodes=list(range(1, 8)), page_size=3)
    crawler = EpisodeCatalogCrawler(site.client(), request_delay=0)

    refs = await crawler.crawl(SERIES_URL)

    assert [ref.url for ref in refs] == [viewer_url(n) for n in range(1, 8)]
    # 3 distinct pages, the 4th one renders the 3rd page again
    assert [request.url.params["page"] for request in site.listing_requests()] == ["1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_crawl_single_page() -> None:
    site = FakeWebtoonSite(episodes=[1, 2], page_size=3)
    crawler = EpisodeCatalogCrawler(site.client(), request_delay=0)

    refs = await crawler.crawl(SERIES_URL)

    assert [ref.title for ref in refs] == ["Episode 1", "Episode 2"]
    assert len(site.listing_requests()) == 2


@pytest.mark.asyncio
async def test_crawl_empty_listing() -> None:
    site = FakeWebtoonSite(episodes=[])
    crawler = EpisodeCatalogCrawler(site.client(), request_delay=0)

    assert await crawler.crawl(SERIES_URL) == []
    assert len(site.listing_requests()) == 1


@pytest.mark.asyncio
async def test_crawl_stops_on_fetch_error() -> None:
    requested_pages = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        requested_pages.append(page)
        if page == "1":
            return httpx.Response(200, text=listing_html([9, 8]))
        return httpx.Response(503)

    crawler = EpisodeCatalogCrawler(WebtoonHttpClient(transport=httpx.MockTransport(handler)), request_delay=0)

    refs = await crawler.crawl(SERIES_URL)

    assert [ref.url for ref in refs] == [viewer_url(8), viewer_url(9)]
    assert requested_pages == ["1", "2"]


@pytest.mark.asyncio
async def test_crawl_stops_on_partially_repeated_page() -> None:
    pages = {"1": [6, 5, 4], "2": [4, 3]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=listing_html(pages[request.url.params["page"]]))

    crawler = EpisodeCatalogCrawler(WebtoonHttpClient(transport=httpx.MockTransport(handler)), request_delay=0)

    refs = await crawler.crawl(SERIES_URL)

    # the crawl stops on the first repeated episode, episode 3 is never collected
    assert [ref.url for ref in refs] == [viewer_url(4), viewer_url(5), viewer_url(6)]


@pytest.mark.asyncio
async def test_delay_after_every_listing_page(sleeps: list[float]) -> None:
    site = FakeWebtoonSite(episodes=list(range(1, 8)), page_size=3)
    crawler = EpisodeCatalogCrawler(site.client(), request_delay=0.25)

    await crawler.crawl(SERIES_URL)

    assert len(site.listing_requests()) == 4
    assert sleeps == [0.25] * 4


@pytest.mark.asyncio
async def test_delay_after_failed_listing_page(sleeps: list[float]) -> None:
    crawler = EpisodeCatalogCrawler(
        WebtoonHttpClient(transport=httpx.MockTransport(lambda _: httpx.Response(503))), request_delay=0.25
    )

    assert await crawler.crawl(SERIES_URL) == []
    assert sleeps == [0.25]


def test_default_delay() -> None:
    assert EpisodeCatalogCrawler(FakeWebtoonSite(episodes=[]).client()).request_delay == DEFAULT_REQUEST_DELAY == 0.2
