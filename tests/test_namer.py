from dataclasses import dataclass
from pathlib import Path

import pytest

from webtoon_dl.core.webtoon.models import EpisodeBatch
from webtoon_dl.core.webtoon.namer import OutputNamer, slugify_name


@dataclass
class NamerTestCase:
    test_id: str
    batch: EpisodeBatch
    expected_name: str


namer_cases = [
    NamerTestCase("SingleEpisode", EpisodeBatch((), "Episode 1", 1, 1), "Episode_1-epNo1.cbz"),
    NamerTestCase("EpisodeRange", EpisodeBatch((), "A_B_C", 4, 6), "A_B_C-epNo4-epNo6.cbz"),
    NamerTestCase("UnsafeCharacters", EpisodeBatch((), "Who? / Me!", 2, 2), "Who__Me-epNo2.cbz"),
    NamerTestCase("EmptyTitle", EpisodeBatch((), "", 7, 7), "hero-epNo7.cbz"),
    NamerTestCase("LongTitle", EpisodeBatch((), "x" * 201, 1, 2), "hero-epNo1-epNo2.cbz"),
]


@pytest.mark.parametrize("case", namer_cases, ids=[case.test_id for case in namer_cases])
def test_get_path(case: NamerTestCase) -> None:
    namer = OutputNamer("hero", "en", "cbz", "downloads")

    assert namer.get_path(case.batch) == Path("downloads") / "hero" / "en" / case.expected_name


def test_same_title_different_episodes() -> None:
    namer = OutputNamer("hero", "en", "pdf")
    batches = [EpisodeBatch((), "Notice", n, n) for n in range(1, 4)]

    assert len({namer.get_path(batch) for batch in batches}) == len(batches)


def test_slugify_name() -> None:
    assert slugify_name("  Episode 1: The Start.  ") == "Episode_1_The_Start"
    assert slugify_name("...") == ""
