from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EpisodeRef:
    """
    An immutable reference to an episode found on a series listing page.

    Equality and hashing only use the URL: the listing may render the same
    episode with a different caption, but it is still the same episode.

    Attributes:
        url     : The viewer URL of the episode.
        title   : The caption displayed on the listing page.
    """

    url: str
    title: str = field(default="", compare=False)


@dataclass(frozen=True)
class EpisodeBatch:
    """
    An immutable group of consecutive episodes that are written to a single output file.

    Attributes:
        image_links     : Image URLs of all the episodes, in reading order.
        title           : Title of the output file, built from the episode titles.
        min_episode     : Episode number of the first episode in the batch.
        max_episode     : Episode number of the last episode in the batch.
    """

    image_links: tuple[str, ...]
    title: str
    min_episode: int
    max_episode: int

    def __post_init__(self) -> None:
        if self.min_episode > self.max_episode:
            raise ValueError(f"min_episode {self.min_episode} is greater than max_episode {self.max_episode}")
        object.__setattr__(self, "image_links", tuple(self.image_links))


@dataclass
class MotiontoonAssets:
    image: dict[str, str]


@dataclass
class MotiontoonManifest:
    """
    The JSON document served by the motiontoon image backend.

    Only the image assets are relevant: the keys are opaque identifiers whose
    lexicographic order is the reading order, the values are file names.
    """

    assets: MotiontoonAssets

    @property
    def images(self) -> dict[str, str]:
        return self.assets.image

    def sorted_filenames(self) -> list[str]:
        return [self.images[key] for key in sorted(self.images)]
