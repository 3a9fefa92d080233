from __future__ import annotations

from os import PathLike
from typing import Protocol, runtime_checkable

from .exceptions import StreamWriteError
from .pdf import PdfComicBuilder
from .progress import ProgressRecord, ProgressStore
from .zip import ArchiveComicBuilder


@runtime_checkable
class ComicBuilder(Protocol):
    """
    Protocol for output file builders.

    Images are appended one at a time, in reading order, then the whole file is written at once.
    """

    async def append(self, image: bytes) -> None:
        """
        Adds an image as the next page of the output file.

        Args:
            image: The raw bytes of the image.
        """

    async def finalize(self, path: str | PathLike[str]) -> None:
        """
        Writes the output file to the given path.

        Args:
            path: The target path of the output file.
        """

    def close(self) -> None:
        """Releases the resources held by the builder. Calling it more than once is allowed."""


def new_comic_builder(output_format: str) -> ComicBuilder:
    """Returns an empty builder for the given output format."""
    if output_format == "pdf":
        return PdfComicBuilder()
    if output_format in ("cbz", "zip"):
        return ArchiveComicBuilder()
    raise ValueError(f"Unsupported output format: {output_format}")


__all__ = [
    "ArchiveComicBuilder",
    "ComicBuilder",
    "PdfComicBuilder",
    "ProgressRecord",
    "ProgressStore",
    "StreamWriteError",
    "new_comic_builder",
]
