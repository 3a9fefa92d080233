from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from io import BytesIO
from os import PathLike
from pathlib import Path
from typing import NamedTuple

import aiofiles
import fitz
from PIL import Image

from .exceptions import StreamWriteError, stream_error_handler


class ImageDimension(NamedTuple):
    """
    Represents the dimensions of an image.

    Args:
        width   : The width of the image.
        height  : The height of the image.
    """

    width: int
    height: int


@dataclass
class PdfComicBuilder:
    """
    Builds a PDF with one page per image, each page sized after its image.

    Images are inserted as they are appended, so the page order is the append order.
    """

    _doc: fitz.Document = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def __post_init__(self) -> None:
        self._doc = fitz.open()

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    @property
    def closed(self) -> bool:
        return self._doc.is_closed

    @stream_error_handler
    async def append(self, image: bytes) -> None:
        """
        Adds the image as the next page of the document.

        Raises:
            StreamWriteError if the image can not be decoded.
        """
        async with self._lock:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._add_page, image)

    @stream_error_handler
    async def finalize(self, path: str | PathLike[str]) -> None:
        """
        Writes the document to `path`, creating its parent directories.

        Raises:
            StreamWriteError if the document has no page or can not be written.
        """
        try:
            if self._doc.page_count == 0:
                raise StreamWriteError("Can not save a PDF without any page")

            loop = asyncio.get_running_loop()
            data = await loop.run_in_executor(None, self._doc.tobytes)
        finally:
            self.close()

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, mode="wb") as f:
            await f.write(data)

    def close(self) -> None:
        """Releases the document, the builder can not be used afterwards."""
        if not self._doc.is_closed:
            self._doc.close()

    def _add_page(self, image: bytes) -> None:
        with Image.open(BytesIO(image)) as img:
            dimension = ImageDimension(*img.size)

        page = self._doc.new_page(-1, width=dimension.width, height=dimension.height)  # pyright: ignore[reportAttributeAccessIssue]
        page.insert_image(fitz.Rect(0, 0, dimension.width, dimension.height), stream=image)
