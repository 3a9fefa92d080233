from __future__ import annotations

import asyncio
import io
import zipfile
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

import aiofiles
from PIL import Image

from .exceptions import StreamWriteError, stream_error_handler

_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "WEBP": "webp", "BMP": "bmp"}


def _guess_extension(image: bytes, default: str = "jpg") -> str:
    """Returns the file extension matching the image format, or `default` if the format is unknown."""
    try:
        with Image.open(io.BytesIO(image)) as img:
            return _EXTENSIONS.get(img.format or "", default)
    except OSError:
        return default


@dataclass
class ArchiveComicBuilder:
    """
    Builds a comic archive (cbz or zip) in memory and writes it on finalize.

    Entries are named after their position, ``0000000000.jpg``, ``0000000001.png``... so
    readers sorting entries by name get the append order.

    Attributes:
        compression : The zipfile compression method. Images are already compressed so they are stored as is by default.
    """

    compression: int = zipfile.ZIP_STORED

    _buffer: io.BytesIO = field(init=False)
    _zip_file: zipfile.ZipFile = field(init=False)
    _entries: int = field(init=False, default=0)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def __post_init__(self) -> None:
        self._buffer = io.BytesIO()
        self._zip_file = zipfile.ZipFile(self._buffer, mode="w", compression=self.compression)

    @property
    def entries(self) -> int:
        return self._entries

    @property
    def closed(self) -> bool:
        return self._buffer.closed

    @stream_error_handler
    async def append(self, image: bytes) -> None:
        """Stores the image as the next entry of the archive."""
        async with self._lock:
            name = f"{self._entries:010d}.{_guess_extension(image)}"
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._zip_file.writestr, name, image)
            self._entries += 1

    @stream_error_handler
    async def finalize(self, path: str | PathLike[str]) -> None:
        """
        Closes the archive and writes it to `path`, creating its parent directories.

        Raises:
            StreamWriteError if the archive has no entry or can not be written.
        """
        try:
            if self._entries == 0:
                raise StreamWriteError("Can not save an archive without any image")

            self._zip_file.close()
            data = self._buffer.getvalue()
        finally:
            self.close()

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, mode="wb") as f:
            await f.write(data)

    def close(self) -> None:
        """Discards the archive, the builder can not be used afterwards."""
        self._zip_file.close()
        self._buffer.close()
