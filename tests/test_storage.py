from __future__ import annotations

import io
import zipfile
from pathlib import Path

import fitz
import pytest
from PIL import Image

from webtoon_dl.storage import (
    ArchiveComicBuilder,
    ComicBuilder,
    PdfComicBuilder,
    ProgressRecord,
    ProgressStore,
    new_comic_builder,
)
from webtoon_dl.storage.exceptions import StreamWriteError


def image_bytes(image: Image.Image, fmt: str = "JPEG") -> bytes:
    with io.BytesIO() as output:
        image.save(output, format=fmt)
        return output.getvalue()


@pytest.mark.asyncio
async def test_pdf_builder(tmp_path: Path) -> None:
    test_images = [
        Image.new("RGB", (100, 100), color="red"),
        Image.new("RGB", (200, 300), color="green"),
        Image.new("RGB", (300, 150), color="blue"),
    ]
    target = tmp_path / "hero" / "en" / "Episode_1.pdf"

    builder = PdfComicBuilder()
    for img in test_images:
        await builder.append(image_bytes(img))
    assert builder.page_count == len(test_images)
    await builder.finalize(target)

    with fitz.open(target) as doc:
        assert len(doc) == len(test_images)

        for page_num, img in enumerate(test_images):
            page = doc.load_page(page_num)
            pix = page.get_pixmap()  # pyright: ignore[reportAttributeAccessIssue]
            assert pix.width == img.width and pix.height == img.height


@pytest.mark.asyncio
async def test_archive_builder(tmp_path: Path) -> None:
    images = [
        image_bytes(Image.new("RGB", (10, 10), color="red")),
        image_bytes(Image.new("RGB", (10, 10), color="green"), fmt="PNG"),
        image_bytes(Image.new("RGB", (10, 10), color="blue")),
    ]
    target = tmp_path / "out.cbz"

    builder = ArchiveComicBuilder()
    for data in images:
        await builder.append(data)
    await builder.finalize(target)

    with zipfile.ZipFile(target, "r") as zip_ref:
        assert zip_ref.namelist() == ["0000000000.jpg", "0000000001.png", "0000000002.jpg"]
        for name, data in zip(zip_ref.namelist(), images):
            assert zip_ref.read(name) == data


@pytest.mark.asyncio
async def test_pdf_builder_raises_stream_write_error(tmp_path: Path) -> None:
    builder = PdfComicBuilder()
    with pytest.raises(StreamWriteError):
        await builder.append(b"not an image")

    with pytest.raises(StreamWriteError):
        await builder.finalize(tmp_path / "empty.pdf")

    assert not (tmp_path / "empty.pdf").exists()
    assert builder.closed


@pytest.mark.asyncio
async def test_archive_builder_raises_stream_write_error(tmp_path: Path) -> None:
    with pytest.raises(StreamWriteError):
        await ArchiveComicBuilder().finalize(tmp_path / "empty.zip")

    builder = ArchiveComicBuilder()
    await builder.append(image_bytes(Image.new("RGB", (10, 10))))
    with pytest.raises(StreamWriteError):
        # Writing over a directory should cause an error
        await builder.finalize(tmp_path)

    assert builder.closed


@pytest.mark.asyncio
@pytest.mark.parametrize("builder_type", [PdfComicBuilder, ArchiveComicBuilder])
async def test_builder_close(builder_type: type, tmp_path: Path) -> None:
    builder = builder_type()
    await builder.append(image_bytes(Image.new("RGB", (10, 10))))
    await builder.finalize(tmp_path / "out")
    assert builder.closed

    empty = builder_type()
    with pytest.raises(StreamWriteError):
        await empty.finalize(tmp_path / "empty")
    assert empty.closed

    abandoned = builder_type()
    await abandoned.append(image_bytes(Image.new("RGB", (10, 10))))
    abandoned.close()
    abandoned.close()
    assert abandoned.closed


@pytest.mark.asyncio
async def test_pdf_builder_close_after_failed_append() -> None:
    builder = PdfComicBuilder()
    with pytest.raises(StreamWriteError):
        await builder.append(b"not an image")

    assert not builder.closed
    builder.close()
    assert builder.closed


@pytest.mark.parametrize(
    "output_format, expected",
    [("pdf", PdfComicBuilder), ("cbz", ArchiveComicBuilder), ("zip", ArchiveComicBuilder)],
)
def test_new_comic_builder(output_format: str, expected: type) -> None:
    builder = new_comic_builder(output_format)

    assert isinstance(builder, expected)
    assert isinstance(builder, ComicBuilder)


def test_new_comic_builder_unknown_format() -> None:
    with pytest.raises(ValueError):
        new_comic_builder("epub")


@pytest.mark.asyncio
async def test_progress_store(tmp_path: Path) -> None:
    store = ProgressStore(tmp_path / "db" / "database.db")

    assert await store.get("hero", "en") is None
    assert await store.all() == []

    record = ProgressRecord("hero", "en", "https://www.webtoons.com/en/fantasy/hero/list?title_no=7", 3, 2, "cbz")
    await store.upsert(record)
    await store.upsert(ProgressRecord("hero", "fr", "https://www.webtoons.com/fr/fantasy/hero/list?title_no=9", 1))

    assert await store.get("hero", "en") == record
    assert [r.language for r in await store.all()] == ["en", "fr"]

    await store.upsert(ProgressRecord("hero", "en", record.url, 5, 2, "cbz"))
    assert (await store.get("hero", "en")).last_chapter == 5  # type: ignore[union-attr]
    assert len(await store.all()) == 2

    # the progress outlives the store instance
    assert await ProgressStore(tmp_path / "db" / "database.db").get("hero", "en") == ProgressRecord(
        "hero", "en", record.url, 5, 2, "cbz"
    )
