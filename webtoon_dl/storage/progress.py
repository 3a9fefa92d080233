from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, Callable, Iterator

log = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "database.db"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS webtoon (
    series TEXT NOT NULL,
    lang TEXT NOT NULL,
    url TEXT NOT NULL,
    last_chapter INTEGER NOT NULL DEFAULT 0,
    episodes_per_file INTEGER NOT NULL DEFAULT 1,
    format TEXT NOT NULL DEFAULT 'pdf',
    PRIMARY KEY (series, lang)
)
"""

_UPSERT = """
INSERT INTO webtoon (series, lang, url, last_chapter, episodes_per_file, format)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT (series, lang) DO UPDATE SET
    url = excluded.url,
    last_chapter = excluded.last_chapter,
    episodes_per_file = excluded.episodes_per_file,
    format = excluded.format
"""

_COLUMNS = "series, lang, url, last_chapter, episodes_per_file, format"


@dataclass(frozen=True)
class ProgressRecord:
    """
    Download progress of a series in one language.

    Attributes:
        series              : The series slug, ex: ``tower-of-god``.
        language            : The language code, ex: ``en``.
        url                 : The listing URL of the series.
        last_chapter        : The number of the last downloaded episode.
        episodes_per_file   : The number of episodes stored in each output file.
        output_format       : The output format, ``pdf``, ``cbz`` or ``zip``.
    """

    series: str
    language: str
    url: str
    last_chapter: int = 0
    episodes_per_file: int = 1
    output_format: str = "pdf"


@dataclass
class ProgressStore:
    """
    SQLite backed store of the download progress, one row per (series, language).

    Queries run in the default executor. Writes are serialized by a lock on top of the
    SQLite transactions so concurrent series downloads can safely report their progress.

    Attributes:
        path: Path of the SQLite database file, created on first use.
    """

    path: str | PathLike[str] = DEFAULT_DATABASE_PATH

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _initialized: bool = field(init=False, default=False)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        path = Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path)
        try:
            if not self._initialized:
                conn.execute(_CREATE_TABLE)
                conn.commit()
                self._initialized = True
            with conn:
                yield conn
        finally:
            conn.close()

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def get(self, series: str, language: str) -> ProgressRecord | None:
        """Returns the progress record of a series, or None if the series was never downloaded."""
        return await self._run(self._get, series, language)

    async def all(self) -> list[ProgressRecord]:
        """Returns every stored progress record."""
        return await self._run(self._all)

    async def upsert(self, record: ProgressRecord) -> None:
        """Inserts or replaces the progress record of a series."""
        async with self._lock:
            await self._run(self._upsert, record)
        log.debug("Saved progress %s", record)

    def _get(self, series: str, language: str) -> ProgressRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM webtoon WHERE series = ? AND lang = ?",  # noqa: S608
                (series, language),
            ).fetchone()
        return ProgressRecord(*row) if row else None

    def _all(self) -> list[ProgressRecord]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM webtoon ORDER BY series, lang").fetchall()  # noqa: S608
        return [ProgressRecord(*row) for row in rows]

    def _upsert(self, record: ProgressRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                _UPSERT,
                (
                    record.series,
                    record.language,
                    record.url,
                    record.last_chapter,
                    record.episodes_per_file,
                    record.output_format,
                ),
            )
