from __future__ import annotations

from typing import Any

import rich_click as click

from webtoon_dl.core.exceptions import DownloadError, PageLayoutError, RateLimitedError


class CLIInvalidEpisodeRangeError(click.UsageError):
    """
    This error is raised when the user provides a minimum episode greater than the maximum episode.

    Args:
        ctx: The Click context associated with the error, if any.
    """

    def __init__(self, ctx: click.Context | None = None) -> None:
        message = "--min-ep must be less than or equal to --max-ep."
        super().__init__(message, ctx)


class CLIMissingURLError(click.UsageError):
    """
    This error is raised when no URL is given outside of the database mode.

    Args:
        ctx: The Click context associated with the error, if any.
    """

    def __init__(self, ctx: click.Context | None = None) -> None:
        message = 'A Webtoon URL of the form "https://www.webtoons.com/.../list?title_no=??" is required unless --db is used.'
        super().__init__(message, ctx)


class CLIURLWithDatabaseModeError(click.UsageError):
    """
    This error is raised when a URL is given along with --db, which downloads the stored series instead.

    Args:
        ctx: The Click context associated with the error, if any.
    """

    def __init__(self, ctx: click.Context | None = None) -> None:
        message = "A URL can not be used with --db, the series are read from the database."
        super().__init__(message, ctx)


class CLIInvalidMinEpisodeError(click.BadParameter):
    """
    Custom error for handling a negative minimum episode.
    """

    def __init__(self, value: Any):
        message = f"--min-ep must be greater than or equal to 0, got {value}."
        super().__init__(message)


class CLIInvalidEpisodesPerFileError(click.BadParameter):
    """
    Custom error for handling an invalid number of episodes per file.
    """

    def __init__(self, value: Any):
        message = f"--eps-per-file must be greater than or equal to 1, got {value}."
        super().__init__(message)


class CLIInvalidConcurrentCountError(click.BadParameter):
    """
    Custom error for handling invalid value for concurrent workers in the CLI.
    """

    def __init__(self, value: Any):
        message = f"Invalid value for concurrent workers {value}."
        super().__init__(message)


def is_root_cause_rate_limit_error(exc: BaseException | None) -> bool:
    if not isinstance(exc, (DownloadError, RateLimitedError)):
        return False

    if isinstance(exc, RateLimitedError):
        return True

    # Traverse the cause chain
    return is_root_cause_rate_limit_error(exc.cause)


def is_root_cause_page_layout_error(exc: BaseException | None) -> bool:
    if isinstance(exc, PageLayoutError):
        return True

    if not isinstance(exc, DownloadError):
        return False

    return is_root_cause_page_layout_error(exc.cause)
