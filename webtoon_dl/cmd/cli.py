from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from typing import Any, Literal

import rich_click as click

import webtoon_dl.logger
from webtoon_dl.cmd.exceptions import (
    CLIInvalidConcurrentCountError,
    CLIInvalidEpisodeRangeError,
    CLIInvalidEpisodesPerFileError,
    CLIInvalidMinEpisodeError,
    CLIMissingURLError,
    CLIURLWithDatabaseModeError,
    is_root_cause_page_layout_error,
    is_root_cause_rate_limit_error,
)
from webtoon_dl.cmd.progress import BatchProgressManager, init_progress
from webtoon_dl.core.exceptions import PageLayoutError, SeriesDownloadError
from webtoon_dl.core.webtoon.client import RetryStrategy
from webtoon_dl.core.webtoon.downloaders import series as series_downloader
from webtoon_dl.core.webtoon.downloaders.options import (
    DEFAULT_CONCURRENT_BATCH_DOWNLOADS,
    DEFAULT_CONCURRENT_SERIES_DOWNLOADS,
    DEFAULT_MAX_EPISODE,
    DownloadOptions,
    OutputFormat,
)
from webtoon_dl.core.webtoon.downloaders.result import SeriesResult
from webtoon_dl.storage import ProgressStore
from webtoon_dl.storage.progress import DEFAULT_DATABASE_PATH

help_config = click.RichHelpConfiguration(
    show_metavars_column=False,
    append_metavars_help=True,
    style_errors_suggestion="magenta italic",
    errors_suggestion="Try running '--help' for more information.",
)


class GracefulExit(SystemExit):
    code = 1


def validate_concurrent_count(ctx: Any, param: Any, value: int | None) -> int | None:  # pylint: disable=unused-argument
    if value is not None and value <= 0:
        raise CLIInvalidConcurrentCountError(value)

    return value


def validate_min_episode(ctx: Any, param: Any, value: int | None) -> int | None:  # pylint: disable=unused-argument
    if value is not None and value < 0:
        raise CLIInvalidMinEpisodeError(value)

    return value


def validate_episodes_per_file(ctx: Any, param: Any, value: int | None) -> int | None:  # pylint: disable=unused-argument
    if value is not None and value < 1:
        raise CLIInvalidEpisodesPerFileError(value)

    return value


def _print_summary(console: Any, results: list[SeriesResult | None]) -> None:
    for result in results:
        if result is None:
            continue
        saved = sum(1 for r in result.results if r.status == "completed")
        skipped = sum(1 for r in result.results if r.status == "skipped")
        line = f"[green]{result.series} ({result.language}):[/] {saved} saved, {skipped} skipped"
        if result.failed:
            line += f", [red]{len(result.failed)} failed[/]"
        console.print(line)
        for failed in result.failed:
            console.print(f"  [red]- {failed.path}: {failed.error}[/]")


@click.command()
@click.version_option()
@click.pass_context
@click.rich_config(help_config=help_config)
@click.argument("url", required=False, type=str)
@click.option(
    "--min-ep",
    type=int,
    callback=validate_min_episode,
    help="Minimum episode number to download (inclusive). Resumes after the last downloaded episode by default",
)
@click.option("--max-ep", type=int, help="Maximum episode number to download (inclusive)")
@click.option(
    "--eps-per-file",
    type=int,
    callback=validate_episodes_per_file,
    help="Number of episodes to put in each file  [default: 1]",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["pdf", "cbz", "zip"]),
    help="Output format  [default: pdf]",
)
@click.option(
    "--out",
    "-o",
    type=click.Path(file_okay=False, writable=True, resolve_path=True),
    default=".",
    help="Download parent folder path",
)
@click.option(
    "--skip-existing",
    is_flag=True,
    help="Do not download files that already exist",
)
@click.option(
    "--db",
    "use_database",
    is_flag=True,
    help="Download the new episodes of every series stored in the database",
)
@click.option(
    "--db-path",
    type=click.Path(dir_okay=False, resolve_path=True),
    default=DEFAULT_DATABASE_PATH,
    show_default=True,
    help="Path of the database storing the download progress",
)
@click.option(
    "--concurrent-batches",
    "-E",
    type=int,
    default=DEFAULT_CONCURRENT_BATCH_DOWNLOADS,
    show_default=True,
    callback=validate_concurrent_count,
    help="Number of files of a series downloaded concurrently",
)
@click.option(
    "--concurrent-series",
    "-W",
    type=int,
    default=DEFAULT_CONCURRENT_SERIES_DOWNLOADS,
    show_default=True,
    callback=validate_concurrent_count,
    help="Number of series downloaded concurrently with --db",
)
@click.option(
    "--all-series",
    is_flag=True,
    help="Download all the series of the database at once, ignoring --concurrent-series",
)
@click.option(
    "--proxy",
    type=str,
    help="proxy address to use for making requests. e.g. http://127.0.0.1:7890",
)
@click.option(
    "--retry-strategy",
    type=click.Choice(["exponential", "linear", "fixed", "none"]),
    default="exponential",
    show_default=True,
    help="Retry strategy for failed requests",
)
@click.option("--debug", type=bool, is_flag=True, help="Enable debug mode")
def cli(  # noqa: C901
    ctx: click.Context,
    url: str | None,
    min_ep: int | None,
    max_ep: int | None,
    eps_per_file: int | None,
    output_format: OutputFormat | None,
    out: str,
    skip_existing: bool,
    use_database: bool,
    db_path: str,
    concurrent_batches: int,
    concurrent_series: int,
    all_series: bool,
    proxy: str | None,
    retry_strategy: RetryStrategy | Literal["none"] | None,
    debug: bool,
) -> None:
    if use_database and url:
        raise CLIURLWithDatabaseModeError(ctx)
    if not use_database and not url:
        raise CLIMissingURLError(ctx)
    if min_ep is not None and max_ep is not None and min_ep > max_ep:
        raise CLIInvalidEpisodeRangeError(ctx)

    log, console = webtoon_dl.logger.setup(
        log_level=logging.DEBUG if debug else logging.WARNING,
        log_filename="webtoon_dl.log" if debug else None,
        enable_traceback=debug,
        enable_console_logging=True,
    )

    progress = init_progress(console)
    files_task = progress.add_task("Downloading...", type="Files", rendered_total="??", total=None)
    progress_manager = BatchProgressManager(progress, files_task)

    opts = DownloadOptions(
        series_url=url or "",
        min_episode=min_ep,
        max_episode=max_ep if max_ep is not None else DEFAULT_MAX_EPISODE,
        episodes_per_file=eps_per_file,
        output_format=output_format,
        destination=out,
        episode_concurrency=concurrent_batches,
        series_concurrency=concurrent_series,
        all_series_at_once=all_series,
        skip_existing=skip_existing,
        use_database=use_database,
        database_path=db_path,
        retry_strategy=retry_strategy if retry_strategy != "none" else None,
        proxy=proxy,
        batch_progress_callback=progress_manager.advance_progress,
        on_batches_planned=progress_manager.on_batches_planned,
    )
    store = ProgressStore(opts.database_path)

    async def _download() -> list[SeriesResult | None]:
        if opts.use_database:
            return await series_downloader.download_library(opts, store)
        return [await series_downloader.download_series(opts, store)]

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def _shutdown() -> None:
        """Cancel remaining tasks and stop the loop *quietly*."""
        progress.console.print("[bold red]Stopping Download...[/]")
        current = asyncio.current_task()
        tasks = {t for t in asyncio.all_tasks(loop) if t is not current}
        for t in tasks:
            t.cancel()

        await asyncio.gather(*tasks, return_exceptions=True)
        progress.console.print("[red]Download Stopped![/]")
        loop.stop()
        raise GracefulExit

    def _raise_graceful_exit(*_: Any) -> None:
        exit_tasks = set()
        shutdown_task = loop.create_task(_shutdown())
        exit_tasks.add(shutdown_task)
        shutdown_task.add_done_callback(exit_tasks.discard)

    exit_code = 0
    with progress:
        main_task = loop.create_task(_download())
        signal.signal(signal.SIGINT, _raise_graceful_exit)
        signal.signal(signal.SIGTERM, _raise_graceful_exit)
        progress.print("Press [bold]Ctrl+C[/] to stop the download early...")
        with contextlib.suppress(GracefulExit, asyncio.CancelledError):
            try:
                results = loop.run_until_complete(main_task)
                progress.print("Download complete!")
                _print_summary(progress.console, results)
            except (SeriesDownloadError, PageLayoutError) as exc:
                exit_code = 1
                console.print(f"[red][bold]Download error:[/bold] {exc}[/]")
                if is_root_cause_page_layout_error(exc):
                    console.print("[red][bold]The page layout of the website has changed, retrying will not help.[/bold][/]")
                elif is_root_cause_rate_limit_error(exc):
                    console.print(
                        "[red][bold]Oh no! We got rate limited! Please consider using a proxy or a lower --concurrent-batches value[/bold][/]"
                    )

                log.debug("Download error", exc_info=exc)
            finally:
                log.debug("Shutting down logger")
                webtoon_dl.logger.shutdown()
                loop.close()

    ctx.exit(exit_code)


def run() -> None:
    """CLI entrypoint"""
    if len(sys.argv) <= 1:
        sys.argv.append("--help")

    cli()  # pylint: disable=no-value-for-parameter
