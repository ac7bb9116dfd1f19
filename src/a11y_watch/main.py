"""CLI entrypoint for a11y-watch."""

import logging
from collections.abc import Callable

import rich_click as click

from a11y_watch import __version__
from a11y_watch.controllers import DirWatchCommand, NetWatchCommand, WatchCliController
from a11y_watch.errors import ConfigurationError
from a11y_watch.watcher import SINGLE_SHOT

click.rich_click.USE_MARKDOWN = True
WATCH_CONTROLLER = WatchCliController()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="a11y-watch")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging verbosity.",
)
def a11y_watch(log_level: str) -> None:
    """Accessibility audit job watcher.

    Jobs come from `$JOBDIR/todo` (**dir**) or from the job servers listed in
    `$JOB_URLS`, joined with `+` (**net**).
    """

    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT)


@a11y_watch.command("dir")
@click.option(
    "--interval",
    type=float,
    default=SINGLE_SHOT,
    show_default=True,
    help="Seconds between checks of the queue directory; -1 checks once.",
)
@click.option("--executor", "executor_path", default=None, help="Check executor as module:factory.")
@click.option("--with-items/--totals-only", default=None, help="Include itemized findings.")
def dir_watch(interval: float, executor_path: str | None, with_items: bool | None) -> None:
    """Run jobs found in the queue directory."""

    _run(
        lambda: WATCH_CONTROLLER.dir_watch(
            DirWatchCommand(interval=interval, executor_path=executor_path, with_items=with_items),
        ),
    )


@a11y_watch.command("net")
@click.option(
    "--forever/--once",
    "is_forever",
    default=False,
    show_default=True,
    help="Keep watching after the first job, or stop after it.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait after a full server cycle finds no job. Default 300.",
)
@click.option("--executor", "executor_path", default=None, help="Check executor as module:factory.")
@click.option("--with-items/--totals-only", default=None, help="Include itemized findings.")
def net_watch(
    is_forever: bool,
    interval: float | None,
    executor_path: str | None,
    with_items: bool | None,
) -> None:
    """Poll job servers in shuffled rotation and run the jobs they hand out."""

    _run(
        lambda: WATCH_CONTROLLER.net_watch(
            NetWatchCommand(
                is_forever=is_forever,
                interval=interval,
                executor_path=executor_path,
                with_items=with_items,
            ),
        ),
    )


def _run(action: Callable[[], list[str]]) -> None:
    try:
        lines = action()
    except (ConfigurationError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    a11y_watch()
