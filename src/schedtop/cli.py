"""Command line entry point for schedtop."""

from pathlib import Path

import click
import structlog

from schedtop import log as console
from schedtop.config import Config, ConfigError
from schedtop.filtering import FilterSortController
from schedtop.provider import ProcStatReader, PsutilProvider, QuantumUnavailableError, read_quantum
from schedtop.session import InteractiveSession
from schedtop.table import ProcessTable


def build_session(config: Config, quantum: int) -> InteractiveSession:
    """Wire the psutil-backed table and the filter controller into a session."""
    table = ProcessTable(
        provider=PsutilProvider(),
        read_stat=ProcStatReader(Path(config.system.proc_root)),
        quantum=quantum,
    )
    controller = FilterSortController(
        filter_text=config.session.initial_filter,
        sort_key=config.session.sort_key,
    )
    return InteractiveSession(table, controller, tick_rate=config.session.tick_rate)


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml",
)
@click.option("--tick-rate", type=float, default=None, help="Seconds between refreshes")
@click.option("--filter", "filter_text", default=None, help="Initial filter text")
@click.version_option(package_name="schedtop")
def main(config_path: Path | None, tick_rate: float | None, filter_text: str | None) -> None:
    """Interactive process monitor showing kernel scheduling fields."""
    try:
        config = Config.load(config_path)
        if tick_rate is not None:
            config.session.tick_rate = tick_rate
        if filter_text is not None:
            config.session.initial_filter = filter_text
        config.validate()
    except ConfigError as e:
        console.error(str(e))
        raise SystemExit(1) from e

    console.configure(config)
    logger = structlog.get_logger(__name__)

    try:
        quantum = read_quantum(Path(config.system.quantum_path))
    except QuantumUnavailableError as e:
        logger.error("quantum_unavailable", error=str(e))
        console.error(str(e))
        raise SystemExit(1) from e

    logger.info("starting", quantum=quantum, tick_rate=config.session.tick_rate)

    from schedtop.app import SchedtopApp

    app = SchedtopApp(build_session(config, quantum))
    try:
        app.run()
    finally:
        logger.info("stopped", return_code=app.return_code)

    # Textual restores the terminal and reports UI failures through return_code
    if app.return_code:
        raise SystemExit(app.return_code)


if __name__ == "__main__":
    main()
