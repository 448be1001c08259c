"""CLI for the hrvmon real-time HRV monitor."""

import asyncio

import click

from hrvmon.logging_utils import configure_logging


def _settings(window_ms: float | None):
    from hrvmon.config import settings_from_env
    from hrvmon.errors import ConfigurationError

    try:
        return settings_from_env(window_ms=window_ms)
    except ConfigurationError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging verbosity.",
)
@click.option("--log-file", default=None, type=click.Path(), help="Also log to this file.")
def main(log_level: str, log_file: str | None) -> None:
    """hrvmon: real-time HRV from BLE heart rate sensors."""
    configure_logging(log_level, log_file)


@main.command()
@click.option("--timeout", "-t", default=10.0, help="Scan timeout in seconds.")
def scan(timeout: float) -> None:
    """Scan for nearby heart rate sensors."""
    from hrvmon.scanner import scan as do_scan

    asyncio.run(do_scan(timeout))


@main.command()
@click.option("--address", "-a", default=None, help="BLE address to connect to.")
@click.option("--window-ms", default=None, type=float, help="HRV window in milliseconds.")
def monitor(address: str | None, window_ms: float | None) -> None:
    """Stream live HRV metrics and interpretation from a sensor."""
    from hrvmon.monitor import monitor as do_monitor

    settings = _settings(window_ms)
    try:
        asyncio.run(do_monitor(address, settings))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


@main.command()
@click.option("--address", "-a", default=None, help="BLE address to connect to.")
@click.option("--duration", "-d", default=None, type=float, help="Capture duration in seconds.")
@click.option("--output", "-o", default=None, help="Output file path.")
def capture(address: str | None, duration: float | None, output: str | None) -> None:
    """Capture raw heart rate measurement frames to a JSONL file."""
    from hrvmon.logger import capture as do_capture

    try:
        asyncio.run(do_capture(address, duration, output))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--output", "-o", default=None, help="Write per-frame results as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Show skipped and malformed entries.")
@click.option("--window-ms", default=None, type=float, help="HRV window in milliseconds.")
def replay(file: str, output: str | None, verbose: bool, window_ms: float | None) -> None:
    """Replay a captured frame log through the HRV pipeline."""
    from hrvmon.replay import replay_file

    replay_file(file, output, verbose, settings=_settings(window_ms))


if __name__ == "__main__":
    main()
