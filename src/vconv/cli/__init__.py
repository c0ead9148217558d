"""CLI entry point for vconv."""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from vconv.cli.exit_codes import ExitCode
from vconv.config import get_config
from vconv.domain.enums import FormatTag
from vconv.domain.models import ConversionRequest
from vconv.exceptions import ConfigError, ToolNotAvailableError
from vconv.executor.command import default_output_path
from vconv.executor.supervisor import ConversionSupervisor
from vconv.introspector.ffprobe import FFprobeIntrospector
from vconv.logging import configure_logging
from vconv.tools.detection import require_tool
from vconv.ui.app import ConverterApp
from vconv.ui.picker import resolve_start_directory

logger = logging.getLogger(__name__)


def _is_interactive() -> bool:
    """Check if running in interactive mode (TTY).

    This is extracted as a function to allow easier mocking in tests.
    """
    return sys.stdin.isatty() and sys.stdout.isatty()


def _fail(message: str, *, err: bool = False) -> NoReturn:
    click.echo(message, err=err)
    raise SystemExit(ExitCode.GENERAL_ERROR)


def _build_supervisor(config) -> ConversionSupervisor:
    """Locate ffmpeg/ffprobe and wire up the supervisor.

    Raises:
        ToolNotAvailableError: If either tool is missing.
    """
    ffmpeg = require_tool("ffmpeg", config.get_tool_path("ffmpeg"))
    ffprobe = require_tool("ffprobe", config.get_tool_path("ffprobe"))
    logger.debug("Using ffmpeg=%s ffprobe=%s", ffmpeg, ffprobe)

    prober = FFprobeIntrospector(
        ffprobe_path=ffprobe,
        timeout=config.conversion.probe_timeout_seconds,
    )
    return ConversionSupervisor(
        ffmpeg,
        prober,
        channel_capacity=config.conversion.channel_capacity,
        cancel_grace_seconds=config.conversion.cancel_grace_seconds,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="vconv")
@click.option(
    "-in",
    "--input",
    "input_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Input media file. Without it, an interactive file picker opens.",
)
@click.option(
    "-out",
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Output file (default: derived from the input name and format).",
)
@click.option(
    "-format",
    "--format",
    "format_name",
    default=None,
    help="Output format: h264|prores|dnxhd|wav (default: h264).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    default=None,
    help="Config file (default: ~/.vconv/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: warning).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
def main(
    input_path: Path | None,
    output_path: Path | None,
    format_name: str | None,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Convert a media file with ffmpeg and watch its progress."""
    try:
        config = get_config(
            config_path=config_path,
            log_level=log_level.lower() if log_level else None,
            log_file=log_file,
            log_format="json" if log_json else None,
            strict=config_path is not None,
        )
    except ConfigError as e:
        _fail(f"Error: {e}", err=True)

    configure_logging(config.logging)

    try:
        format_tag = FormatTag.parse(format_name or config.conversion.default_format)
    except ValueError as e:
        click.echo(str(e))
        _fail(f"valid formats: {', '.join(FormatTag.names())}")

    if input_path is None and not _is_interactive():
        _fail("please provide the input file")

    try:
        supervisor = _build_supervisor(config)
    except ToolNotAvailableError as e:
        _fail(f"Error: {e}", err=True)

    if input_path is not None:
        request = ConversionRequest(
            input_path=input_path,
            output_path=output_path or default_output_path(input_path, format_tag),
            format_tag=format_tag,
        )
        logger.info(
            "Converting %s -> %s (%s)",
            request.input_path,
            request.output_path,
            format_tag.value,
        )
        app = ConverterApp(supervisor)
        raise SystemExit(app.run_request(request))

    app = ConverterApp(
        supervisor,
        start_directory=resolve_start_directory(config.conversion.start_directory),
        output_path=output_path,
        default_format=format_tag,
    )
    result = app.run()
    raise SystemExit(result.exit_code)
