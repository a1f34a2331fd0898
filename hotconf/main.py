"""
Command-line interface for hotconf.

Inspect, convert and watch configuration documents with the same code the
library uses at runtime.
"""

import logging
import sys
import threading
from typing import Optional

import typer

from .application.configurator import Configurator
from .core.exceptions import HotconfError
from .core.interfaces.lifecycle import CallbackConfigurable
from .core.options import codec
from .core.options.node import Options
from .core.registry import default_registry
from .infrastructure.drivers import FILE_DRIVER, register_builtin_drivers
from .infrastructure.logging.setup import LoggingConfig, setup_logging

OUTPUT_TEXT = "text"

cli = typer.Typer(
    name="hotconf",
    help="Hot-reloadable hierarchical configuration toolkit"
)

logger = logging.getLogger(__name__)


def _render(options: Options, output: str) -> str:
    if output == OUTPUT_TEXT:
        return options.format()
    return codec.to_text(options, codec.normalize_format(output))


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    sys.exit(1)


@cli.callback()
def main_options(
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="HOTCONF_LOG_LEVEL", help="Logging level"
    )
) -> None:
    """Hot-reloadable hierarchical configuration toolkit."""
    setup_logging(LoggingConfig(level=log_level.upper()))


@cli.command()
def drivers() -> None:
    """List the registered configuration drivers."""
    register_builtin_drivers()
    for name in default_registry.drivers():
        typer.echo(name)


@cli.command()
def parse(
    text: str = typer.Argument(..., help="Escaped key=value; text"),
    output: str = typer.Option(
        "json", "--output", "-o", help="Output format (json/hjson/yaml/text)"
    )
) -> None:
    """Parse escaped key=value; text and print the result."""
    options = Options()
    try:
        options.parse(text)
        typer.echo(_render(options, output))
    except HotconfError as e:
        _fail(f"Parse failed: {e}")


@cli.command()
def show(
    config_file: str = typer.Argument(..., help="Configuration file"),
    section: str = typer.Option(
        "", "--section", "-s", help="Dotted path of the section to show"
    ),
    input_format: str = typer.Option(
        "", "--format", "-f", help="Input format, inferred from the extension by default"
    ),
    output: str = typer.Option(
        "json", "--output", "-o", help="Output format (json/hjson/yaml/text)"
    )
) -> None:
    """Print a configuration file or one of its sections."""
    try:
        options = codec.from_file(config_file, input_format)
        typer.echo(_render(options.get(section), output))
    except (HotconfError, OSError) as e:
        _fail(f"Cannot show {config_file}: {e}")


@cli.command()
def convert(
    source: str = typer.Argument(..., help="Source configuration file"),
    target: str = typer.Argument(..., help="Target configuration file"),
    source_format: str = typer.Option(
        "", "--from", help="Source format, inferred from the extension by default"
    ),
    target_format: str = typer.Option(
        "", "--to", help="Target format, inferred from the extension by default"
    )
) -> None:
    """Convert a configuration file between JSON, HJSON and YAML."""
    try:
        options = codec.from_file(source, source_format)
        codec.to_file(options, target, target_format)
    except (HotconfError, OSError) as e:
        _fail(f"Conversion failed: {e}")
    typer.echo(f"Configuration converted to {target}")


@cli.command()
def watch(
    driver: str = typer.Option(
        FILE_DRIVER, "--driver", "-d", envvar="HOTCONF_DRIVER", help="Configuration driver"
    ),
    props: str = typer.Option(
        ..., "--props", "-p", envvar="HOTCONF_PROPS",
        help="Driver properties as escaped key=value; text"
    ),
    section: str = typer.Option(
        "", "--section", "-s", help="Dotted path of the section to watch"
    ),
    output: str = typer.Option(
        "json", "--output", "-o", help="Output format (json/hjson/yaml/text)"
    ),
    duration: Optional[float] = typer.Option(
        None, "--duration", help="Stop after this many seconds"
    )
) -> None:
    """Print a section every time the configuration source changes."""
    register_builtin_drivers()

    properties = Options()
    try:
        properties.parse(props)
        configurator = Configurator(driver, properties)
    except HotconfError as e:
        _fail(f"Cannot connect driver {driver}: {e}")
        return

    def show_section(options: Options, first: bool) -> None:
        if not first:
            typer.echo("---")
        typer.echo(_render(options, output))

    stop = threading.Event()
    with configurator:
        try:
            configurator.register(section, CallbackConfigurable(show_section))
            stop.wait(duration)
        except KeyboardInterrupt:
            logger.info("Watch interrupted by user")
        except HotconfError as e:
            _fail(f"Watch failed: {e}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
