"""
chainkit Main module - diagnostic command line
"""

import json
import logging
import time
from typing import Any, Optional

import typer

from chainkit.features import FeatureRegistry
from chainkit.version import get_version

# Module-level logger
logger = logging.getLogger("chainkit.main")


# Create CLI app with Typer
app = typer.Typer(
    name="chainkit",
    help="chainkit - inspect namespaces and exercise paths, matchers and aggregates",
    add_completion=False,
)


# ----------------- Helper Functions -----------------


class ElapsedMsFormatter(logging.Formatter):
    """Formatter that shows milliseconds since program start, right-aligned for up to 9999 seconds."""
    def __init__(self, fmt=None, datefmt=None, *args, **kwargs):
        super().__init__(fmt, datefmt, *args, **kwargs)
        self.start_time = time.monotonic()
        self.width = 8

    def format(self, record):
        elapsed_ms = int((time.monotonic() - self.start_time) * 1000)
        if elapsed_ms < 10**7:
            elapsed = f"[{elapsed_ms:>{self.width}}ms]"
        else:
            elapsed = f"[{elapsed_ms}ms]"
        record.elapsed = elapsed
        return super().format(record)


VERBOSE_LEVEL = 15  # Between INFO (20) and DEBUG (10)
logging.addLevelName(VERBOSE_LEVEL, "VERBOSE")

def verbose(self, message, *args, **kwargs):
    if self.isEnabledFor(VERBOSE_LEVEL):
        self._log(VERBOSE_LEVEL, message, args, **kwargs)
logging.Logger.verbose = verbose  # type: ignore[attr-defined]


def setup_logging(debug: bool = False, verbose: bool = False) -> None:
    """Set up logging configuration"""
    if debug:
        log_level = logging.DEBUG
    elif verbose:
        log_level = VERBOSE_LEVEL
    else:
        log_level = logging.INFO
    formatter = ElapsedMsFormatter('%(elapsed)s %(message)s')
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers = []  # Remove any existing handlers
    root.addHandler(handler)
    root.setLevel(log_level)

    # Lark logs grammar construction at debug level
    logging.getLogger("lark").setLevel(logging.DEBUG if debug else logging.WARNING)


def handle_cli_feature(feature_name: str, **kwargs: Any) -> None:
    """Run a feature and print its data as JSON"""
    feature = FeatureRegistry.get_feature(feature_name)
    if not feature:
        logger.error("Unknown feature: %s", feature_name)
        raise typer.Exit(code=1)

    try:
        result = feature.handler(**kwargs)
    except Exception:
        logger.exception("Unexpected error")
        raise typer.Exit(code=1)

    if not result.success:
        logger.error("Operation failed: %s", result.error or "Unknown error")
        raise typer.Exit(code=1)
    if feature_name == "version":
        typer.echo(f"chainkit version: {result.data.get('version', 'unknown')}")
        return
    logger.verbose("Feature %s completed", feature_name)  # type: ignore[attr-defined]
    typer.echo(json.dumps(result.data, indent=2, sort_keys=True))


# ----------------- CLI Commands -----------------


@app.command()
def version() -> None:
    """Show the chainkit version"""
    setup_logging(False)
    handle_cli_feature("version")


@app.command()
def namespaces(
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging (between info and debug)"),
) -> None:
    """List namespaces and loaded modules"""
    setup_logging(debug, verbose)
    logger.debug("chainkit version: %s", get_version())
    handle_cli_feature("namespaces")


@app.command()
def operations(
    namespace: str = typer.Argument(..., help="Namespace name, e.g. Array"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
) -> None:
    """List the operations of a namespace"""
    setup_logging(debug)
    handle_cli_feature("operations", namespace=namespace)


@app.command("get")
def get_command(
    document: str = typer.Argument(..., help="JSON document"),
    path: str = typer.Argument(..., help="Deep path, e.g. users[0].name"),
) -> None:
    """Read a deep path from a JSON document"""
    setup_logging(False)
    handle_cli_feature("get", document=document, path=path)


@app.command("set")
def set_command(
    document: str = typer.Argument(..., help="JSON document"),
    path: str = typer.Argument(..., help="Deep path, e.g. users[].name"),
    value: str = typer.Argument(..., help="JSON value to write"),
) -> None:
    """Write a JSON value at a deep path and print the document"""
    setup_logging(False)
    handle_cli_feature("set", document=document, path=path, value=value)


@app.command()
def match(
    spec: str = typer.Argument(..., help="JSON spec (or a regular expression with --pattern)"),
    value: str = typer.Argument(..., help="JSON value to test"),
    pattern: bool = typer.Option(False, "--pattern", help="Treat the spec as a regular expression"),
) -> None:
    """Match a JSON value against a spec"""
    setup_logging(False)
    handle_cli_feature("match", spec=spec, value=value, pattern=pattern)


@app.command()
def aggregate(
    operation: str = typer.Argument(..., help="min, max, least, most, sum, average, median or count"),
    document: str = typer.Argument(..., help="JSON array or object"),
    map: Optional[str] = typer.Option(None, "--map", help="Mapping path applied to each element"),
    all: bool = typer.Option(False, "--all", help="Return every tied result"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
) -> None:
    """Run an enumerable aggregate over a JSON document"""
    setup_logging(debug)
    handle_cli_feature("aggregate", operation=operation, document=document, map=map, all=all)


if __name__ == "__main__":
    app()
