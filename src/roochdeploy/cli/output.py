"""Shared CLI helpers: error handling and report output."""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager

import click

from roochdeploy.lib.errors import ClusterError, ConfigError, FileNotFoundError
from roochdeploy.lib.logging_config import get_logger
from roochdeploy.models.report import Severity, ValidationReport

logger = get_logger(__name__)

EXIT_CHECKS_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_CLUSTER_ERROR = 3


@contextmanager
def handle_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in CLI commands.

    Exit codes:
        2: Configuration error (missing file, bad YAML, schema violation)
        3: Cluster or unexpected error
    """
    try:
        yield
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.path}")
        click.secho("Error: File not found", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ClusterError as e:
        logger.error(f"Cluster error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(EXIT_CLUSTER_ERROR)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_CLUSTER_ERROR)


def print_report(report: ValidationReport, title: str, quiet: bool = False) -> None:
    """Print a report's findings with a pass/fail summary line."""
    if not quiet:
        for result in report.results:
            colour = "red" if result.severity == Severity.ERROR else "yellow"
            label = result.severity.value.upper()
            location = f" [{result.field}]" if result.field else ""
            click.secho(f"  {label:<7}", fg=colour, nl=False)
            click.echo(f" {result.check}{location}: {result.message}")

    summary = (
        f"{title} {report.subject}: {len(report.errors)} error(s), "
        f"{len(report.warnings)} warning(s)"
    )
    if report.passed:
        click.secho(f"✓ {summary}", fg="green")
    else:
        click.secho(f"✗ {summary}", fg="red", err=True)
