"""CLI commands that work on manifests offline.

Implements ``roochdeploy validate`` and ``roochdeploy render``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from roochdeploy.cli.output import EXIT_CHECKS_FAILED, handle_errors, print_report
from roochdeploy.config.loader import ManifestLoader
from roochdeploy.lib.logging_config import get_logger
from roochdeploy.manifest.checks import PROFILES, validate_deployment
from roochdeploy.manifest.generator import (
    default_manifest_path,
    render_manifest,
    write_manifest,
)
from roochdeploy.models.bot import BotConfig

logger = get_logger(__name__)


@click.command()
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--profile",
    type=click.Choice(sorted(PROFILES)),
    default="roochbot",
    show_default=True,
    help="Set of checks to run",
)
@click.option("--name", type=str, default=None, help="Deployment to select")
@click.option("--strict", is_flag=True, help="Treat warnings as errors")
@click.pass_context
def validate(
    ctx: click.Context, manifest: str, profile: str, name: str | None, strict: bool
) -> None:
    """Validate a Deployment manifest.

    MANIFEST is the path to the YAML manifest. The Deployment is checked
    against the schema, then for cross-field consistency: selector against
    template labels, mounts against volumes, environment sources, and the
    --characters file against the projected ConfigMap item.

    Example:

        roochdeploy validate kube/mainnet/roochbot/mainnet-roochbot-deployment.yaml
    """
    logger.debug(f"Validating {manifest} with profile '{profile}' strict={strict}")
    quiet = ctx.obj.get("quiet", False) if ctx.obj else False
    with handle_errors():
        deployment = ManifestLoader().load_deployment(manifest, name=name)
        report = validate_deployment(deployment, profile=profile, strict=strict)

    print_report(report, "Validated", quiet=quiet)
    if not report.passed:
        sys.exit(EXIT_CHECKS_FAILED)


@click.command()
@click.argument(
    "bot_config",
    type=click.Path(exists=True, dir_okay=False),
    required=False,
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the manifest to this file instead of stdout",
)
@click.option(
    "--write",
    "write_default",
    is_flag=True,
    help="Write to kube/<namespace>/<name>/<namespace>-<name>-deployment.yaml",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Repository root used with --write",
)
@click.pass_context
def render(
    ctx: click.Context,
    bot_config: str | None,
    output: str | None,
    write_default: bool,
    root: str,
) -> None:
    """Render a Deployment manifest from a bot configuration.

    BOT_CONFIG is an optional bot.yaml; without it the roochbot defaults
    are rendered. ${VAR} references in BOT_CONFIG are substituted from the
    environment.

    Example:

        roochdeploy render bot.yaml -o deployment.yaml

        roochdeploy render --write
    """
    quiet = ctx.obj.get("quiet", False) if ctx.obj else False
    with handle_errors():
        if bot_config:
            bot = ManifestLoader().load_bot_config(bot_config)
        else:
            bot = BotConfig()
        logger.debug(f"Rendering manifest for {bot.namespace}/{bot.name}")

        target: Path | None = None
        if output:
            target = Path(output)
        elif write_default:
            target = default_manifest_path(bot, root)

        if target is None:
            click.echo(render_manifest(bot), nl=False)
            return

        write_manifest(bot, target)
        if not quiet:
            click.secho(f"✓ Wrote {target}", fg="green", err=True)
