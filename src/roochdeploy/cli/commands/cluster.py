"""CLI commands that talk to the Kubernetes API.

Implements ``roochdeploy preflight``, ``apply``, ``status`` and ``delete``.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any

import click

from roochdeploy.cli.output import EXIT_CHECKS_FAILED, handle_errors, print_report
from roochdeploy.cluster.client import ClusterClient
from roochdeploy.config.defaults import CONTEXT_ENV_VAR, KUBECONFIG_ENV_VAR
from roochdeploy.config.loader import ManifestLoader
from roochdeploy.lib.logging_config import get_logger
from roochdeploy.manifest.checks import PROFILES, validate_deployment

logger = get_logger(__name__)


def cluster_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Add the manifest argument and kubeconfig options to a command."""
    fn = click.option(
        "--context",
        envvar=CONTEXT_ENV_VAR,
        default=None,
        help=f"kubeconfig context (env: {CONTEXT_ENV_VAR})",
    )(fn)
    fn = click.option(
        "--kubeconfig",
        envvar=KUBECONFIG_ENV_VAR,
        type=click.Path(dir_okay=False),
        default=None,
        help=f"Path to kubeconfig (env: {KUBECONFIG_ENV_VAR}, then KUBECONFIG)",
    )(fn)
    fn = click.argument("manifest", type=click.Path(exists=True, dir_okay=False))(fn)
    return fn


def _quiet(ctx: click.Context) -> bool:
    return bool(ctx.obj.get("quiet", False)) if ctx.obj else False


@click.command()
@cluster_options
@click.pass_context
def preflight(
    ctx: click.Context, manifest: str, kubeconfig: str | None, context: str | None
) -> None:
    """Check that everything MANIFEST references exists in the cluster.

    Verifies the namespace, the envFrom ConfigMaps and Secrets, the
    PersistentVolumeClaims and the projected ConfigMap keys.

    Example:

        roochdeploy preflight kube/mainnet/roochbot/mainnet-roochbot-deployment.yaml
    """
    with handle_errors():
        deployment = ManifestLoader().load_deployment(manifest)
        report = ClusterClient(kubeconfig=kubeconfig, context=context).preflight(
            deployment
        )

    print_report(report, "Preflight", quiet=_quiet(ctx))
    if not report.passed:
        sys.exit(EXIT_CHECKS_FAILED)


@click.command()
@cluster_options
@click.option("--dry-run", is_flag=True, help="Server-side dry run only")
@click.option("--skip-preflight", is_flag=True, help="Do not check references")
@click.option(
    "--profile",
    type=click.Choice(sorted(PROFILES)),
    default="roochbot",
    show_default=True,
    help="Manifest checks to run before applying",
)
@click.pass_context
def apply(
    ctx: click.Context,
    manifest: str,
    kubeconfig: str | None,
    context: str | None,
    dry_run: bool,
    skip_preflight: bool,
    profile: str,
) -> None:
    """Create or update the Deployment in MANIFEST.

    The manifest is validated, the cluster is preflighted, then the
    Deployment is created or replaced by namespace and name. The
    orchestrator rolls it out asynchronously; use 'status' to follow it.

    Example:

        roochdeploy apply kube/mainnet/roochbot/mainnet-roochbot-deployment.yaml

        roochdeploy apply deployment.yaml --dry-run
    """
    quiet = _quiet(ctx)
    with handle_errors():
        deployment = ManifestLoader().load_deployment(manifest)
        report = validate_deployment(deployment, profile=profile)
        if not report.passed:
            print_report(report, "Validated", quiet=quiet)
            sys.exit(EXIT_CHECKS_FAILED)

        cluster = ClusterClient(kubeconfig=kubeconfig, context=context)
        if not skip_preflight:
            checked = cluster.preflight(deployment)
            if not checked.passed:
                print_report(checked, "Preflight", quiet=quiet)
                sys.exit(EXIT_CHECKS_FAILED)

        result = cluster.apply(deployment, dry_run=dry_run)
        logger.debug(f"Apply result: {result.model_dump(mode='json')}")

    suffix = " (dry run)" if result.dry_run else ""
    target = f"{result.namespace}/{result.name}"
    click.secho(
        f"✓ Deployment {target} {result.action.value}{suffix}",
        fg="green",
    )


@click.command()
@cluster_options
@click.pass_context
def status(
    ctx: click.Context, manifest: str, kubeconfig: str | None, context: str | None
) -> None:
    """Show the rollout status of the Deployment in MANIFEST."""
    with handle_errors():
        deployment = ManifestLoader().load_deployment(manifest)
        namespace, name = deployment.key
        current = ClusterClient(kubeconfig=kubeconfig, context=context).status(
            name, namespace
        )

    if current is None:
        click.secho(f"Deployment {namespace}/{name} not found", fg="yellow")
        sys.exit(EXIT_CHECKS_FAILED)

    click.secho(f"Deployment {namespace}/{name}", bold=True)
    click.echo(
        f"  Replicas: {current.ready_replicas}/{current.desired_replicas} ready, "
        f"{current.updated_replicas} updated, {current.available_replicas} available"
    )
    for condition in current.conditions:
        reason = f" ({condition.reason})" if condition.reason else ""
        click.echo(f"  {condition.type}={condition.status}{reason}")
    if current.rolled_out:
        click.secho("✓ Rolled out", fg="green")
    else:
        click.secho("… Rollout in progress", fg="yellow")


@click.command()
@cluster_options
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(
    ctx: click.Context,
    manifest: str,
    kubeconfig: str | None,
    context: str | None,
    yes: bool,
) -> None:
    """Delete the Deployment in MANIFEST.

    Only the Deployment and its Pods go away. The PersistentVolumeClaim,
    ConfigMaps and Secret stay in the namespace.
    """
    with handle_errors():
        deployment = ManifestLoader().load_deployment(manifest)
        namespace, name = deployment.key

    logger.debug(f"Delete requested for {namespace}/{name}")
    if not yes:
        click.confirm(f"Delete Deployment {namespace}/{name}?", abort=True)

    with handle_errors():
        deleted = ClusterClient(kubeconfig=kubeconfig, context=context).delete(
            name, namespace
        )

    if deleted:
        click.secho(f"✓ Deleted Deployment {namespace}/{name}", fg="green")
    else:
        click.secho(f"Deployment {namespace}/{name} was not present", fg="yellow")
