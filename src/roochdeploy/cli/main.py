"""Entry point for the roochdeploy command-line interface."""

from __future__ import annotations

import click

from roochdeploy import __version__
from roochdeploy.cli.commands.cluster import apply, delete, preflight, status
from roochdeploy.cli.commands.manifest import render, validate
from roochdeploy.lib.logging_config import setup_logging


@click.group(name="roochdeploy")
@click.version_option(__version__, prog_name="roochdeploy")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only print summaries and errors")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Validate, render and deploy the roochbot Kubernetes Deployment.

    Offline:

        validate  Check a manifest against the schema and consistency rules
        render    Generate a manifest from a bot configuration

    Cluster:

        preflight Check that referenced ConfigMaps, Secrets and claims exist
        apply     Create or update the Deployment
        status    Show rollout status
        delete    Delete the Deployment (claims, ConfigMaps and Secrets stay)
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    setup_logging(verbose=verbose, quiet=quiet)


main.add_command(validate)
main.add_command(render)
main.add_command(preflight)
main.add_command(apply)
main.add_command(status)
main.add_command(delete)


if __name__ == "__main__":
    main()
