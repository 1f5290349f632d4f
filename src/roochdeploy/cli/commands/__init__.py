"""CLI commands for roochdeploy."""
