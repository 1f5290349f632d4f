"""Command-line interface for roochdeploy."""
