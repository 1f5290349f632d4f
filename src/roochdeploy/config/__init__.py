"""Configuration loading and validation for roochdeploy.

Main components:
- loader.ManifestLoader: Load and validate Deployment manifests and bot.yaml files
- Environment variable substitution (${VAR_NAME} pattern) for bot configs
- Validation utilities for configuration data
- roochbot defaults

Import ManifestLoader from ``roochdeploy.config.loader``.
"""

from roochdeploy.config.env_loader import get_env_var, substitute_env_vars

__all__ = [
    "substitute_env_vars",
    "get_env_var",
]
