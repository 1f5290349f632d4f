"""Environment variable substitution for bot configuration files.

Supports ``${NAME}`` and ``${NAME:-default}`` references. Substitution runs
on the raw text before YAML parsing, so values keep their YAML typing.
"""

import logging
import os
import re
from collections.abc import Mapping

from roochdeploy.lib.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def get_env_var(
    name: str, default: str | None = None, env: Mapping[str, str] | None = None
) -> str | None:
    """Return an environment variable or the default when unset."""
    source = os.environ if env is None else env
    return source.get(name, default)


def substitute_env_vars(text: str, env: Mapping[str, str] | None = None) -> str:
    """Replace ``${NAME}`` and ``${NAME:-default}`` references in text.

    Args:
        text: Raw configuration text
        env: Variables to resolve from (defaults to ``os.environ``)

    Returns:
        Text with every reference replaced

    Raises:
        ConfigError: If a variable is unset and has no default
    """
    source = os.environ if env is None else env

    def _replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        value = source.get(name)
        if value is not None:
            return value
        if default is not None:
            logger.debug(f"Environment variable {name} unset, using default")
            return default
        raise ConfigError(
            name,
            f"Environment variable '{name}' is not set and has no default. "
            f"Set it or use ${{{name}:-default}}.",
        )

    return ENV_VAR_PATTERN.sub(_replace, text)
