"""Manifest and bot configuration loader.

This module provides the ManifestLoader class for loading, parsing, and
validating Deployment manifests and bot configuration files from YAML.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from roochdeploy.config.env_loader import substitute_env_vars
from roochdeploy.config.validator import flatten_pydantic_errors
from roochdeploy.lib.errors import ConfigError, FileNotFoundError
from roochdeploy.models.bot import BotConfig
from roochdeploy.models.deployment import KIND, Deployment

logger = logging.getLogger(__name__)


def _read_text(file_path: str) -> str:
    """Read a file, mapping OS errors to FileNotFoundError."""
    try:
        return Path(file_path).read_text(encoding="utf-8")
    except OSError as e:
        raise FileNotFoundError(
            file_path,
            f"Configuration file not found at {file_path}. "
            f"Please ensure the file exists at this path.",
        ) from e


def _parse_documents(text: str, source: str) -> list[dict[str, Any]]:
    """Parse every YAML document in text, skipping empty ones."""
    try:
        documents = list(yaml.safe_load_all(text))
    except yaml.YAMLError as e:
        raise ConfigError(
            "yaml_parse",
            f"Failed to parse YAML file {source}: {str(e)}",
        ) from e

    parsed: list[dict[str, Any]] = []
    for index, document in enumerate(documents):
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ConfigError(
                "yaml_parse",
                f"Document {index} in {source} is a {type(document).__name__}, "
                "expected a mapping",
            )
        parsed.append(document)
    return parsed


def _select_deployment(
    documents: list[dict[str, Any]], source: str, name: str | None
) -> dict[str, Any]:
    """Pick the Deployment document, by name when several are present."""
    candidates = [d for d in documents if d.get("kind") == KIND]
    if name is not None:
        candidates = [
            d for d in candidates if (d.get("metadata") or {}).get("name") == name
        ]

    if not candidates:
        suffix = f" named '{name}'" if name else ""
        kinds = sorted({str(d.get("kind")) for d in documents}) or ["<none>"]
        raise ConfigError(
            "kind",
            f"No {KIND}{suffix} found in {source} (found kinds: {', '.join(kinds)})",
        )
    if len(candidates) > 1:
        names = [(d.get("metadata") or {}).get("name") for d in candidates]
        raise ConfigError(
            "kind",
            f"Multiple {KIND} documents in {source} ({names}); select one by name",
        )
    return candidates[0]


def _validate_deployment(document: dict[str, Any], source: str) -> Deployment:
    try:
        return Deployment.model_validate(document)
    except PydanticValidationError as e:
        error_messages = flatten_pydantic_errors(e)
        error_text = "\n".join(error_messages)
        raise ConfigError(
            "deployment_validation",
            f"Invalid Deployment manifest in {source}:\n{error_text}",
        ) from e


class ManifestLoader:
    """Loads and validates Deployment manifests and bot configurations.

    This class handles:
    - Parsing single and multi-document YAML files
    - Selecting the Deployment document among other kinds
    - Validating manifests against the Deployment schema
    - Loading bot configuration with environment variable substitution
    - Converting validation errors into human-readable messages
    """

    def parse_yaml(self, file_path: str) -> list[dict[str, Any]]:
        """Parse a YAML file and return its non-empty documents.

        Args:
            file_path: Path to the YAML file to parse

        Returns:
            List of parsed documents (empty if the file has none)

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigError: If YAML parsing fails or a document is not a mapping
        """
        return _parse_documents(_read_text(file_path), file_path)

    def load_deployment(self, file_path: str, name: str | None = None) -> Deployment:
        """Load and validate the Deployment from a manifest file.

        Args:
            file_path: Path to the manifest
            name: Deployment name to select when the file holds several

        Returns:
            Validated Deployment instance

        Raises:
            FileNotFoundError: If file doesn't exist
            ConfigError: If parsing, selection or validation fails
        """
        documents = self.parse_yaml(file_path)
        document = _select_deployment(documents, file_path, name)
        deployment = _validate_deployment(document, file_path)
        logger.debug(
            f"Loaded Deployment {deployment.namespace}/{deployment.name} "
            f"from {file_path}"
        )
        return deployment

    def load_deployment_from_string(
        self, text: str, name: str | None = None, source: str = "<string>"
    ) -> Deployment:
        """Load and validate a Deployment from in-memory YAML text."""
        documents = _parse_documents(text, source)
        document = _select_deployment(documents, source, name)
        return _validate_deployment(document, source)

    def load_bot_config(self, file_path: str) -> BotConfig:
        """Load and validate a bot configuration file.

        ``${VAR}`` and ``${VAR:-default}`` references are substituted before
        parsing. An empty file yields the default roochbot configuration.

        Raises:
            FileNotFoundError: If file doesn't exist
            ConfigError: If substitution, parsing or validation fails
        """
        raw_text = _read_text(file_path)
        substituted = substitute_env_vars(raw_text)
        documents = _parse_documents(substituted, file_path)
        if len(documents) > 1:
            raise ConfigError(
                "yaml_parse",
                f"Bot configuration {file_path} must contain a single document",
            )
        config = documents[0] if documents else {}

        try:
            return BotConfig.model_validate(config)
        except PydanticValidationError as e:
            error_messages = flatten_pydantic_errors(e)
            error_text = "\n".join(error_messages)
            raise ConfigError(
                "bot_validation",
                f"Invalid bot configuration in {file_path}:\n{error_text}",
            ) from e
