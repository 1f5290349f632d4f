"""Validation utilities for Kubernetes object fields.

This module provides shared validation functions and constants used by the
pydantic models: DNS-1123 names, label keys and values, ConfigMap keys,
projected paths and container image references.
"""

from __future__ import annotations

import re
from typing import NamedTuple

DNS1123_LABEL_MAX_LENGTH = 63
DNS1123_SUBDOMAIN_MAX_LENGTH = 253
LABEL_VALUE_MAX_LENGTH = 63
CONFIG_MAP_KEY_MAX_LENGTH = 253

DNS1123_LABEL_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
DNS1123_SUBDOMAIN_PATTERN = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
)
QUALIFIED_NAME_PATTERN = re.compile(r"^([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]$")
CONFIG_MAP_KEY_PATTERN = re.compile(r"^[-._a-zA-Z0-9]+$")


def validate_dns1123_label(value: str, what: str = "name") -> str:
    """Validate a DNS-1123 label (container, volume and namespace names).

    Args:
        value: The name to validate
        what: Noun used in error messages

    Returns:
        The validated value (unchanged if valid)

    Raises:
        ValueError: If the value is not a valid DNS-1123 label
    """
    if not value:
        raise ValueError(f"{what} cannot be empty")
    if len(value) > DNS1123_LABEL_MAX_LENGTH:
        raise ValueError(
            f"{what} must be {DNS1123_LABEL_MAX_LENGTH} characters or less"
        )
    if not DNS1123_LABEL_PATTERN.match(value):
        raise ValueError(
            f"{what} '{value}' must consist of lower case alphanumeric characters "
            "or '-', and must start and end with an alphanumeric character"
        )
    return value


def validate_dns1123_subdomain(value: str, what: str = "name") -> str:
    """Validate a DNS-1123 subdomain (object names such as Deployments)."""
    if not value:
        raise ValueError(f"{what} cannot be empty")
    if len(value) > DNS1123_SUBDOMAIN_MAX_LENGTH:
        raise ValueError(
            f"{what} must be {DNS1123_SUBDOMAIN_MAX_LENGTH} characters or less"
        )
    if not DNS1123_SUBDOMAIN_PATTERN.match(value):
        raise ValueError(
            f"{what} '{value}' must consist of lower case alphanumeric characters, "
            "'-' or '.', and must start and end with an alphanumeric character"
        )
    return value


def validate_label_key(key: str) -> str:
    """Validate a label key of the form ``[prefix/]name``."""
    prefix, sep, name = key.rpartition("/")
    if sep:
        validate_dns1123_subdomain(prefix, what="label key prefix")
    if not name or len(name) > DNS1123_LABEL_MAX_LENGTH:
        raise ValueError(
            f"label key '{key}' name part must be 1-{DNS1123_LABEL_MAX_LENGTH} "
            "characters"
        )
    if not QUALIFIED_NAME_PATTERN.match(name):
        raise ValueError(
            f"label key '{key}' must consist of alphanumeric characters, "
            "'-', '_' or '.', and must start and end with an alphanumeric character"
        )
    return key


def validate_label_value(value: str) -> str:
    """Validate a label value. Empty values are allowed."""
    if value == "":
        return value
    if len(value) > LABEL_VALUE_MAX_LENGTH:
        raise ValueError(
            f"label value '{value}' must be {LABEL_VALUE_MAX_LENGTH} characters "
            "or less"
        )
    if not QUALIFIED_NAME_PATTERN.match(value):
        raise ValueError(
            f"label value '{value}' must consist of alphanumeric characters, "
            "'-', '_' or '.', and must start and end with an alphanumeric character"
        )
    return value


def validate_labels(labels: dict[str, str]) -> dict[str, str]:
    """Validate every key and value of a label mapping."""
    for key, value in labels.items():
        validate_label_key(key)
        validate_label_value(value)
    return labels


def validate_config_map_key(key: str) -> str:
    """Validate a ConfigMap or Secret data key."""
    if not key or len(key) > CONFIG_MAP_KEY_MAX_LENGTH:
        raise ValueError(
            f"key must be 1-{CONFIG_MAP_KEY_MAX_LENGTH} characters, got {len(key)}"
        )
    if key in (".", "..") or not CONFIG_MAP_KEY_PATTERN.match(key):
        raise ValueError(
            f"key '{key}' must consist of alphanumeric characters, '-', '_' or '.'"
        )
    return key


def validate_relative_path(path: str) -> str:
    """Validate a projected item path: relative and never escaping upward."""
    if not path:
        raise ValueError("path cannot be empty")
    if path.startswith("/"):
        raise ValueError(f"path '{path}' must be relative")
    if ".." in path.split("/"):
        raise ValueError(f"path '{path}' must not contain '..'")
    return path


def validate_absolute_path(path: str) -> str:
    """Validate a container mount path."""
    if not path.startswith("/"):
        raise ValueError(f"mount path '{path}' must be absolute")
    return path


class ImageReference(NamedTuple):
    """Parsed container image reference."""

    repository: str
    tag: str | None
    digest: str | None

    def __str__(self) -> str:
        ref = self.repository
        if self.tag:
            ref += f":{self.tag}"
        if self.digest:
            ref += f"@{self.digest}"
        return ref


def parse_image_reference(image: str) -> ImageReference:
    """Split an image reference into repository, tag and digest.

    The tag separator is the last ``:`` after the last ``/`` so registry
    ports (``registry:5000/app``) are not mistaken for tags.

    Raises:
        ValueError: If the reference is empty or contains whitespace
    """
    if not image or image != image.strip() or any(c.isspace() for c in image):
        raise ValueError(f"Invalid image reference: {image!r}")

    digest = None
    if "@" in image:
        image, digest = image.split("@", 1)

    tag = None
    last_segment_start = image.rfind("/") + 1
    colon = image.rfind(":")
    if colon >= last_segment_start:
        image, tag = image[:colon], image[colon + 1 :]
        if not tag:
            raise ValueError(f"Invalid image reference: empty tag in {image!r}")

    if not image:
        raise ValueError("Invalid image reference: empty repository")
    return ImageReference(repository=image, tag=tag, digest=digest)
