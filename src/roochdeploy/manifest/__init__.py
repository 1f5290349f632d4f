"""Manifest checks and generation.

This package provides consistency checks for Deployment manifests and the
generator that renders roochbot manifests from a bot configuration.
"""

from roochdeploy.manifest.checks import (
    GENERIC_PROFILE,
    PROFILES,
    ROOCHBOT_PROFILE,
    CheckProfile,
    validate_deployment,
)
from roochdeploy.manifest.generator import (
    build_deployment,
    default_manifest_path,
    dump_deployment,
    render_manifest,
    write_manifest,
)

__all__ = [
    "CheckProfile",
    "GENERIC_PROFILE",
    "PROFILES",
    "ROOCHBOT_PROFILE",
    "build_deployment",
    "default_manifest_path",
    "dump_deployment",
    "render_manifest",
    "validate_deployment",
    "write_manifest",
]
