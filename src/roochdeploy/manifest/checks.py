"""Consistency checks for Deployment manifests.

The schema models guarantee each field is well formed on its own. The
checks here look across fields: selector against template labels, mounts
against volumes, the character flag against the projected ConfigMap item,
and the environment sources a bot expects.

Checks are registered by name and grouped into profiles. ``generic`` runs
the structural checks any Deployment should pass; ``roochbot`` adds the
expectations of a roochbot instance (one ConfigMap and one Secret imported
into the environment, a ``--characters`` file served from a ConfigMap).
"""

from __future__ import annotations

import posixpath
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass

from roochdeploy.config.defaults import CHARACTERS_FLAG
from roochdeploy.lib.logging_config import get_logger
from roochdeploy.lib.validation import parse_image_reference
from roochdeploy.models.deployment import (
    API_VERSION,
    KIND,
    Container,
    Deployment,
    PodSpec,
)
from roochdeploy.models.report import CheckResult, Severity, ValidationReport

logger = get_logger(__name__)

CheckFn = Callable[[Deployment, "CheckProfile"], list[CheckResult]]

CHECKS: dict[str, CheckFn] = {}

_CONTAINERS = "spec.template.spec.containers"
_VOLUMES = "spec.template.spec.volumes"


@dataclass(frozen=True)
class CheckProfile:
    """A named set of checks and bot-specific expectations.

    Attributes:
        name: Profile identifier
        checks: Check identifiers to run, in order
        expected_config_maps: Exact number of ConfigMap envFrom sources
            per container, or None to skip the count
        expected_secrets: Exact number of Secret envFrom sources per
            container, or None to skip the count
        require_character: Warn when a container has no ``--characters`` flag
    """

    name: str
    checks: tuple[str, ...]
    expected_config_maps: int | None = None
    expected_secrets: int | None = None
    require_character: bool = False


def check(name: str) -> Callable[[CheckFn], CheckFn]:
    """Register a check function under a name."""

    def decorator(fn: CheckFn) -> CheckFn:
        CHECKS[name] = fn
        return fn

    return decorator


def _error(name: str, message: str, field: str | None = None) -> CheckResult:
    return CheckResult(
        check=name, severity=Severity.ERROR, message=message, field=field
    )


def _warning(name: str, message: str, field: str | None = None) -> CheckResult:
    return CheckResult(
        check=name, severity=Severity.WARNING, message=message, field=field
    )


def _containers(deployment: Deployment) -> list[tuple[int, Container]]:
    return list(enumerate(deployment.pod_spec.containers))


@check("api_version")
def check_api_version(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """The schema identifier pair must be apps/v1 Deployment."""
    results = []
    if deployment.api_version != API_VERSION:
        results.append(
            _error(
                "api_version",
                f"apiVersion must be '{API_VERSION}', got '{deployment.api_version}'",
                "apiVersion",
            )
        )
    if deployment.kind != KIND:
        results.append(
            _error(
                "api_version",
                f"kind must be '{KIND}', got '{deployment.kind}'",
                "kind",
            )
        )
    return results


@check("selector_subset")
def check_selector_subset(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """spec.selector.matchLabels must be a subset of the template labels."""
    template_labels = deployment.spec.template.metadata.labels
    results = []
    for key, value in deployment.spec.selector.match_labels.items():
        actual = template_labels.get(key)
        if actual != value:
            got = "missing" if actual is None else f"'{actual}'"
            results.append(
                _error(
                    "selector_subset",
                    f"selector requires label {key}={value} but the Pod template "
                    f"label is {got}; the API server rejects such a Deployment",
                    f"spec.selector.matchLabels.{key}",
                )
            )
    return results


@check("volume_mounts_resolve")
def check_volume_mounts_resolve(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """Every volumeMount must name a volume declared in the Pod spec."""
    volume_names = {v.name for v in deployment.pod_spec.volumes}
    results = []
    for i, container in _containers(deployment):
        for j, mount in enumerate(container.volume_mounts):
            if mount.name not in volume_names:
                results.append(
                    _error(
                        "volume_mounts_resolve",
                        f"container '{container.name}' mounts unknown volume "
                        f"'{mount.name}'",
                        f"{_CONTAINERS}[{i}].volumeMounts[{j}].name",
                    )
                )
    return results


@check("unique_names")
def check_unique_names(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """Container names and volume names must be unique within the Pod."""
    results = []
    container_counts = Counter(c.name for c in deployment.pod_spec.containers)
    for name, count in container_counts.items():
        if count > 1:
            results.append(
                _error(
                    "unique_names",
                    f"container name '{name}' is used {count} times",
                    _CONTAINERS,
                )
            )
    volume_counts = Counter(v.name for v in deployment.pod_spec.volumes)
    for name, count in volume_counts.items():
        if count > 1:
            results.append(
                _error(
                    "unique_names",
                    f"volume name '{name}' is used {count} times",
                    _VOLUMES,
                )
            )
    return results


@check("env_sources")
def check_env_sources(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """envFrom references must be named; profiles may fix their counts."""
    results = []
    for i, container in _containers(deployment):
        for j, source in enumerate(container.env_from):
            if not source.reference.name:
                results.append(
                    _error(
                        "env_sources",
                        f"{source.source_kind} reference has no name",
                        f"{_CONTAINERS}[{i}].envFrom[{j}]",
                    )
                )

        expectations = (
            ("ConfigMap", profile.expected_config_maps),
            ("Secret", profile.expected_secrets),
        )
        for kind, expected in expectations:
            if expected is None:
                continue
            names = container.env_from_names(kind)
            if len(names) != expected:
                results.append(
                    _error(
                        "env_sources",
                        f"container '{container.name}' imports {len(names)} "
                        f"{kind} source(s) {names}, expected {expected}",
                        f"{_CONTAINERS}[{i}].envFrom",
                    )
                )
    return results


def _character_paths(container: Container) -> list[tuple[int, str]]:
    """Return (arg index, path) for every `--characters` value.

    Accepts ``--characters a.json`` and ``--characters=a.json``; a value may
    list several comma-separated files.
    """
    found: list[tuple[int, str]] = []
    args = container.args
    for index, arg in enumerate(args):
        if arg == CHARACTERS_FLAG:
            value = args[index + 1] if index + 1 < len(args) else ""
            found.append((index + 1, value))
        elif arg.startswith(f"{CHARACTERS_FLAG}="):
            found.append((index, arg.split("=", 1)[1]))

    paths: list[tuple[int, str]] = []
    for index, value in found:
        for path in value.split(",") if value else [""]:
            paths.append((index, path.strip()))
    return paths


@check("character_path")
def check_character_path(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """Each --characters file must be projected from a ConfigMap volume."""
    results = []
    pod_spec = deployment.pod_spec
    for i, container in _containers(deployment):
        paths = _character_paths(container)
        if not paths and profile.require_character:
            results.append(
                _warning(
                    "character_path",
                    f"container '{container.name}' passes no {CHARACTERS_FLAG} file",
                    f"{_CONTAINERS}[{i}].args",
                )
            )
        for arg_index, path in paths:
            field = f"{_CONTAINERS}[{i}].args[{arg_index}]"
            if not path or not path.startswith("/"):
                results.append(
                    _error(
                        "character_path",
                        f"{CHARACTERS_FLAG} needs an absolute file path, got '{path}'",
                        field,
                    )
                )
                continue
            results.extend(_check_character_file(container, pod_spec, path, field))
    return results


def _check_character_file(
    container: Container, pod_spec: PodSpec, path: str, field: str
) -> list[CheckResult]:
    normalized = posixpath.normpath(path)

    def covers(mount_path: str) -> bool:
        return normalized == mount_path or normalized.startswith(
            mount_path.rstrip("/") + "/"
        )

    mounts = sorted(
        (
            m
            for m in container.volume_mounts
            if covers(posixpath.normpath(m.mount_path))
        ),
        key=lambda m: len(posixpath.normpath(m.mount_path)),
        reverse=True,
    )
    if not mounts:
        return [
            _error(
                "character_path",
                f"no volume is mounted above '{path}' in container '{container.name}'",
                field,
            )
        ]

    mount = mounts[0]
    volume = pod_spec.volume(mount.name)
    if volume is None:
        # reported by volume_mounts_resolve
        return []
    if volume.config_map is None:
        return [
            _error(
                "character_path",
                f"'{path}' is served by volume '{volume.name}', which is not "
                "backed by a ConfigMap",
                field,
            )
        ]

    mount_path = posixpath.normpath(mount.mount_path)
    if normalized == mount_path:
        # single-file mount: the file is the projected subPath itself
        if not mount.sub_path:
            return [
                _error(
                    "character_path",
                    f"'{path}' is the mount point of ConfigMap volume "
                    f"'{volume.name}'; mounting a single file needs subPath",
                    field,
                )
            ]
        relative = posixpath.normpath(mount.sub_path)
    else:
        relative = posixpath.relpath(normalized, mount_path)
        if mount.sub_path:
            relative = posixpath.join(mount.sub_path, relative)
    items = volume.config_map.items
    if items and relative not in {item.path for item in items}:
        projected = [item.path for item in items]
        return [
            _error(
                "character_path",
                f"'{path}' resolves to '{relative}' in ConfigMap volume "
                f"'{volume.name}', which projects only {projected}",
                field,
            )
        ]
    return []


@check("replicas")
def check_replicas(deployment: Deployment, profile: CheckProfile) -> list[CheckResult]:
    """replicas must be a non-negative integer; zero is suspicious."""
    replicas = deployment.spec.replicas
    if isinstance(replicas, bool) or not isinstance(replicas, int) or replicas < 0:
        return [
            _error(
                "replicas",
                f"replicas must be a non-negative integer, got {replicas!r}",
                "spec.replicas",
            )
        ]
    if replicas == 0:
        return [_warning("replicas", "replicas is 0; no Pod will run", "spec.replicas")]
    return []


@check("unused_volumes")
def check_unused_volumes(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """Volumes that no container mounts are probably leftovers."""
    mounted = {m.name for c in deployment.pod_spec.containers for m in c.volume_mounts}
    return [
        _warning(
            "unused_volumes",
            f"volume '{volume.name}' is not mounted by any container",
            f"{_VOLUMES}[{j}]",
        )
        for j, volume in enumerate(deployment.pod_spec.volumes)
        if volume.name not in mounted
    ]


@check("image_tag")
def check_image_tag(deployment: Deployment, profile: CheckProfile) -> list[CheckResult]:
    """Images should be pinned to a tag or digest other than latest."""
    results = []
    for i, container in _containers(deployment):
        ref = parse_image_reference(container.image)
        if ref.digest is None and ref.tag in (None, "latest"):
            results.append(
                _warning(
                    "image_tag",
                    f"image '{container.image}' is not pinned to a build",
                    f"{_CONTAINERS}[{i}].image",
                )
            )
    return results


@check("duplicate_mount_paths")
def check_duplicate_mount_paths(
    deployment: Deployment, profile: CheckProfile
) -> list[CheckResult]:
    """Two mounts in one container must not share a path."""
    results = []
    for i, container in _containers(deployment):
        counts = Counter(
            posixpath.normpath(m.mount_path) for m in container.volume_mounts
        )
        for path, count in counts.items():
            if count > 1:
                results.append(
                    _error(
                        "duplicate_mount_paths",
                        f"container '{container.name}' mounts {count} volumes "
                        f"at '{path}'",
                        f"{_CONTAINERS}[{i}].volumeMounts",
                    )
                )
    return results


@check("ports")
def check_ports(deployment: Deployment, profile: CheckProfile) -> list[CheckResult]:
    """A container must not declare the same port and protocol twice."""
    results = []
    for i, container in _containers(deployment):
        counts = Counter(
            (p.container_port, p.protocol or "TCP") for p in container.ports
        )
        for (port, protocol), count in counts.items():
            if count > 1:
                results.append(
                    _error(
                        "ports",
                        f"container '{container.name}' declares {port}/{protocol} "
                        f"{count} times",
                        f"{_CONTAINERS}[{i}].ports",
                    )
                )
    return results


_STRUCTURAL_CHECKS = (
    "api_version",
    "selector_subset",
    "volume_mounts_resolve",
    "unique_names",
    "env_sources",
    "character_path",
    "replicas",
    "unused_volumes",
    "image_tag",
    "duplicate_mount_paths",
    "ports",
)

GENERIC_PROFILE = CheckProfile(name="generic", checks=_STRUCTURAL_CHECKS)

ROOCHBOT_PROFILE = CheckProfile(
    name="roochbot",
    checks=_STRUCTURAL_CHECKS,
    expected_config_maps=1,
    expected_secrets=1,
    require_character=True,
)

PROFILES: dict[str, CheckProfile] = {
    GENERIC_PROFILE.name: GENERIC_PROFILE,
    ROOCHBOT_PROFILE.name: ROOCHBOT_PROFILE,
}


def get_profile(name: str) -> CheckProfile:
    """Return a registered profile by name.

    Raises:
        KeyError: If no profile has that name
    """
    try:
        return PROFILES[name]
    except KeyError:
        raise KeyError(
            f"Unknown check profile '{name}'. Available: {', '.join(sorted(PROFILES))}"
        ) from None


def validate_deployment(
    deployment: Deployment,
    profile: CheckProfile | str = ROOCHBOT_PROFILE,
    strict: bool = False,
) -> ValidationReport:
    """Run every check of a profile against a Deployment.

    Args:
        deployment: The Deployment to check
        profile: Profile instance or registered profile name
        strict: Report warnings as errors

    Returns:
        ValidationReport with all findings
    """
    if isinstance(profile, str):
        profile = get_profile(profile)

    report = ValidationReport(
        subject=f"{deployment.namespace}/{deployment.metadata.name}"
    )
    for name in profile.checks:
        results = CHECKS[name](deployment, profile)
        if strict:
            results = [
                r.model_copy(update={"severity": Severity.ERROR}) for r in results
            ]
        logger.debug(f"Check {name}: {len(results)} finding(s)")
        report.results.extend(results)
        report.checks_run.append(name)

    logger.info(
        f"Checked {report.subject} with profile '{profile.name}': "
        f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    return report
