"""Kubernetes API access for roochbot Deployments.

ClusterClient verifies the environment contract of a Deployment before it
is applied (namespace, ConfigMaps, Secret, PersistentVolumeClaim and the
projected character key must already exist), submits the desired state,
reads rollout status and deletes the Deployment. Reconciliation stays with
the orchestrator.
"""

from __future__ import annotations

from typing import Any

from kubernetes import client, config
from kubernetes.client import ApiException

from roochdeploy.lib.errors import ClusterError
from roochdeploy.lib.logging_config import get_logger
from roochdeploy.models.cluster import (
    ApplyAction,
    ApplyResult,
    DeploymentCondition,
    DeploymentStatus,
)
from roochdeploy.models.deployment import Deployment, Volume
from roochdeploy.models.report import CheckResult, Severity, ValidationReport

logger = get_logger(__name__)

FORBIDDEN = 403
NOT_FOUND = 404


def load_cluster_config(
    kubeconfig: str | None = None, context: str | None = None
) -> None:
    """Load kubeconfig, falling back to in-cluster service account config.

    An explicit kubeconfig path or context never falls back.

    Raises:
        ClusterError: If no usable configuration is found
    """
    try:
        config.load_kube_config(config_file=kubeconfig, context=context)
        logger.debug(
            f"Loaded kubeconfig {kubeconfig or '(default)'} context={context}"
        )
        return
    except (config.ConfigException, OSError) as e:
        if kubeconfig or context:
            raise ClusterError("config", f"Cannot load kubeconfig: {e}") from e
        kube_error = e

    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster configuration")
    except config.ConfigException as e:
        raise ClusterError(
            "config",
            f"No kubeconfig ({kube_error}) and not running in a cluster ({e})",
        ) from e


def _finding(
    check: str, message: str, field: str, optional: bool | None
) -> CheckResult:
    severity = Severity.WARNING if optional else Severity.ERROR
    return CheckResult(check=check, severity=severity, message=message, field=field)


class ClusterClient:
    """Thin wrapper over CoreV1Api and AppsV1Api.

    Args:
        kubeconfig: Path to a kubeconfig file
        context: kubeconfig context to use
        core_api: Pre-built CoreV1Api (skips configuration loading)
        apps_api: Pre-built AppsV1Api (skips configuration loading)
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        core_api: client.CoreV1Api | None = None,
        apps_api: client.AppsV1Api | None = None,
    ) -> None:
        if core_api is None or apps_api is None:
            load_cluster_config(kubeconfig, context)
        self.core = core_api or client.CoreV1Api()
        self.apps = apps_api or client.AppsV1Api()

    def _exists(self, operation: str, read: Any, *args: Any) -> Any | None:
        """Call a read_* method; 404 becomes None, other errors ClusterError."""
        try:
            return read(*args)
        except ApiException as e:
            if e.status == NOT_FOUND:
                return None
            raise ClusterError(operation, f"{e.status} {e.reason}: {e.body}") from e

    def preflight(self, deployment: Deployment) -> ValidationReport:
        """Check that every object the Deployment references already exists.

        A missing ConfigMap, Secret or projected key leaves the Pod in
        CreateContainerConfigError; a missing claim keeps it Pending.

        Returns:
            ValidationReport with one finding per missing object
        """
        namespace = deployment.namespace
        report = ValidationReport(subject=f"{namespace}/{deployment.name}")
        results = report.results

        report.checks_run.append("namespace")
        try:
            self.core.read_namespace(namespace)
        except ApiException as e:
            if e.status == NOT_FOUND:
                results.append(
                    CheckResult(
                        check="namespace",
                        message=f"namespace '{namespace}' does not exist",
                        field="metadata.namespace",
                    )
                )
                return report
            if e.status != FORBIDDEN:
                raise ClusterError(
                    "preflight", f"{e.status} {e.reason}: {e.body}"
                ) from e
            # Namespaces are cluster-scoped; namespaced accounts may not read them
            logger.debug(f"Cannot read namespace {namespace}: {e.status} {e.reason}")
            results.append(
                CheckResult(
                    check="namespace",
                    severity=Severity.WARNING,
                    message=f"cannot verify namespace '{namespace}' (forbidden)",
                    field="metadata.namespace",
                )
            )

        report.checks_run.append("env_sources_exist")
        for i, container in enumerate(deployment.pod_spec.containers):
            for j, source in enumerate(container.env_from):
                ref = source.reference
                field = f"spec.template.spec.containers[{i}].envFrom[{j}]"
                if source.config_map_ref is not None:
                    read = self.core.read_namespaced_config_map
                else:
                    read = self.core.read_namespaced_secret
                if self._exists("preflight", read, ref.name, namespace) is None:
                    results.append(
                        _finding(
                            "env_sources_exist",
                            f"{source.source_kind} '{ref.name}' not found in "
                            f"namespace '{namespace}'",
                            field,
                            ref.optional,
                        )
                    )

        report.checks_run.append("volumes_exist")
        for j, volume in enumerate(deployment.pod_spec.volumes):
            field = f"spec.template.spec.volumes[{j}]"
            if volume.persistent_volume_claim is not None:
                results.extend(
                    self._check_claim(
                        volume.persistent_volume_claim.claim_name, namespace, field
                    )
                )
            elif volume.config_map is not None:
                results.extend(self._check_config_map_volume(volume, namespace, field))

        logger.info(
            f"Preflight for {report.subject}: {len(report.errors)} error(s), "
            f"{len(report.warnings)} warning(s)"
        )
        return report

    def _check_claim(self, claim: str, namespace: str, field: str) -> list[CheckResult]:
        pvc = self._exists(
            "preflight",
            self.core.read_namespaced_persistent_volume_claim,
            claim,
            namespace,
        )
        if pvc is None:
            return [
                _finding(
                    "volumes_exist",
                    f"PersistentVolumeClaim '{claim}' not found in namespace "
                    f"'{namespace}'",
                    field,
                    False,
                )
            ]
        phase = getattr(pvc.status, "phase", None)
        if phase != "Bound":
            return [
                _finding(
                    "volumes_exist",
                    f"PersistentVolumeClaim '{claim}' is "
                    f"{phase or 'in unknown phase'}, not Bound",
                    field,
                    True,
                )
            ]
        return []

    def _check_config_map_volume(
        self, volume: Volume, namespace: str, field: str
    ) -> list[CheckResult]:
        source = volume.config_map
        assert source is not None
        config_map = self._exists(
            "preflight", self.core.read_namespaced_config_map, source.name, namespace
        )
        if config_map is None:
            return [
                _finding(
                    "volumes_exist",
                    f"ConfigMap '{source.name}' for volume '{volume.name}' not found "
                    f"in namespace '{namespace}'",
                    field,
                    source.optional,
                )
            ]

        keys = set(config_map.data or {}) | set(config_map.binary_data or {})
        return [
            _finding(
                "volumes_exist",
                f"ConfigMap '{source.name}' has no key '{item.key}' "
                f"(keys: {sorted(keys)})",
                f"{field}.configMap.items[{k}].key",
                source.optional,
            )
            for k, item in enumerate(source.items)
            if item.key not in keys
        ]

    def apply(self, deployment: Deployment, dry_run: bool = False) -> ApplyResult:
        """Create the Deployment, or replace it if (namespace, name) exists.

        Args:
            deployment: Desired state
            dry_run: Let the API server validate without persisting

        Raises:
            ClusterError: If the API server rejects the request
        """
        namespace, name = deployment.key
        body = deployment.to_manifest()
        body["metadata"]["namespace"] = namespace
        kwargs: dict[str, Any] = {"dry_run": "All"} if dry_run else {}
        suffix = " (dry run)" if dry_run else ""

        existing = self._exists(
            "apply", self.apps.read_namespaced_deployment, name, namespace
        )
        try:
            if existing is None:
                logger.info(f"Creating Deployment {namespace}/{name}{suffix}")
                response = self.apps.create_namespaced_deployment(
                    namespace, body, **kwargs
                )
                action = ApplyAction.CREATED
            else:
                logger.info(f"Replacing Deployment {namespace}/{name}{suffix}")
                response = self.apps.replace_namespaced_deployment(
                    name, namespace, body, **kwargs
                )
                action = ApplyAction.UPDATED
        except ApiException as e:
            raise ClusterError("apply", f"{e.status} {e.reason}: {e.body}") from e

        generation = getattr(getattr(response, "metadata", None), "generation", None)
        return ApplyResult(
            namespace=namespace,
            name=name,
            action=action,
            dry_run=dry_run,
            generation=generation if isinstance(generation, int) else None,
        )

    def status(self, name: str, namespace: str) -> DeploymentStatus | None:
        """Read the rollout status of a live Deployment, or None if absent."""
        live = self._exists(
            "status", self.apps.read_namespaced_deployment, name, namespace
        )
        if live is None:
            return None

        spec_replicas = live.spec.replicas if live.spec is not None else None
        status = live.status
        conditions = [
            DeploymentCondition(
                type=c.type, status=c.status, reason=c.reason, message=c.message
            )
            for c in (getattr(status, "conditions", None) or [])
        ]
        return DeploymentStatus(
            namespace=namespace,
            name=name,
            desired_replicas=spec_replicas if spec_replicas is not None else 1,
            ready_replicas=getattr(status, "ready_replicas", None) or 0,
            available_replicas=getattr(status, "available_replicas", None) or 0,
            updated_replicas=getattr(status, "updated_replicas", None) or 0,
            generation=live.metadata.generation,
            observed_generation=getattr(status, "observed_generation", None),
            conditions=conditions,
        )

    def delete(self, name: str, namespace: str) -> bool:
        """Delete the Deployment only.

        The PersistentVolumeClaim, ConfigMaps and Secret have their own
        lifecycle and are left in place.

        Returns:
            True if the Deployment was deleted, False if it did not exist
        """
        try:
            self.apps.delete_namespaced_deployment(
                name, namespace, propagation_policy="Background"
            )
        except ApiException as e:
            if e.status == NOT_FOUND:
                logger.info(f"Deployment {namespace}/{name} already absent")
                return False
            raise ClusterError("delete", f"{e.status} {e.reason}: {e.body}") from e
        logger.info(f"Deleted Deployment {namespace}/{name}")
        return True
