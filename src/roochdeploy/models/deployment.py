"""Pydantic models for the apps/v1 Deployment resource.

This module defines the subset of the Kubernetes ``apps/v1`` Deployment
schema that roochbot manifests use: object metadata, the label selector,
the Pod template with its containers, environment sources, ports, volume
mounts and volumes.

Python attributes are snake_case; the wire format is camelCase. Models
accept either spelling and serialize with the wire aliases.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from roochdeploy.lib.validation import (
    parse_image_reference,
    validate_absolute_path,
    validate_config_map_key,
    validate_dns1123_label,
    validate_dns1123_subdomain,
    validate_labels,
    validate_relative_path,
)

API_VERSION = "apps/v1"
KIND = "Deployment"


def _prune(value: Any) -> Any:
    """Drop ``None``, empty lists and empty mappings recursively."""
    if isinstance(value, dict):
        pruned = {k: _prune(v) for k, v in value.items()}
        return {k: v for k, v in pruned.items() if v not in (None, [], {})}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


class KubeModel(BaseModel):
    """Base model for Kubernetes objects (camelCase aliases, strict keys)."""

    model_config = ConfigDict(
        extra="forbid", populate_by_name=True, loc_by_alias=True
    )

    def to_manifest(self) -> dict[str, Any]:
        """Return the wire representation with empty fields omitted."""
        return _prune(self.model_dump(mode="json", by_alias=True))


class ObjectMeta(KubeModel):
    """Object metadata.

    Attributes:
        name: Object name, unique per kind within the namespace
        namespace: Namespace the object lives in
        labels: Identifying key/value pairs used by selectors
        annotations: Non-identifying key/value pairs
    """

    name: str | None = Field(default=None, description="Object name")
    namespace: str | None = Field(default=None, description="Object namespace")
    labels: dict[str, str] = Field(default_factory=dict, description="Labels")
    annotations: dict[str, str] = Field(
        default_factory=dict, description="Annotations"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Validate object name as a DNS-1123 subdomain."""
        if v is not None:
            validate_dns1123_subdomain(v, what="metadata.name")
        return v

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str | None) -> str | None:
        """Validate namespace as a DNS-1123 label."""
        if v is not None:
            validate_dns1123_label(v, what="metadata.namespace")
        return v

    @field_validator("labels")
    @classmethod
    def validate_label_map(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate label keys and values."""
        return validate_labels(v)


class LabelSelector(KubeModel):
    """Label selector associating a Deployment with its Pods."""

    match_labels: dict[str, str] = Field(
        ..., alias="matchLabels", description="Labels a Pod must carry"
    )

    @field_validator("match_labels")
    @classmethod
    def validate_match_labels(cls, v: dict[str, str]) -> dict[str, str]:
        """Require a non-empty, well-formed selector."""
        if not v:
            raise ValueError("matchLabels must not be empty")
        return validate_labels(v)


class LocalObjectReference(KubeModel):
    """Reference to a ConfigMap or Secret in the same namespace."""

    name: str = Field(..., min_length=1, description="Referenced object name")
    optional: bool | None = Field(
        default=None, description="Whether the referenced object may be absent"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate referenced name as a DNS-1123 subdomain."""
        return validate_dns1123_subdomain(v, what="reference name")


class EnvFromSource(KubeModel):
    """A source of environment variables: exactly one ConfigMap or Secret."""

    config_map_ref: LocalObjectReference | None = Field(
        default=None, alias="configMapRef"
    )
    secret_ref: LocalObjectReference | None = Field(default=None, alias="secretRef")
    prefix: str | None = Field(
        default=None, description="Prefix prepended to every imported key"
    )

    @model_validator(mode="after")
    def validate_single_source(self) -> EnvFromSource:
        """Validate that exactly one source reference is set."""
        if (self.config_map_ref is None) == (self.secret_ref is None):
            raise ValueError(
                "envFrom entry must set exactly one of configMapRef or secretRef"
            )
        return self

    @property
    def source_kind(self) -> str:
        """Return ``ConfigMap`` or ``Secret``."""
        return "ConfigMap" if self.config_map_ref is not None else "Secret"

    @property
    def reference(self) -> LocalObjectReference:
        """Return whichever reference is set."""
        ref = self.config_map_ref or self.secret_ref
        assert ref is not None
        return ref


class ContainerPort(KubeModel):
    """A port declared by a container (informational, not enforced)."""

    container_port: int = Field(..., alias="containerPort", ge=1, le=65535)
    name: str | None = Field(default=None)
    protocol: Literal["TCP", "UDP", "SCTP"] | None = Field(default=None)


class VolumeMount(KubeModel):
    """Binding of a named volume into the container filesystem."""

    name: str = Field(..., description="Name of a volume in the Pod spec")
    mount_path: str = Field(..., alias="mountPath", description="Absolute path")
    read_only: bool | None = Field(default=None, alias="readOnly")
    sub_path: str | None = Field(default=None, alias="subPath")

    @field_validator("mount_path")
    @classmethod
    def validate_mount_path(cls, v: str) -> str:
        """Require an absolute mount path."""
        return validate_absolute_path(v)


class Container(KubeModel):
    """A single container in the Pod template.

    Attributes:
        name: Container name, unique within the Pod
        image: Image reference (repository and tag)
        command: Entrypoint override
        args: Arguments override
        env_from: ConfigMap/Secret sources merged into the environment;
            later sources win on key collisions
        ports: Declared container ports
        volume_mounts: Volumes mounted into the container
    """

    name: str = Field(..., description="Container name")
    image: str = Field(..., description="Container image reference")
    command: list[str] = Field(default_factory=list)
    args: list[str] = Field(default_factory=list)
    env_from: list[EnvFromSource] = Field(default_factory=list, alias="envFrom")
    ports: list[ContainerPort] = Field(default_factory=list)
    volume_mounts: list[VolumeMount] = Field(
        default_factory=list, alias="volumeMounts"
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate container name as a DNS-1123 label."""
        return validate_dns1123_label(v, what="container name")

    @field_validator("image")
    @classmethod
    def validate_image(cls, v: str) -> str:
        """Validate the image reference is parseable."""
        parse_image_reference(v)
        return v

    @property
    def invocation(self) -> list[str]:
        """Return the full process invocation (command followed by args)."""
        return [*self.command, *self.args]

    def env_from_names(self, kind: str) -> list[str]:
        """Return the names of envFrom sources of the given kind, in order."""
        return [src.reference.name for src in self.env_from if src.source_kind == kind]

    def mount(self, name: str) -> VolumeMount | None:
        """Return the mount for a volume name, if any."""
        return next((m for m in self.volume_mounts if m.name == name), None)


class KeyToPath(KubeModel):
    """Projection of a single ConfigMap key to a file path."""

    key: str = Field(..., description="ConfigMap key")
    path: str = Field(..., description="Relative file path inside the volume")
    mode: int | None = Field(default=None, ge=0, le=0o777)

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate the ConfigMap key format."""
        return validate_config_map_key(v)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Validate the projected path is relative."""
        return validate_relative_path(v)


class ConfigMapVolumeSource(KubeModel):
    """Volume backed by a ConfigMap, optionally projecting selected keys."""

    name: str = Field(..., min_length=1, description="ConfigMap name")
    items: list[KeyToPath] = Field(default_factory=list)
    default_mode: int | None = Field(
        default=None, alias="defaultMode", ge=0, le=0o777
    )
    optional: bool | None = Field(default=None)


class PersistentVolumeClaimVolumeSource(KubeModel):
    """Volume backed by a PersistentVolumeClaim."""

    claim_name: str = Field(..., alias="claimName", min_length=1)
    read_only: bool | None = Field(default=None, alias="readOnly")


class Volume(KubeModel):
    """A named volume source: exactly one of PVC or ConfigMap."""

    name: str = Field(..., description="Volume name")
    persistent_volume_claim: PersistentVolumeClaimVolumeSource | None = Field(
        default=None, alias="persistentVolumeClaim"
    )
    config_map: ConfigMapVolumeSource | None = Field(default=None, alias="configMap")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate volume name as a DNS-1123 label."""
        return validate_dns1123_label(v, what="volume name")

    @model_validator(mode="after")
    def validate_single_source(self) -> Volume:
        """Validate that exactly one volume source is set."""
        sources = [self.persistent_volume_claim, self.config_map]
        if sum(s is not None for s in sources) != 1:
            raise ValueError(
                f"volume '{self.name}' must set exactly one of "
                "persistentVolumeClaim or configMap"
            )
        return self


class PodSpec(KubeModel):
    """Pod specification used for every replica."""

    containers: list[Container] = Field(..., min_length=1)
    volumes: list[Volume] = Field(default_factory=list)
    restart_policy: Literal["Always"] | None = Field(
        default=None, alias="restartPolicy"
    )

    def volume(self, name: str) -> Volume | None:
        """Return the volume with the given name, if any."""
        return next((v for v in self.volumes if v.name == name), None)


class PodTemplateSpec(KubeModel):
    """Pod template reused to instantiate every replica."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec


class DeploymentSpec(KubeModel):
    """Desired state of the Deployment."""

    replicas: int = Field(default=1, ge=0, description="Desired Pod count")
    selector: LabelSelector
    template: PodTemplateSpec

    @field_validator("replicas", mode="before")
    @classmethod
    def validate_replicas_type(cls, v: Any) -> Any:
        """Reject booleans and non-integral numbers for replicas."""
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError(f"replicas must be a non-negative integer, got {v!r}")
        return v


class Deployment(KubeModel):
    """The apps/v1 Deployment record.

    Attributes:
        api_version: Schema identifier, always ``apps/v1``
        kind: Resource kind, always ``Deployment``
        metadata: Name and namespace; (namespace, name) is the apply key
        spec: Replica count, selector and Pod template
    """

    api_version: Literal["apps/v1"] = Field(default=API_VERSION, alias="apiVersion")
    kind: Literal["Deployment"] = Field(default=KIND)
    metadata: ObjectMeta
    spec: DeploymentSpec

    @model_validator(mode="after")
    def validate_metadata_name(self) -> Deployment:
        """Validate that the Deployment is named."""
        if not self.metadata.name:
            raise ValueError("metadata.name is required for a Deployment")
        return self

    @property
    def name(self) -> str:
        """Return the Deployment name."""
        assert self.metadata.name is not None
        return self.metadata.name

    @property
    def namespace(self) -> str:
        """Return the namespace, falling back to ``default``."""
        return self.metadata.namespace or "default"

    @property
    def key(self) -> tuple[str, str]:
        """Return the (namespace, name) pair that identifies the resource."""
        return self.namespace, self.name

    @property
    def pod_spec(self) -> PodSpec:
        """Shortcut to the Pod template spec."""
        return self.spec.template.spec
