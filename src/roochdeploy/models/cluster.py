"""Pydantic models for cluster operation results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ApplyAction(str, Enum):
    """What an apply did to the live object."""

    CREATED = "created"
    UPDATED = "updated"


class ApplyResult(BaseModel):
    """Result of applying a Deployment.

    Attributes:
        namespace: Namespace the Deployment was applied to
        name: Deployment name
        action: Whether the Deployment was created or replaced
        dry_run: True when the API server only validated the request
        generation: metadata.generation reported by the API server
    """

    model_config = ConfigDict(extra="forbid")

    namespace: str = Field(..., description="Target namespace")
    name: str = Field(..., description="Deployment name")
    action: ApplyAction = Field(..., description="created or updated")
    dry_run: bool = Field(default=False, description="Server-side dry run")
    generation: int | None = Field(default=None, description="metadata.generation")


class DeploymentCondition(BaseModel):
    """One entry of status.conditions."""

    model_config = ConfigDict(extra="forbid")

    type: str
    status: str
    reason: str | None = None
    message: str | None = None


class DeploymentStatus(BaseModel):
    """Snapshot of a live Deployment's rollout status.

    The orchestrator reconciles asynchronously; this is what it reported at
    the time of the read.
    """

    model_config = ConfigDict(extra="forbid")

    namespace: str
    name: str
    desired_replicas: int = Field(default=0)
    ready_replicas: int = Field(default=0)
    available_replicas: int = Field(default=0)
    updated_replicas: int = Field(default=0)
    generation: int | None = Field(default=None)
    observed_generation: int | None = Field(default=None)
    conditions: list[DeploymentCondition] = Field(default_factory=list)

    @property
    def rolled_out(self) -> bool:
        """Return True when the latest spec is observed and fully available."""
        observed = (
            self.generation is None
            or (
                self.observed_generation is not None
                and self.observed_generation >= self.generation
            )
        )
        return (
            observed
            and self.updated_replicas == self.desired_replicas
            and self.available_replicas == self.desired_replicas
        )
