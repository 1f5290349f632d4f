"""Models for manifest check results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity of a check finding."""

    ERROR = "error"
    WARNING = "warning"


class CheckResult(BaseModel):
    """A single finding produced by a manifest or cluster check.

    Attributes:
        check: Identifier of the check that produced the finding
        severity: Whether the finding blocks the deployment
        message: Human-readable description
        field: Wire path of the offending field, if any
    """

    model_config = ConfigDict(extra="forbid")

    check: str = Field(..., description="Check identifier")
    severity: Severity = Field(default=Severity.ERROR)
    message: str = Field(..., description="Human-readable description")
    field: str | None = Field(default=None, description="Offending field path")

    def __str__(self) -> str:
        location = f" [{self.field}]" if self.field else ""
        return f"{self.severity.value}: {self.check}{location}: {self.message}"


class ValidationReport(BaseModel):
    """Collected findings for one Deployment.

    Attributes:
        subject: ``namespace/name`` of the checked Deployment
        results: Findings in the order checks ran
        checks_run: Identifiers of every check that ran
    """

    model_config = ConfigDict(extra="forbid")

    subject: str = Field(..., description="namespace/name of the Deployment")
    results: list[CheckResult] = Field(default_factory=list)
    checks_run: list[str] = Field(default_factory=list)

    @property
    def errors(self) -> list[CheckResult]:
        """Return error-severity findings."""
        return [r for r in self.results if r.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[CheckResult]:
        """Return warning-severity findings."""
        return [r for r in self.results if r.severity == Severity.WARNING]

    @property
    def passed(self) -> bool:
        """Return True when no error-severity finding exists."""
        return not self.errors

    def passed_strict(self) -> bool:
        """Return True when there are no findings at all."""
        return not self.results

    def failed_checks(self) -> set[str]:
        """Return identifiers of checks with at least one error."""
        return {r.check for r in self.errors}

    def extend(self, other: "ValidationReport") -> None:
        """Merge another report's findings into this one."""
        self.results.extend(other.results)
        self.checks_run.extend(c for c in other.checks_run if c not in self.checks_run)
