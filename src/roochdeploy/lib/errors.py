"""Custom exception hierarchy for roochdeploy configuration and operations."""


class RoochDeployError(Exception):
    """Base exception for all roochdeploy errors.

    All roochdeploy-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(RoochDeployError):
    """Exception raised for configuration errors.

    This exception is raised when a manifest or bot configuration cannot be
    loaded, parsed or validated against the schema.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class ValidationError(RoochDeployError, ValueError):
    """Exception raised when a bot configuration value conflicts with another.

    Subclasses ValueError so pydantic validators can raise it directly; the
    loader then reports it with the other field errors.

    Attributes:
        field: The field that failed validation
        message: Description of the validation failure
        expected: Human description of expected value/type
        actual: The actual value that failed validation
    """

    def __init__(
        self,
        field: str,
        message: str,
        expected: str,
        actual: str,
    ) -> None:
        """Initialize ValidationError with detailed information.

        Args:
            field: Field that failed validation (dot notation for nested fields)
            message: Description of what went wrong
            expected: Human-readable description of expected value
            actual: The actual value that failed
        """
        self.field = field
        self.message = message
        self.expected = expected
        self.actual = actual
        full_message = (
            f"Validation error in '{field}': {message}\n"
            f"  Expected: {expected}\n"
            f"  Got: {actual}"
        )
        super().__init__(full_message)


class FileNotFoundError(RoochDeployError):
    """Exception raised when a manifest or configuration file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the file that was not found
            message: Descriptive error message, optionally with suggestions
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class ClusterError(RoochDeployError):
    """Exception raised when a Kubernetes API operation fails.

    Attributes:
        operation: The cluster operation that failed (preflight, apply, ...)
        message: Human-readable error message
    """

    def __init__(self, operation: str, message: str) -> None:
        """Create a cluster error for a named operation."""
        self.operation = operation
        self.message = message
        super().__init__(f"Cluster {operation} failed: {message}")
