"""roochdeploy - typed schema, checks and tooling for the roochbot Deployment.

The roochbot Deployment is a single apps/v1 manifest: one container running
the eliza-tee image with a character file projected from a ConfigMap, its
environment imported from a ConfigMap and a Secret, and a persistent claim
for agent data.

Main features:
- Pydantic models for the Deployment and for bot configuration
- Consistency checks (selector, mounts, env sources, character projection)
- Manifest generation from a short bot.yaml
- Cluster preflight, apply, status and delete through the Kubernetes API
"""

from roochdeploy.config.loader import ManifestLoader
from roochdeploy.lib.errors import ConfigError, RoochDeployError, ValidationError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ManifestLoader",
    "ConfigError",
    "RoochDeployError",
    "ValidationError",
]
