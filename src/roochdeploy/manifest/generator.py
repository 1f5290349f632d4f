"""Deployment manifest generation for roochbot-style bots.

This module renders the Deployment for a BotConfig, either as a typed
Deployment record or as YAML laid out like the hand-written manifests under
``kube/<namespace>/<name>/``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined

from roochdeploy.config.defaults import CHARACTER_VOLUME_NAME, MANIFEST_DIR
from roochdeploy.lib.logging_config import get_logger
from roochdeploy.models.bot import BotConfig
from roochdeploy.models.deployment import (
    ConfigMapVolumeSource,
    Container,
    ContainerPort,
    Deployment,
    DeploymentSpec,
    EnvFromSource,
    KeyToPath,
    LabelSelector,
    LocalObjectReference,
    ObjectMeta,
    PersistentVolumeClaimVolumeSource,
    PodSpec,
    PodTemplateSpec,
    Volume,
    VolumeMount,
)

logger = get_logger(__name__)

# Jinja2 template for generating Deployment manifests
DEPLOYMENT_TEMPLATE = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ bot.name }}
  namespace: {{ bot.namespace }}
spec:
  replicas: {{ bot.replicas }}
  selector:
    matchLabels:
{% for key, value in bot.labels.items() %}
      {{ key | yaml_scalar }}: {{ value | yaml_scalar }}
{% endfor %}
  template:
    metadata:
      labels:
{% for key, value in bot.labels.items() %}
        {{ key | yaml_scalar }}: {{ value | yaml_scalar }}
{% endfor %}
    spec:
      containers:
      - name: {{ bot.name }}
        image: {{ bot.image | string | yaml_scalar }}
        command: [{{ bot.command | map("tojson") | join(", ") }}]
        args:
{% for arg in bot.full_args %}
        - {{ arg | tojson }}
{% endfor %}
        envFrom:
        - configMapRef:
            name: {{ bot.config_map }}
        - secretRef:
            name: {{ bot.secret }}
        ports:
        - containerPort: {{ bot.port }}
        volumeMounts:
        - name: {{ bot.data_claim }}
          mountPath: {{ bot.data_mount_path | yaml_scalar }}
        - name: {{ character_volume }}
          mountPath: {{ bot.characters_dir | yaml_scalar }}
      volumes:
      - name: {{ bot.data_claim }}
        persistentVolumeClaim:
          claimName: {{ bot.data_claim }}
      - name: {{ character_volume }}
        configMap:
          name: {{ bot.character_config_map }}
          items:
          - key: {{ bot.character_file | yaml_scalar }}
            path: {{ bot.character_file | yaml_scalar }}
"""


def _yaml_scalar(value: Any) -> str:
    """Render a scalar the way PyYAML would, quoting only when needed."""
    text = yaml.safe_dump(value, default_flow_style=True, width=2**16)
    return text.removesuffix("\n...\n").strip()


def _environment() -> Environment:
    env = Environment(
        undefined=StrictUndefined,
        trim_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["yaml_scalar"] = _yaml_scalar
    return env


def render_manifest(bot: BotConfig) -> str:
    """Render the Deployment manifest YAML for a bot.

    Args:
        bot: Bot configuration

    Returns:
        Manifest text; loading it yields the same Deployment as
        ``build_deployment(bot)``

    Example:
        >>> manifest = render_manifest(BotConfig())
        >>> print(manifest.splitlines()[3])
          name: roochbot
    """
    template = _environment().from_string(DEPLOYMENT_TEMPLATE)
    rendered = template.render(bot=bot, character_volume=CHARACTER_VOLUME_NAME)
    logger.debug(f"Rendered manifest for {bot.namespace}/{bot.name}")
    return rendered


def build_deployment(bot: BotConfig) -> Deployment:
    """Build the typed Deployment record for a bot."""
    assert bot.data_claim and bot.config_map and bot.secret
    assert bot.character_config_map and bot.character_file

    container = Container(
        name=bot.name,
        image=str(bot.image),
        command=list(bot.command),
        args=bot.full_args,
        env_from=[
            EnvFromSource(config_map_ref=LocalObjectReference(name=bot.config_map)),
            EnvFromSource(secret_ref=LocalObjectReference(name=bot.secret)),
        ],
        ports=[ContainerPort(container_port=bot.port)],
        volume_mounts=[
            VolumeMount(name=bot.data_claim, mount_path=bot.data_mount_path),
            VolumeMount(name=CHARACTER_VOLUME_NAME, mount_path=bot.characters_dir),
        ],
    )
    volumes = [
        Volume(
            name=bot.data_claim,
            persistent_volume_claim=PersistentVolumeClaimVolumeSource(
                claim_name=bot.data_claim
            ),
        ),
        Volume(
            name=CHARACTER_VOLUME_NAME,
            config_map=ConfigMapVolumeSource(
                name=bot.character_config_map,
                items=[KeyToPath(key=bot.character_file, path=bot.character_file)],
            ),
        ),
    ]
    return Deployment(
        metadata=ObjectMeta(name=bot.name, namespace=bot.namespace),
        spec=DeploymentSpec(
            replicas=bot.replicas,
            selector=LabelSelector(match_labels=dict(bot.labels)),
            template=PodTemplateSpec(
                metadata=ObjectMeta(labels=dict(bot.labels)),
                spec=PodSpec(containers=[container], volumes=volumes),
            ),
        ),
    )


def dump_deployment(deployment: Deployment) -> str:
    """Serialize any Deployment to YAML in wire field order."""
    return yaml.safe_dump(
        deployment.to_manifest(), sort_keys=False, default_flow_style=False
    )


def default_manifest_path(bot: BotConfig, root: Path | str = ".") -> Path:
    """Return ``<root>/kube/<namespace>/<name>/<namespace>-<name>-deployment.yaml``."""
    return (
        Path(root)
        / MANIFEST_DIR
        / bot.namespace
        / bot.name
        / f"{bot.namespace}-{bot.name}-deployment.yaml"
    )


def write_manifest(bot: BotConfig, path: Path | str) -> Path:
    """Render a bot's manifest and write it, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_manifest(bot), encoding="utf-8")
    logger.info(f"Wrote manifest for {bot.namespace}/{bot.name} to {target}")
    return target
