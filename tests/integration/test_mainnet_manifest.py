"""Integration tests for the shipped mainnet roochbot manifest.

Loads kube/mainnet/roochbot/mainnet-roochbot-deployment.yaml from disk and
checks the properties every roochbot Deployment must hold, then compares it
with what the generator renders from the default bot configuration.
"""

import posixpath
from pathlib import Path
from typing import Any

import pytest
import yaml

from roochdeploy.config.loader import ManifestLoader
from roochdeploy.manifest.checks import validate_deployment
from roochdeploy.manifest.generator import (
    build_deployment,
    default_manifest_path,
    render_manifest,
)
from roochdeploy.models.bot import BotConfig
from roochdeploy.models.deployment import Deployment


@pytest.fixture
def deployment(manifest_path: Path) -> Deployment:
    """The shipped manifest, loaded and validated."""
    return ManifestLoader().load_deployment(str(manifest_path))


class TestMainnetManifestProperties:
    """The shipped manifest satisfies every roochbot consistency rule."""

    def test_identifies_apps_v1_deployment(self, deployment: Deployment) -> None:
        """Test the schema identifier pair."""
        assert deployment.api_version == "apps/v1"
        assert deployment.kind == "Deployment"
        assert deployment.key == ("mainnet", "roochbot")

    def test_selector_is_subset_of_template_labels(
        self, deployment: Deployment
    ) -> None:
        """Test every selector label is carried by the Pod template."""
        template_labels = deployment.spec.template.metadata.labels
        for key, value in deployment.spec.selector.match_labels.items():
            assert template_labels[key] == value

    def test_every_mount_names_a_declared_volume(self, deployment: Deployment) -> None:
        """Test volumeMounts resolve to volumes."""
        volume_names = {v.name for v in deployment.pod_spec.volumes}
        for container in deployment.pod_spec.containers:
            for mount in container.volume_mounts:
                assert mount.name in volume_names

    def test_character_file_is_projected_from_config_map(
        self, deployment: Deployment
    ) -> None:
        """Test the --characters path is served by the character ConfigMap item."""
        container = deployment.pod_spec.containers[0]
        flag_index = container.args.index("--characters")
        character_path = container.args[flag_index + 1]

        directory, filename = posixpath.split(character_path)
        mount = next(m for m in container.volume_mounts if m.mount_path == directory)
        volume = deployment.pod_spec.volume(mount.name)

        assert volume is not None
        assert volume.config_map is not None
        assert volume.config_map.name == "roochbot-character-config"
        assert filename in {item.path for item in volume.config_map.items}

    def test_imports_one_config_map_and_one_secret(
        self, deployment: Deployment
    ) -> None:
        """Test the environment sources of the bot container."""
        container = deployment.pod_spec.containers[0]
        assert container.env_from_names("ConfigMap") == ["roochbot-config"]
        assert container.env_from_names("Secret") == ["roochbot-secrets"]
        # ConfigMap first, so Secret keys win on collision
        assert container.env_from[0].source_kind == "ConfigMap"
        assert container.env_from[1].source_kind == "Secret"

    def test_replicas_is_non_negative_integer(self, deployment: Deployment) -> None:
        """Test the replica count."""
        assert deployment.spec.replicas == 1

    def test_data_volume_is_persistent_claim(self, deployment: Deployment) -> None:
        """Test the agent data directory is backed by the roochbot-data claim."""
        container = deployment.pod_spec.containers[0]
        mount = next(
            m for m in container.volume_mounts if m.mount_path == "/app/agent/data"
        )
        volume = deployment.pod_spec.volume(mount.name)

        assert volume is not None
        assert volume.persistent_volume_claim is not None
        assert volume.persistent_volume_claim.claim_name == "roochbot-data"

    def test_process_invocation(self, deployment: Deployment) -> None:
        """Test the container runs the bot non-interactively with its character."""
        container = deployment.pod_spec.containers[0]
        assert container.image == "jolestar/eliza-tee:0.1.6-alpha.4-20241219.2"
        assert container.invocation == [
            "pnpm",
            "start",
            "--non-interactive",
            "--characters",
            "/app/characters/roochbot.character.json",
        ]
        assert [p.container_port for p in container.ports] == [3000]

    def test_passes_roochbot_profile_strictly(self, deployment: Deployment) -> None:
        """Test the shipped manifest has no findings at all."""
        report = validate_deployment(deployment, profile="roochbot", strict=True)
        assert report.passed
        assert report.results == []


class TestMainnetManifestGeneration:
    """The generator reproduces the shipped manifest from defaults."""

    def test_wire_form_matches_file(
        self, deployment: Deployment, manifest_path: Path
    ) -> None:
        """Test serializing the loaded model gives back the file contents."""
        on_disk: dict[str, Any] = yaml.safe_load(manifest_path.read_text())
        assert deployment.to_manifest() == on_disk

    def test_build_deployment_matches_file(self, deployment: Deployment) -> None:
        """Test the typed record built from defaults equals the shipped one."""
        assert build_deployment(BotConfig()).to_manifest() == deployment.to_manifest()

    def test_rendered_manifest_matches_file(self, manifest_path: Path) -> None:
        """Test the rendered YAML loads to the same document as the file."""
        rendered = yaml.safe_load(render_manifest(BotConfig()))
        assert rendered == yaml.safe_load(manifest_path.read_text())

    def test_default_path_is_shipped_location(self, manifest_path: Path) -> None:
        """Test the generator's default path convention."""
        root = manifest_path.parents[3]
        assert default_manifest_path(BotConfig(), root) == manifest_path
