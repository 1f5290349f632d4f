"""Unit tests for the preflight, apply, status and delete commands."""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from roochdeploy.cli.main import main
from roochdeploy.lib.errors import ClusterError
from roochdeploy.models.cluster import (
    ApplyAction,
    ApplyResult,
    DeploymentCondition,
    DeploymentStatus,
)
from roochdeploy.models.report import CheckResult, ValidationReport

CLIENT = "roochdeploy.cli.commands.cluster.ClusterClient"


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


def _report(*results: CheckResult) -> ValidationReport:
    return ValidationReport(subject="mainnet/roochbot", results=list(results))


class TestPreflightCommand:
    """Tests for roochdeploy preflight."""

    @patch(CLIENT)
    def test_passes(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test a clean preflight exits 0."""
        mock_client.return_value.preflight.return_value = _report()

        result = runner.invoke(main, ["preflight", str(manifest_path)])

        assert result.exit_code == 0
        assert "Preflight mainnet/roochbot" in result.output
        mock_client.assert_called_once_with(kubeconfig=None, context=None)

    @patch(CLIENT)
    def test_missing_objects_exit_1(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test missing objects fail the command."""
        mock_client.return_value.preflight.return_value = _report(
            CheckResult(check="env_sources_exist", message="Secret not found")
        )

        result = runner.invoke(main, ["preflight", str(manifest_path)])

        assert result.exit_code == 1
        assert "Secret not found" in result.output

    @patch(CLIENT)
    def test_kubeconfig_from_environment(
        self,
        mock_client: MagicMock,
        runner: CliRunner,
        manifest_path: Path,
        temp_dir: Path,
    ) -> None:
        """Test kubeconfig and context come from ROOCHDEPLOY_* variables."""
        mock_client.return_value.preflight.return_value = _report()
        kubeconfig = str(temp_dir / "kubeconfig")

        runner.invoke(
            main,
            ["preflight", str(manifest_path)],
            env={"ROOCHDEPLOY_KUBECONFIG": kubeconfig, "ROOCHDEPLOY_CONTEXT": "prod"},
        )

        mock_client.assert_called_once_with(kubeconfig=kubeconfig, context="prod")

    @patch(CLIENT)
    def test_cluster_error_exits_3(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test cluster failures exit with code 3."""
        mock_client.side_effect = ClusterError("config", "no kubeconfig")

        result = runner.invoke(main, ["preflight", str(manifest_path)])

        assert result.exit_code == 3
        assert "config failed" in result.output


class TestApplyCommand:
    """Tests for roochdeploy apply."""

    @patch(CLIENT)
    def test_apply_creates(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test a successful apply."""
        cluster = mock_client.return_value
        cluster.preflight.return_value = _report()
        cluster.apply.return_value = ApplyResult(
            namespace="mainnet", name="roochbot", action=ApplyAction.CREATED
        )

        result = runner.invoke(main, ["apply", str(manifest_path)])

        assert result.exit_code == 0
        assert "Deployment mainnet/roochbot created" in result.output
        deployment = cluster.apply.call_args.args[0]
        assert deployment.key == ("mainnet", "roochbot")
        assert cluster.apply.call_args.kwargs == {"dry_run": False}

    @patch(CLIENT)
    def test_dry_run_without_preflight(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test --dry-run and --skip-preflight."""
        cluster = mock_client.return_value
        cluster.apply.return_value = ApplyResult(
            namespace="mainnet",
            name="roochbot",
            action=ApplyAction.UPDATED,
            dry_run=True,
        )

        result = runner.invoke(
            main, ["apply", str(manifest_path), "--dry-run", "--skip-preflight"]
        )

        assert result.exit_code == 0
        assert "updated (dry run)" in result.output
        cluster.preflight.assert_not_called()
        assert cluster.apply.call_args.kwargs == {"dry_run": True}

    @patch(CLIENT)
    def test_invalid_manifest_not_applied(
        self,
        mock_client: MagicMock,
        runner: CliRunner,
        manifest_dict: dict[str, Any],
        manifest_file: Callable[..., Path],
    ) -> None:
        """Test a manifest failing checks never reaches the cluster."""
        manifest_dict["spec"]["selector"]["matchLabels"] = {"app": "otherbot"}
        path = manifest_file(manifest_dict)

        result = runner.invoke(main, ["apply", str(path)])

        assert result.exit_code == 1
        mock_client.assert_not_called()

    @patch(CLIENT)
    def test_failed_preflight_not_applied(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test missing references stop the apply."""
        cluster = mock_client.return_value
        cluster.preflight.return_value = _report(
            CheckResult(check="volumes_exist", message="claim not found")
        )

        result = runner.invoke(main, ["apply", str(manifest_path)])

        assert result.exit_code == 1
        cluster.apply.assert_not_called()

    @patch(CLIENT)
    def test_rejected_apply_exits_3(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test an API rejection exits with code 3."""
        cluster = mock_client.return_value
        cluster.preflight.return_value = _report()
        cluster.apply.side_effect = ClusterError("apply", "422 Unprocessable Entity")

        result = runner.invoke(main, ["apply", str(manifest_path)])

        assert result.exit_code == 3
        assert "422" in result.output


class TestStatusCommand:
    """Tests for roochdeploy status."""

    @patch(CLIENT)
    def test_rolled_out(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test status output for a finished rollout."""
        mock_client.return_value.status.return_value = DeploymentStatus(
            namespace="mainnet",
            name="roochbot",
            desired_replicas=1,
            ready_replicas=1,
            available_replicas=1,
            updated_replicas=1,
            conditions=[
                DeploymentCondition(
                    type="Available", status="True", reason="MinimumReplicasAvailable"
                )
            ],
        )

        result = runner.invoke(main, ["status", str(manifest_path)])

        assert result.exit_code == 0
        assert "1/1 ready" in result.output
        assert "Available=True (MinimumReplicasAvailable)" in result.output
        assert "Rolled out" in result.output
        mock_client.return_value.status.assert_called_once_with("roochbot", "mainnet")

    @patch(CLIENT)
    def test_not_found(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test a missing Deployment exits 1."""
        mock_client.return_value.status.return_value = None

        result = runner.invoke(main, ["status", str(manifest_path)])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestDeleteCommand:
    """Tests for roochdeploy delete."""

    @patch(CLIENT)
    def test_delete_with_yes(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test --yes skips the prompt."""
        mock_client.return_value.delete.return_value = True

        result = runner.invoke(main, ["delete", str(manifest_path), "--yes"])

        assert result.exit_code == 0
        assert "Deleted Deployment mainnet/roochbot" in result.output
        mock_client.return_value.delete.assert_called_once_with("roochbot", "mainnet")

    @patch(CLIENT)
    def test_delete_declined(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test answering no aborts without touching the cluster."""
        result = runner.invoke(main, ["delete", str(manifest_path)], input="n\n")

        assert result.exit_code == 1
        mock_client.assert_not_called()

    @patch(CLIENT)
    def test_delete_absent(
        self, mock_client: MagicMock, runner: CliRunner, manifest_path: Path
    ) -> None:
        """Test deleting a Deployment that is not there."""
        mock_client.return_value.delete.return_value = False

        result = runner.invoke(main, ["delete", str(manifest_path)], input="y\n")

        assert result.exit_code == 0
        assert "was not present" in result.output
