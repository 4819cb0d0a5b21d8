"""Unit tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cloud_bootstrap.cli.main import cli
from cloud_bootstrap.orchestrator import ProvisionSummary
from cloud_bootstrap.provisioners import FailurePolicy, ReconcileResult
from cloud_bootstrap.utils.errors import CredentialError, ErrorContext, ProvisioningError

CONFIG = """
region: us-east-1
s3_buckets:
  - name: logs-bucket
    versioning: enabled
ecr_repositories:
  - name: api
"""

ARN = "arn:aws:iam::123456789012:user/deployer"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> str:
    path = tmp_path / "aws-resources.yaml"
    path.write_text(CONFIG)
    return str(path)


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("cloud_bootstrap.cli.main.setup_logging"):
        yield


@pytest.fixture
def mock_check():
    with patch("cloud_bootstrap.cli.main.check_credentials", return_value=ARN) as check:
        yield check


@pytest.fixture
def mock_orchestrator():
    with patch("cloud_bootstrap.cli.main.BootstrapOrchestrator") as orchestrator_cls:
        orchestrator_cls.for_region.return_value.provision.return_value = ProvisionSummary(
            [ReconcileResult("AWS::S3::Bucket", created=["logs-bucket"])]
        )
        yield orchestrator_cls


class TestConfigLoading:
    """Test configuration errors."""

    def test_missing_config(self, runner, tmp_path) -> None:
        result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Failed to load configuration" in result.output

    def test_malformed_config(self, runner, tmp_path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("region: [oops\n")

        result = runner.invoke(cli, ["--config", str(path)])

        assert result.exit_code == 1
        assert "error parsing YAML" in result.output

    def test_undecodable_config(self, runner, tmp_path) -> None:
        path = tmp_path / "binary.yaml"
        path.write_bytes(b"region: us-east-1\n\xff\n")

        result = runner.invoke(cli, ["--config", str(path), "--dry-run"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Failed to load configuration" in result.output


class TestDryRun:
    """Test dry-run mode."""

    def test_prints_plan_without_aws(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        result = runner.invoke(cli, ["--config", config_file, "--dry-run"])

        assert result.exit_code == 0
        assert "Running in dry-run mode. No changes will be made." in result.output
        assert "  - logs-bucket" in result.output
        assert "    - Versioning: enabled" in result.output
        assert "  - api" in result.output
        mock_check.assert_not_called()
        mock_orchestrator.for_region.assert_not_called()


class TestCredentialCheck:
    """Test the credential check step."""

    def test_check_creds_only(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        result = runner.invoke(cli, ["--config", config_file, "--check-creds", "--profile", "dev"])

        assert result.exit_code == 0
        assert "Checking AWS credentials..." in result.output
        assert ARN in result.output
        assert "Credential check completed successfully." in result.output
        mock_check.assert_called_once_with("us-east-1", "dev")
        mock_orchestrator.for_region.assert_not_called()

    def test_credential_failure(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        mock_check.side_effect = CredentialError("failed to validate AWS credentials: expired")

        result = runner.invoke(cli, ["--config", config_file])

        assert result.exit_code == 1
        assert "AWS credential check failed" in result.output
        mock_orchestrator.for_region.assert_not_called()


class TestProvisioning:
    """Test full provisioning runs."""

    def test_successful_run(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        result = runner.invoke(cli, ["--config", config_file])

        assert result.exit_code == 0
        assert "All resources configured successfully" in result.output
        mock_orchestrator.for_region.assert_called_once_with(
            "us-east-1", None, FailurePolicy.CONTINUE_WITH_WARNINGS
        )

    def test_strict_flag(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        runner.invoke(cli, ["--config", config_file, "--strict"])

        mock_orchestrator.for_region.assert_called_once_with(
            "us-east-1", None, FailurePolicy.ABORT_ON_FIRST_ERROR
        )

    def test_warnings_reported(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        mock_orchestrator.for_region.return_value.provision.return_value = ProvisionSummary(
            [ReconcileResult("AWS::S3::Bucket", unchanged=["logs-bucket"],
                             warnings=["failed to enable versioning for bucket logs-bucket: denied"])]
        )

        result = runner.invoke(cli, ["--config", config_file])

        assert result.exit_code == 0
        assert "1 warning(s)" in result.output
        assert "failed to enable versioning for bucket logs-bucket: denied" in result.output

    def test_initialization_failure(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        mock_orchestrator.for_region.side_effect = CredentialError("no credentials found")

        result = runner.invoke(cli, ["--config", config_file])

        assert result.exit_code == 1
        assert "Failed to initialize bootstrapper" in result.output

    def test_provisioning_failure(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        mock_orchestrator.for_region.return_value.provision.side_effect = ProvisioningError(
            "failed to create S3 buckets: failed to create bucket logs-bucket: taken"
        )

        result = runner.invoke(cli, ["--config", config_file])

        assert result.exit_code == 1
        assert "Failed to provision resources" in result.output
        assert "logs-bucket" in result.output

    def test_failure_details_and_suggestions(self, runner, config_file, mock_check, mock_orchestrator) -> None:
        mock_orchestrator.for_region.return_value.provision.side_effect = ProvisioningError(
            "failed to create S3 buckets: taken",
            context=ErrorContext(resource_id="logs-bucket", operation="create bucket logs-bucket"),
            suggestions=["Choose a globally unique bucket name"]
        )

        result = runner.invoke(cli, ["--config", config_file])

        assert result.exit_code == 1
        assert "CRITICAL: failed to create S3 buckets: taken" in result.output
        assert "Resource: logs-bucket" in result.output
        assert "1. Choose a globally unique bucket name" in result.output
