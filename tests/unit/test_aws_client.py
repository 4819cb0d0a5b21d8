"""Unit tests for AWS client management and credential checks."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import NoCredentialsError

from cloud_bootstrap.utils.aws_client import (
    AWSClientManager,
    check_credentials,
    get_profile_info,
)
from cloud_bootstrap.utils.errors import CredentialError

IDENTITY = {
    "Account": "123456789012",
    "Arn": "arn:aws:iam::123456789012:user/deployer",
    "UserId": "AIDAEXAMPLE",
}


@pytest.fixture
def mock_session():
    with patch("cloud_bootstrap.utils.aws_client.boto3.Session") as session_cls:
        yield session_cls


class TestAWSClientManager:
    """Test session and client handling."""

    def test_session_uses_profile(self, mock_session) -> None:
        manager = AWSClientManager(region="eu-west-1", profile="dev")

        assert manager.session is mock_session.return_value
        mock_session.assert_called_once_with(region_name="eu-west-1", profile_name="dev")

    def test_session_without_profile(self, mock_session) -> None:
        AWSClientManager(region="eu-west-1").session

        mock_session.assert_called_once_with(region_name="eu-west-1")

    def test_clients_are_cached_with_retry_config(self, mock_session) -> None:
        manager = AWSClientManager(region="eu-west-1")

        first = manager.get_client("s3")
        second = manager.get_client("s3")

        assert first is second
        mock_session.return_value.client.assert_called_once()
        config = mock_session.return_value.client.call_args.kwargs["config"]
        assert config.region_name == "eu-west-1"
        assert config.retries == {"mode": "standard", "max_attempts": 3}

    def test_clear_cache(self, mock_session) -> None:
        manager = AWSClientManager(region="eu-west-1")
        manager.get_client("s3")

        manager.clear_cache()
        manager.get_client("s3")

        assert mock_session.call_count == 2

    def test_ensure_credentials_missing(self, mock_session) -> None:
        mock_session.return_value.get_credentials.return_value = None

        with pytest.raises(CredentialError) as exc_info:
            AWSClientManager(region="eu-west-1").ensure_credentials()

        assert "no credentials found" in exc_info.value.message
        assert "~/.aws/credentials file" in exc_info.value.message

    def test_ensure_credentials_present(self, mock_session) -> None:
        mock_session.return_value.get_credentials.return_value = MagicMock()

        AWSClientManager(region="eu-west-1").ensure_credentials()


class TestCheckCredentials:
    """Test the STS credential check."""

    def test_returns_caller_arn(self, mock_session) -> None:
        mock_session.return_value.client.return_value.get_caller_identity.return_value = IDENTITY

        assert check_credentials("eu-west-1") == "arn:aws:iam::123456789012:user/deployer"
        mock_session.return_value.client.assert_called_once()
        assert mock_session.return_value.client.call_args.args == ("sts",)

    def test_identity_is_cached(self, mock_session) -> None:
        sts = mock_session.return_value.client.return_value
        sts.get_caller_identity.return_value = IDENTITY
        manager = AWSClientManager(region="eu-west-1", profile="dev")

        first = manager.validate_credentials()
        second = manager.validate_credentials()

        assert first is second
        assert first.account_id == "123456789012"
        assert first.profile == "dev"
        sts.get_caller_identity.assert_called_once()

    def test_rejected_credentials(self, mock_session, client_error) -> None:
        mock_session.return_value.client.return_value.get_caller_identity.side_effect = client_error(
            "InvalidClientTokenId", "GetCallerIdentity", "The security token included in the request is invalid."
        )

        with pytest.raises(CredentialError) as exc_info:
            check_credentials("eu-west-1")

        message = exc_info.value.message
        assert message.startswith(
            "failed to validate AWS credentials: The security token included in the request is invalid."
        )
        assert "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables" in message
        assert "EC2 instance profile or ECS task role" in message
        assert "Verify credentials using: aws sts get-caller-identity" in exc_info.value.suggestions

    def test_no_credentials(self, mock_session) -> None:
        mock_session.return_value.client.return_value.get_caller_identity.side_effect = NoCredentialsError()

        with pytest.raises(CredentialError) as exc_info:
            check_credentials("eu-west-1")

        assert exc_info.value.message.startswith("failed to validate AWS credentials: Unable to locate credentials")


class TestGetProfileInfo:
    """Test the profile and region summary line."""

    def test_defaults(self, monkeypatch) -> None:
        for name in ("AWS_PROFILE", "AWS_REGION", "AWS_DEFAULT_REGION"):
            monkeypatch.delenv(name, raising=False)

        assert get_profile_info() == "AWS Profile: default, Region: unknown"

    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("AWS_PROFILE", "staging")
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-southeast-2")

        assert get_profile_info() == "AWS Profile: staging, Region: ap-southeast-2"
