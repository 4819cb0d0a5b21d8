"""Unit tests for error categorization."""

from __future__ import annotations

from botocore.exceptions import NoCredentialsError

from cloud_bootstrap.utils.errors import (
    BootstrapError,
    CredentialError,
    ErrorCategory,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ExistenceCheckError,
    ProvisioningError,
    error_code,
    error_message,
)


class TestErrorHelpers:
    """Test AWS error code and message extraction."""

    def test_client_error(self, client_error) -> None:
        error = client_error("NoSuchBucket", "HeadBucket", "The specified bucket does not exist")

        assert error_code(error) == "NoSuchBucket"
        assert error_message(error) == "The specified bucket does not exist"

    def test_missing_message_falls_back_to_str(self, client_error) -> None:
        error = client_error("404", "HeadBucket")

        assert error_message(error) == str(error)

    def test_non_aws_error(self) -> None:
        assert error_code(ValueError("x")) == ""
        assert error_message(ValueError("x")) == "x"


class TestErrorTypes:
    """Test the error hierarchy defaults."""

    def test_provisioning_error_defaults(self) -> None:
        error = ProvisioningError("failed to create bucket b: denied")

        assert error.category == ErrorCategory.PROVISIONING
        assert error.severity == ErrorSeverity.CRITICAL
        assert str(error) == "failed to create bucket b: denied"

    def test_existence_check_error_is_provisioning_error(self) -> None:
        assert issubclass(ExistenceCheckError, ProvisioningError)

    def test_user_message(self) -> None:
        error = ProvisioningError(
            "failed to create bucket b: denied",
            context=ErrorContext(resource_id="b", operation="create bucket b"),
            suggestions=["Check IAM policies"],
        )

        message = error.to_user_message()

        assert message.startswith("❌ CRITICAL: failed to create bucket b: denied")
        assert "   Resource: b" in message
        assert "   1. Check IAM policies" in message

    def test_to_dict(self) -> None:
        cause = ValueError("bad")
        error = CredentialError("no credentials", cause=cause)

        data = error.to_dict()

        assert data["category"] == "credential"
        assert data["severity"] == "critical"
        assert data["cause"] == "bad"
        assert data["context"]["resource_id"] is None


class TestErrorHandler:
    """Test exception categorization."""

    def test_known_aws_error(self, client_error) -> None:
        error = client_error("AccessDenied", "PutBucketPolicy", "Access Denied")

        handled = ErrorHandler().handle_exception(error)

        assert handled.category == ErrorCategory.PERMISSION
        assert handled.message == "Access denied: Access Denied"
        assert handled.context.request_id == "req-123"
        assert handled.context.aws_operation == "PutBucketPolicy"
        assert handled.cause is error

    def test_unknown_aws_error(self, client_error) -> None:
        handled = ErrorHandler().handle_exception(client_error("Weird", "CreateBucket", "odd"))

        assert handled.category == ErrorCategory.AWS
        assert handled.message == "AWS Error (Weird): odd"
        assert "req-123" in handled.suggestions[0]

    def test_no_credentials(self) -> None:
        handled = ErrorHandler().handle_exception(NoCredentialsError())

        assert isinstance(handled, CredentialError)
        assert handled.message == "No AWS credentials found"
        assert len(handled.suggestions) == 3

    def test_bootstrap_error_passthrough(self) -> None:
        error = BootstrapError("already handled")

        assert ErrorHandler().handle_exception(error) is error

    def test_suggestions_for(self, client_error) -> None:
        handler = ErrorHandler()

        assert "delete-policy-version" in handler.suggestions_for(client_error("LimitExceeded"))[0]
        assert handler.suggestions_for(client_error("Unmapped")) == []
        assert handler.suggestions_for(ValueError("x")) == []
