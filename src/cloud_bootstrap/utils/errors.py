"""Error types and AWS error classification."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from botocore.exceptions import ClientError, NoCredentialsError, PartialCredentialsError

from cloud_bootstrap.utils.logging import get_logger

logger = get_logger(__name__)


CREDENTIAL_SOURCES = [
    'AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables',
    '~/.aws/credentials file',
    'EC2 instance profile or ECS task role',
]


class ErrorCategory(Enum):
    """Broad cause of a failure, used to pick suggestions."""
    CONFIGURATION = "configuration"
    AWS = "aws"
    NETWORK = "network"
    PROVISIONING = "provisioning"
    CREDENTIAL = "credential"
    PERMISSION = "permission"
    RESOURCE_LIMIT = "resource_limit"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """How far a failure reaches."""
    CRITICAL = "critical"  # ends the run
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ErrorContext:
    """Where an error happened."""
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    operation: Optional[str] = None
    aws_service: Optional[str] = None
    aws_operation: Optional[str] = None
    request_id: Optional[str] = None


class BootstrapError(Exception):
    """Base exception for everything the bootstrapper reports to the user."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize bootstrap error.

        Args:
            message: Message shown to the user
            category: Error category
            severity: Error severity
            context: Resource and AWS call the error relates to
            cause: Underlying exception, usually a botocore error
            suggestions: Suggested fixes, shown in order
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = list(suggestions or [])

    def to_user_message(self) -> str:
        """Render the error with its resource and numbered suggestions."""
        lines = [f"❌ {self.severity.value.upper()}: {self.message}"]

        for label, value in (('Resource', self.context.resource_id), ('Operation', self.context.operation)):
            if value:
                lines.append(f"   {label}: {value}")

        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            lines.extend(f"   {n}. {text}" for n, text in enumerate(self.suggestions, 1))

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used for debug logging."""
        return {
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': asdict(self.context),
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions,
        }


class CredentialError(BootstrapError):
    """Credentials could not be resolved or were rejected."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CREDENTIAL,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class ProvisioningError(BootstrapError):
    """Fatal error while creating or configuring a resource."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('category', ErrorCategory.PROVISIONING)
        kwargs.setdefault('severity', ErrorSeverity.CRITICAL)
        super().__init__(message, **kwargs)


class ExistenceCheckError(ProvisioningError):
    """The existence lookup for a resource failed for a reason other than absence."""


def error_code(error: Exception) -> str:
    """Return the AWS error code of a ClientError, or an empty string."""
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', '')
    return ''


def error_message(error: Exception) -> str:
    """Return the provider message of a ClientError, falling back to str(error)."""
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Message') or str(error)
    return str(error)


@dataclass(frozen=True)
class ErrorHint:
    """What a known AWS error code means and how to get past it."""
    category: ErrorCategory
    summary: str
    suggestions: Tuple[str, ...] = field(default_factory=tuple)


_RERUN = ('Another bootstrap run may have created it concurrently; run again to configure it',)

_CHECK_VALUES = (
    'Compare the value in the resource file with the AWS documentation for this call',
)

AWS_ERROR_HINTS: Dict[str, ErrorHint] = {
    # Credentials
    'InvalidClientTokenId': ErrorHint(ErrorCategory.CREDENTIAL, 'AWS credentials are invalid or expired', (
        'Verify credentials using: aws sts get-caller-identity',
        'Rotate the access key if it was deactivated or deleted',
    )),
    'SignatureDoesNotMatch': ErrorHint(ErrorCategory.CREDENTIAL, 'AWS request signature was rejected', (
        'Check that the secret access key matches the access key id',
        'Check the system clock; signatures expire after a few minutes of skew',
    )),
    'ExpiredToken': ErrorHint(ErrorCategory.CREDENTIAL, 'AWS session token has expired', (
        'Refresh the session, e.g. with: aws sso login',
    )),

    # Permissions
    'AccessDenied': ErrorHint(ErrorCategory.PERMISSION, 'Access denied', (
        'Grant the calling principal the action named in the message',
        'For buckets, check that a bucket policy or Block Public Access setting is not denying the call',
    )),
    'AccessDeniedException': ErrorHint(ErrorCategory.PERMISSION, 'Access denied', (
        'Grant the calling principal the action named in the message',
    )),

    # Limits
    'LimitExceeded': ErrorHint(ErrorCategory.RESOURCE_LIMIT, 'AWS service limit exceeded', (
        'IAM keeps at most 5 versions per managed policy; '
        'delete old non-default versions with: aws iam delete-policy-version',
        'Request a quota increase through Service Quotas',
    )),
    'TooManyBuckets': ErrorHint(ErrorCategory.RESOURCE_LIMIT, 'S3 bucket limit reached for this account', (
        'Delete unused buckets or request a bucket limit increase through Service Quotas',
    )),
    'StorageQuotaExceeded': ErrorHint(ErrorCategory.RESOURCE_LIMIT, 'RDS storage quota exceeded', (
        'Reduce allocated_storage or request an RDS storage quota increase',
    )),

    # Name collisions
    'BucketAlreadyExists': ErrorHint(ErrorCategory.PROVISIONING, 'Bucket name is taken in the global S3 namespace', (
        'Choose a globally unique bucket name',
    )),
    'BucketAlreadyOwnedByYou': ErrorHint(ErrorCategory.PROVISIONING, 'Bucket is already owned by this account', _RERUN),
    'RepositoryAlreadyExistsException': ErrorHint(ErrorCategory.PROVISIONING, 'ECR repository already exists', _RERUN),
    'EntityAlreadyExists': ErrorHint(ErrorCategory.PROVISIONING, 'IAM entity already exists', _RERUN),
    'DBInstanceAlreadyExists': ErrorHint(ErrorCategory.PROVISIONING, 'RDS instance already exists', _RERUN),

    'InvalidDBInstanceState': ErrorHint(ErrorCategory.PROVISIONING, 'RDS instance is not in a modifiable state', (
        "Wait for the instance to reach the 'available' state and run again",
    )),

    # Bad input
    'MalformedPolicyDocument': ErrorHint(ErrorCategory.VALIDATION, 'IAM policy document is malformed', (
        'Check the policy_document JSON in the resource file',
    )),
    'MalformedPolicy': ErrorHint(ErrorCategory.VALIDATION, 'Bucket policy is malformed', (
        'Check the bucket policy JSON in the resource file',
        'Make sure Resource ARNs reference the bucket being configured',
    )),
    'InvalidParameterException': ErrorHint(ErrorCategory.VALIDATION, 'Invalid parameter value', _CHECK_VALUES),
    'InvalidParameterValue': ErrorHint(ErrorCategory.VALIDATION, 'Invalid parameter value', _CHECK_VALUES),
    'InvalidParameterCombination': ErrorHint(ErrorCategory.VALIDATION, 'Invalid combination of parameters', (
        'Check that engine, engine_version and instance_class are compatible',
    )),
    'InvalidLocationConstraint': ErrorHint(ErrorCategory.VALIDATION, 'Invalid bucket location constraint', (
        'Check the region in the resource file',
    )),

    # Transient
    'RequestTimeout': ErrorHint(ErrorCategory.NETWORK, 'Request timed out', (
        'Check network connectivity to the AWS endpoint and run again',
    )),
    'ServiceUnavailable': ErrorHint(ErrorCategory.NETWORK, 'AWS service temporarily unavailable', (
        'Run again in a few minutes; check the AWS Health Dashboard if it persists',
    )),
}


class ErrorHandler:
    """Turns botocore and network exceptions into BootstrapErrors."""

    def handle_exception(self, error: Exception, context: Optional[ErrorContext] = None) -> BootstrapError:
        """Classify an exception.

        Args:
            error: The exception to classify
            context: Resource and operation the error occurred in

        Returns:
            BootstrapError with category and suggestions; a BootstrapError is
            returned unchanged
        """
        if isinstance(error, BootstrapError):
            return error

        context = context or ErrorContext()

        if isinstance(error, ClientError):
            return self._handle_aws_error(error, context)

        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            summary = 'No AWS credentials found' if isinstance(error, NoCredentialsError) \
                else 'Incomplete AWS credentials'
            return CredentialError(
                summary,
                context=context,
                cause=error,
                suggestions=[f'Configure credentials via {source}' for source in CREDENTIAL_SOURCES]
            )

        if isinstance(error, (ConnectionError, TimeoutError)):
            return BootstrapError(
                f'Network error: {error}',
                category=ErrorCategory.NETWORK,
                context=context,
                cause=error,
                suggestions=['Check network connectivity and any proxy settings']
            )

        return BootstrapError(str(error), context=context, cause=error)

    def suggestions_for(self, error: Exception) -> List[str]:
        """Return suggested fixes for an AWS error code, if any are known."""
        hint = AWS_ERROR_HINTS.get(error_code(error))
        return list(hint.suggestions) if hint else []

    def _handle_aws_error(self, error: ClientError, context: ErrorContext) -> BootstrapError:
        code = error_code(error) or 'Unknown'
        context.request_id = error.response.get('ResponseMetadata', {}).get('RequestId')
        context.aws_operation = context.aws_operation or error.operation_name

        logger.debug(f"AWS error {code} from {context.aws_operation} (request {context.request_id})")

        hint = AWS_ERROR_HINTS.get(code)
        if hint is None:
            return BootstrapError(
                f"AWS Error ({code}): {error_message(error)}",
                category=ErrorCategory.AWS,
                context=context,
                cause=error,
                suggestions=[f'Look up {code} in the AWS documentation; request id {context.request_id}']
            )

        return BootstrapError(
            f"{hint.summary}: {error_message(error)}",
            category=hint.category,
            context=context,
            cause=error,
            suggestions=list(hint.suggestions)
        )


error_handler = ErrorHandler()
