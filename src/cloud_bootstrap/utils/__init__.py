"""Utility modules for logging, error handling and AWS client management."""

from cloud_bootstrap.utils.aws_client import (
    AWSClientManager,
    AWSCredentials,
    DEFAULT_REGION,
    check_credentials,
    get_profile_info,
)
from cloud_bootstrap.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    BootstrapError,
    CredentialError,
    ProvisioningError,
    ExistenceCheckError,
    ErrorHandler,
    error_handler
)
from cloud_bootstrap.utils.logging import get_logger, setup_logging

__all__ = [
    # AWS Client
    'AWSClientManager',
    'AWSCredentials',
    'DEFAULT_REGION',
    'check_credentials',
    'get_profile_info',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'BootstrapError',
    'CredentialError',
    'ProvisioningError',
    'ExistenceCheckError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
]
