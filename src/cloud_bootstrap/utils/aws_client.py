"""AWS client management and credential checks."""

import os
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from typing import Optional, Dict, Any
from dataclasses import dataclass
from cloud_bootstrap.utils.errors import CREDENTIAL_SOURCES, CredentialError, error_handler, error_message
from cloud_bootstrap.utils.logging import get_logger

logger = get_logger(__name__)

# S3 CreateBucket rejects an explicit location constraint in this region
DEFAULT_REGION = 'us-east-1'

MAX_ATTEMPTS = 3


@dataclass
class AWSCredentials:
    """AWS credential information."""
    account_id: str
    user_arn: str
    user_id: str
    region: str
    profile: Optional[str] = None


def get_profile_info() -> str:
    """Describe the AWS profile and region selected by the environment.

    Returns:
        A one-line summary such as ``AWS Profile: default, Region: us-east-1``
    """
    profile = os.environ.get('AWS_PROFILE') or 'default'
    region = os.environ.get('AWS_REGION') or os.environ.get('AWS_DEFAULT_REGION') or 'unknown'
    return f"AWS Profile: {profile}, Region: {region}"


def credential_guidance() -> str:
    """Format the list of credential sources searched by the SDK."""
    lines = [f"  - {source}" for source in CREDENTIAL_SOURCES]
    return "Credentials can be configured via:\n" + "\n".join(lines)


class AWSClientManager:
    """Manages a boto3 session and one cached client per service."""

    def __init__(
        self,
        region: str,
        profile: Optional[str] = None,
        max_attempts: int = MAX_ATTEMPTS
    ):
        """Initialize AWS client manager.

        Args:
            region: AWS region every client is bound to
            profile: AWS profile name to use (falls back to the default chain)
            max_attempts: Total attempts per API call, including the first
        """
        self.region = region
        self.profile = profile
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._credentials: Optional[AWSCredentials] = None

        # Retries are left entirely to botocore's standard mode
        self._boto_config = Config(
            region_name=region,
            retries={
                'mode': 'standard',
                'max_attempts': max_attempts
            }
        )

    @property
    def session(self) -> boto3.Session:
        """Get or create boto3 session.

        Returns:
            Configured boto3 session
        """
        if self._session is None:
            kwargs = {'region_name': self.region}
            if self.profile:
                kwargs['profile_name'] = self.profile

            self._session = boto3.Session(**kwargs)
            logger.debug(f"Created AWS session - Region: {self._session.region_name}, "
                         f"Profile: {self.profile or 'default'}")

        return self._session

    def get_client(self, service_name: str):
        """Get boto3 client for a service.

        Args:
            service_name: AWS service name (e.g., 's3', 'iam')

        Returns:
            Boto3 client for the service
        """
        if service_name not in self._clients:
            self._clients[service_name] = self.session.client(service_name, config=self._boto_config)
            logger.debug(f"Created {service_name} client")

        return self._clients[service_name]

    def ensure_credentials(self) -> None:
        """Check that credentials resolve locally, without calling AWS.

        Raises:
            CredentialError: If the credential chain yields nothing or fails
        """
        try:
            credentials = self.session.get_credentials()
        except BotoCoreError as e:
            raise CredentialError(
                f"failed to retrieve AWS credentials: {e}\n\n{credential_guidance()}",
                cause=e
            ) from e

        if credentials is None:
            raise CredentialError(
                f"failed to retrieve AWS credentials: no credentials found\n\n{credential_guidance()}"
            )

    def validate_credentials(self) -> AWSCredentials:
        """Validate AWS credentials with STS and return the caller identity.

        Returns:
            AWSCredentials object with account and user information

        Raises:
            CredentialError: If credentials cannot be resolved or are rejected
        """
        if self._credentials is not None:
            return self._credentials

        try:
            sts = self.get_client('sts')
            identity = sts.get_caller_identity()
        except (BotoCoreError, ClientError) as e:
            handled = error_handler.handle_exception(e)
            raise CredentialError(
                f"failed to validate AWS credentials: {error_message(e)}\n\n{credential_guidance()}",
                cause=e,
                suggestions=handled.suggestions
            ) from e

        self._credentials = AWSCredentials(
            account_id=identity['Account'],
            user_arn=identity['Arn'],
            user_id=identity['UserId'],
            region=self.region,
            profile=self.profile
        )

        logger.info(f"AWS credentials validated - Account: {self._credentials.account_id}, "
                    f"User: {self._credentials.user_arn}, Region: {self._credentials.region}")

        return self._credentials

    def clear_cache(self):
        """Clear cached clients, session and identity."""
        self._clients.clear()
        self._session = None
        self._credentials = None
        logger.debug("Cleared AWS client cache")


def check_credentials(region: str, profile: Optional[str] = None) -> str:
    """Verify that usable credentials exist for ``region``.

    Args:
        region: Target AWS region
        profile: Optional AWS profile name

    Returns:
        ARN of the authenticated principal

    Raises:
        CredentialError: If credentials cannot be resolved or verified
    """
    return AWSClientManager(region=region, profile=profile).validate_credentials().user_arn
