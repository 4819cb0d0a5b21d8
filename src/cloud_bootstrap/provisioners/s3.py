"""S3 bucket reconciler."""

from typing import Any, Dict, List

from cloud_bootstrap.config.models import CORSConfig, S3BucketConfig
from cloud_bootstrap.utils.aws_client import DEFAULT_REGION
from cloud_bootstrap.utils.logging import get_logger, resource_extra

from .base import AWS_ERRORS, BaseReconciler, ChangeType, FailurePolicy, ReconcileResult

logger = get_logger(__name__)

# HeadBucket has no body, so absence only shows up as a bare status code
BUCKET_NOT_FOUND_CODES = ('404', 'NoSuchBucket', 'NotFound')

SSE_ALGORITHM = 'AES256'


class S3BucketReconciler(BaseReconciler[S3BucketConfig]):
    """Ensures S3 buckets exist and applies versioning, encryption, CORS and policy."""

    resource_type = 'AWS::S3::Bucket'
    service = 's3'
    kind = 'bucket'

    def __init__(
        self,
        s3_client: Any,
        region: str,
        failure_policy: FailurePolicy = FailurePolicy.CONTINUE_WITH_WARNINGS
    ):
        """Initialize S3 bucket reconciler.

        Args:
            s3_client: boto3 S3 client
            region: Region buckets are created in
            failure_policy: How configuration-step failures are handled
        """
        super().__init__(s3_client, failure_policy)
        self.region = region

    def ensure(self, bucket: S3BucketConfig, result: ReconcileResult) -> None:
        """Create the bucket if needed, then apply its configuration.

        Only a failed create is fatal in tolerant mode; every configuration
        step afterwards logs a warning and moves on.
        """
        name = bucket.name
        logger.info(f"Ensuring S3 bucket: {name}", extra=resource_extra(self.resource_type, name))

        found = self.lookup(lambda: self.client.head_bucket(Bucket=name), BUCKET_NOT_FOUND_CODES)

        if self.needs_create(name, found, result):
            self._create_bucket(name)
            result.record(name, ChangeType.CREATE)
        else:
            self.success(name, f"Bucket {name} already exists")
            result.record(name, ChangeType.NO_CHANGE)

        if bucket.versioning_enabled:
            self._enable_versioning(name, result)

        if bucket.encryption:
            self._configure_encryption(name, bucket.encryption, result)

        if bucket.cors is not None:
            self._configure_cors(name, bucket.cors, result)

        if bucket.policy is not None:
            self._apply_policy(name, bucket.policy.text, result)

    def _create_bucket(self, name: str) -> None:
        create_params: Dict[str, Any] = {'Bucket': name}

        # us-east-1 rejects an explicit location constraint
        if self.region != DEFAULT_REGION:
            create_params['CreateBucketConfiguration'] = {
                'LocationConstraint': self.region
            }

        try:
            self.client.create_bucket(**create_params)
        except AWS_ERRORS as e:
            raise self.fatal(name, f"create bucket {name}", e) from e

        self.success(name, f"Created bucket: {name}")

    def _enable_versioning(self, name: str, result: ReconcileResult) -> None:
        try:
            self.client.put_bucket_versioning(
                Bucket=name,
                VersioningConfiguration={'Status': 'Enabled'}
            )
        except AWS_ERRORS as e:
            self.warn_or_raise(result, name, f"enable versioning for bucket {name}", e)
        else:
            self.success(name, f"Enabled versioning for bucket: {name}")

    def _configure_encryption(self, name: str, algorithm: str, result: ReconcileResult) -> None:
        if algorithm != SSE_ALGORITHM:
            logger.warning(
                f"⚠️ Warning: encryption algorithm {algorithm!r} is not supported for bucket {name}, "
                f"applying {SSE_ALGORITHM}",
                extra=resource_extra(self.resource_type, name)
            )

        try:
            self.client.put_bucket_encryption(
                Bucket=name,
                ServerSideEncryptionConfiguration=self.build_encryption_config()
            )
        except AWS_ERRORS as e:
            self.warn_or_raise(result, name, f"configure encryption for bucket {name}", e)
        else:
            self.success(name, f"Configured encryption for bucket: {name}")

    def _configure_cors(self, name: str, cors: CORSConfig, result: ReconcileResult) -> None:
        try:
            self.client.put_bucket_cors(
                Bucket=name,
                CORSConfiguration={'CORSRules': [self.build_cors_rule(cors)]}
            )
        except AWS_ERRORS as e:
            self.warn_or_raise(result, name, f"configure CORS for bucket {name}", e)
        else:
            self.success(name, f"Configured CORS for bucket: {name}")

    def _apply_policy(self, name: str, policy: str, result: ReconcileResult) -> None:
        try:
            self.client.put_bucket_policy(Bucket=name, Policy=policy)
        except AWS_ERRORS as e:
            self.warn_or_raise(result, name, f"set policy for bucket {name}", e)
        else:
            self.success(name, f"Set policy for bucket: {name}")

    @staticmethod
    def build_encryption_config() -> Dict[str, Any]:
        """Build the default server-side encryption configuration.

        Returns:
            ServerSideEncryptionConfiguration for PutBucketEncryption
        """
        return {
            'Rules': [
                {
                    'ApplyServerSideEncryptionByDefault': {
                        'SSEAlgorithm': SSE_ALGORITHM
                    }
                }
            ]
        }

    @staticmethod
    def build_cors_rule(cors: CORSConfig) -> Dict[str, Any]:
        """Build the single CORS rule for a bucket.

        Methods are upper-cased; every other value is passed through as given.

        Args:
            cors: CORS configuration from the resource file

        Returns:
            CORSRule for PutBucketCors
        """
        return {
            'AllowedOrigins': list(cors.allowed_origins),
            'AllowedMethods': upper_methods(cors.allowed_methods),
            'AllowedHeaders': list(cors.allowed_headers),
            'ExposeHeaders': list(cors.expose_headers),
            'MaxAgeSeconds': cors.max_age_seconds,
        }


def upper_methods(methods: List[str]) -> List[str]:
    return [method.upper() for method in methods]
