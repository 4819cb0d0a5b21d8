"""Pydantic models for the resource configuration schema."""

import hashlib
import json
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PolicyDocument(BaseModel):
    """Opaque JSON policy text passed through to AWS unchanged.

    The text is never re-serialized; ``content_hash`` identifies a document
    for idempotence comparisons and ``validate_json`` offers an optional local
    syntax check.
    """

    model_config = ConfigDict(frozen=True)

    text: str

    @model_validator(mode="before")
    @classmethod
    def accept_raw_text(cls, data: Any) -> Any:
        """Allow a bare string wherever a policy document is expected."""
        if isinstance(data, str):
            return {"text": data}
        return data

    @property
    def content_hash(self) -> str:
        """SHA-256 hex digest of the document text."""
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()

    def validate_json(self) -> Any:
        """Parse the document locally.

        Returns:
            The parsed JSON value

        Raises:
            ValueError: If the text is not valid JSON
        """
        return json.loads(self.text)

    def __str__(self) -> str:
        return self.text


def _blank_to_none(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


class CORSConfig(BaseModel):
    """CORS rule for an S3 bucket."""

    allowed_origins: List[str] = Field(default_factory=list)
    allowed_methods: List[str] = Field(default_factory=list)
    allowed_headers: List[str] = Field(default_factory=list)
    expose_headers: List[str] = Field(default_factory=list)
    max_age_seconds: int = 0


class S3BucketConfig(BaseModel):
    """S3 bucket configuration."""

    name: str
    versioning: str = ""
    encryption: str = ""
    cors: Optional[CORSConfig] = None
    policy: Optional[PolicyDocument] = None

    @field_validator("policy", mode="before")
    @classmethod
    def blank_policy(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @property
    def versioning_enabled(self) -> bool:
        return self.versioning == "enabled"


class ECRRepositoryConfig(BaseModel):
    """ECR repository configuration."""

    name: str
    lifecycle_policy: Optional[PolicyDocument] = None

    @field_validator("lifecycle_policy", mode="before")
    @classmethod
    def blank_lifecycle_policy(cls, v: Any) -> Any:
        return _blank_to_none(v)


class IAMPolicyConfig(BaseModel):
    """Customer-managed policy attached to an IAM user."""

    name: str
    description: str = ""
    policy_document: PolicyDocument


class IAMUserConfig(BaseModel):
    """IAM user configuration."""

    name: str
    policies: List[IAMPolicyConfig] = Field(default_factory=list)

    @field_validator("policies", mode="before")
    @classmethod
    def null_policies(cls, v: Any) -> Any:
        return [] if v is None else v

    def full_policy_name(self, policy: IAMPolicyConfig) -> str:
        """Account-wide policy name, namespaced by the owning user."""
        return f"{self.name}-{policy.name}"


class RDSInstanceConfig(BaseModel):
    """RDS DB instance configuration.

    ``master_password`` is held and sent to AWS in plain text.
    """

    identifier: str
    engine: str
    engine_version: str = ""
    instance_class: str
    storage_type: str = ""
    allocated_storage: int
    db_name: str
    master_username: str = ""
    master_password: str = Field("", repr=False)
    publicly_accessible: bool = False
    backup_retention_period: int = 0
    multi_az: bool = False
    skip_final_snapshot: bool = False


class BootstrapConfig(BaseModel):
    """Root of the resource configuration document."""

    region: str
    s3_buckets: List[S3BucketConfig] = Field(default_factory=list)
    ecr_repositories: List[ECRRepositoryConfig] = Field(default_factory=list)
    iam_users: List[IAMUserConfig] = Field(default_factory=list)
    rds_instances: List[RDSInstanceConfig] = Field(default_factory=list)

    @field_validator("s3_buckets", "ecr_repositories", "iam_users", "rds_instances", mode="before")
    @classmethod
    def null_section(cls, v: Any) -> Any:
        """An empty YAML section (``key:`` with no items) means no resources."""
        return [] if v is None else v

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("region must not be empty")
        return v
