"""Configuration management for cloud-bootstrap."""

from .models import (
    BootstrapConfig,
    CORSConfig,
    ECRRepositoryConfig,
    IAMPolicyConfig,
    IAMUserConfig,
    PolicyDocument,
    RDSInstanceConfig,
    S3BucketConfig,
)
from .parser import DEFAULT_CONFIG_FILE, ConfigValidationError, load_config, parse_config

__all__ = [
    "BootstrapConfig",
    "CORSConfig",
    "ECRRepositoryConfig",
    "IAMPolicyConfig",
    "IAMUserConfig",
    "PolicyDocument",
    "RDSInstanceConfig",
    "S3BucketConfig",
    "DEFAULT_CONFIG_FILE",
    "ConfigValidationError",
    "load_config",
    "parse_config",
]
