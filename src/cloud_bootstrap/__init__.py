"""Declarative bootstrap of S3, ECR, IAM and RDS resources from YAML."""

__version__ = "0.1.0"
