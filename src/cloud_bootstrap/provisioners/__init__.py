"""Reconcilers that ensure each AWS resource kind."""

from .base import (
    BaseReconciler,
    ChangeType,
    ExistenceCheck,
    FailurePolicy,
    Lookup,
    ReconcileResult,
)
from .s3 import S3BucketReconciler
from .ecr import ECRRepositoryReconciler
from .iam import IAMUserReconciler
from .rds import RDSInstanceReconciler

__all__ = [
    'BaseReconciler',
    'ChangeType',
    'ExistenceCheck',
    'FailurePolicy',
    'Lookup',
    'ReconcileResult',
    'S3BucketReconciler',
    'ECRRepositoryReconciler',
    'IAMUserReconciler',
    'RDSInstanceReconciler',
]
