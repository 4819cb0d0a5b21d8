"""Orchestrator that runs the reconcilers in a fixed order."""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from cloud_bootstrap.config.models import BootstrapConfig
from cloud_bootstrap.provisioners import (
    BaseReconciler,
    ECRRepositoryReconciler,
    FailurePolicy,
    IAMUserReconciler,
    RDSInstanceReconciler,
    ReconcileResult,
    S3BucketReconciler,
)
from cloud_bootstrap.utils.aws_client import AWSClientManager
from cloud_bootstrap.utils.errors import ProvisioningError
from cloud_bootstrap.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Step:
    """One resource kind in the provisioning order."""
    key: str
    section: str
    action: str


# Buckets, repositories, users, then DB instances
PROVISION_ORDER = (
    Step('s3', 's3_buckets', 'create S3 buckets'),
    Step('ecr', 'ecr_repositories', 'create ECR repositories'),
    Step('iam', 'iam_users', 'create IAM users and policies'),
    Step('rds', 'rds_instances', 'manage RDS instances'),
)


@dataclass
class ProvisionSummary:
    """Aggregated outcome of a provisioning run."""
    results: List[ReconcileResult] = field(default_factory=list)

    @property
    def created(self) -> List[str]:
        return [name for result in self.results for name in result.created]

    @property
    def updated(self) -> List[str]:
        return [name for result in self.results for name in result.updated]

    @property
    def unchanged(self) -> List[str]:
        return [name for result in self.results for name in result.unchanged]

    @property
    def warnings(self) -> List[str]:
        return [warning for result in self.results for warning in result.warnings]


class BootstrapOrchestrator:
    """Provisions every resource kind in a configuration, one after another."""

    def __init__(
        self,
        client_manager: AWSClientManager,
        failure_policy: FailurePolicy = FailurePolicy.CONTINUE_WITH_WARNINGS,
        reconcilers: Optional[Dict[str, BaseReconciler]] = None
    ):
        """Initialize orchestrator.

        Args:
            client_manager: Source of the boto3 clients handed to each reconciler
            failure_policy: Failure policy shared by every reconciler
            reconcilers: Reconcilers by step key ('s3', 'ecr', 'iam', 'rds');
                missing ones are built from ``client_manager`` on first use
        """
        self.client_manager = client_manager
        self.failure_policy = failure_policy
        self._reconcilers: Dict[str, BaseReconciler] = dict(reconcilers or {})

    @classmethod
    def for_region(
        cls,
        region: str,
        profile: Optional[str] = None,
        failure_policy: FailurePolicy = FailurePolicy.CONTINUE_WITH_WARNINGS
    ) -> 'BootstrapOrchestrator':
        """Create an orchestrator for ``region`` after checking credentials resolve.

        Raises:
            CredentialError: If no credentials can be resolved
        """
        client_manager = AWSClientManager(region=region, profile=profile)
        client_manager.ensure_credentials()
        return cls(client_manager, failure_policy)

    def reconciler(self, key: str) -> BaseReconciler:
        """Get the reconciler for a step, building it on first use."""
        if key not in self._reconcilers:
            factories: Dict[str, Callable[[], BaseReconciler]] = {
                's3': lambda: S3BucketReconciler(
                    self.client_manager.get_client('s3'), self.client_manager.region, self.failure_policy
                ),
                'ecr': lambda: ECRRepositoryReconciler(self.client_manager.get_client('ecr'), self.failure_policy),
                'iam': lambda: IAMUserReconciler(self.client_manager.get_client('iam'), self.failure_policy),
                'rds': lambda: RDSInstanceReconciler(self.client_manager.get_client('rds'), self.failure_policy),
            }
            self._reconcilers[key] = factories[key]()
        return self._reconcilers[key]

    def provision(self, config: BootstrapConfig) -> ProvisionSummary:
        """Provision every configured resource.

        Args:
            config: Desired resources

        Returns:
            ProvisionSummary with per-kind results and all warnings

        Raises:
            ProvisioningError: On the first fatal failure; the run stops there
        """
        summary = ProvisionSummary()

        for step in PROVISION_ORDER:
            items = getattr(config, step.section)
            if not items:
                logger.debug(f"No {step.section} configured")
                continue

            try:
                result = self.reconciler(step.key).reconcile(items)
            except ProvisioningError as e:
                raise ProvisioningError(
                    f"failed to {step.action}: {e.message}",
                    category=e.category,
                    context=e.context,
                    cause=e,
                    suggestions=e.suggestions
                ) from e

            summary.results.append(result)

        return summary
