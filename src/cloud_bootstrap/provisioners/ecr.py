"""ECR repository reconciler."""

from cloud_bootstrap.config.models import ECRRepositoryConfig
from cloud_bootstrap.utils.logging import get_logger, resource_extra

from .base import AWS_ERRORS, BaseReconciler, ChangeType, ReconcileResult

logger = get_logger(__name__)

REPOSITORY_NOT_FOUND_CODES = ('RepositoryNotFoundException',)


class ECRRepositoryReconciler(BaseReconciler[ECRRepositoryConfig]):
    """Ensures ECR repositories exist and applies their lifecycle policy."""

    resource_type = 'AWS::ECR::Repository'
    service = 'ecr'
    kind = 'ECR repository'

    def ensure(self, repo: ECRRepositoryConfig, result: ReconcileResult) -> None:
        name = repo.name
        logger.info(f"Ensuring ECR repository: {name}", extra=resource_extra(self.resource_type, name))

        found = self.lookup(
            lambda: self.client.describe_repositories(repositoryNames=[name]),
            REPOSITORY_NOT_FOUND_CODES
        )

        if self.needs_create(name, found, result):
            try:
                self.client.create_repository(repositoryName=name)
            except AWS_ERRORS as e:
                raise self.fatal(name, f"create ECR repository {name}", e) from e
            self.success(name, f"Created ECR repository: {name}")
            result.record(name, ChangeType.CREATE)
        else:
            self.success(name, f"ECR repository {name} already exists")
            result.record(name, ChangeType.NO_CHANGE)

        if repo.lifecycle_policy is not None:
            try:
                self.client.put_lifecycle_policy(
                    repositoryName=name,
                    lifecyclePolicyText=repo.lifecycle_policy.text
                )
            except AWS_ERRORS as e:
                self.warn_or_raise(result, name, f"set lifecycle policy for ECR repository {name}", e)
            else:
                self.success(name, f"Set lifecycle policy for ECR repository: {name}")
