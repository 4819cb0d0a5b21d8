"""Dry-run plan rendering. Makes no AWS calls."""

from dataclasses import dataclass, field
from typing import List

from cloud_bootstrap.config.models import BootstrapConfig

HEADER = "The following resources would be provisioned:"

# Prefix of a top-level resource line
RESOURCE_PREFIX = "  - "


@dataclass
class PlanReport:
    """Human-readable plan, one line per entry."""
    lines: List[str] = field(default_factory=list)

    def render(self) -> str:
        return "\n".join(self.lines)

    @property
    def resource_lines(self) -> List[str]:
        return [line for line in self.lines if line.startswith(RESOURCE_PREFIX)]


def build_plan_report(config: BootstrapConfig) -> PlanReport:
    """Describe what a provisioning run would do for ``config``.

    Resources are grouped by kind with one line each; notable attributes
    follow as indented sub-lines.

    Args:
        config: Loaded configuration

    Returns:
        PlanReport ready to print
    """
    lines = [HEADER]

    if config.s3_buckets:
        lines += ["", "S3 Buckets:"]
        for bucket in config.s3_buckets:
            lines.append(f"{RESOURCE_PREFIX}{bucket.name}")
            if bucket.versioning_enabled:
                lines.append("    - Versioning: enabled")
            if bucket.encryption:
                lines.append(f"    - Encryption: {bucket.encryption}")
            if bucket.cors is not None:
                lines.append("    - CORS configuration would be applied")
            if bucket.policy is not None:
                lines.append("    - Bucket policy would be applied")

    if config.ecr_repositories:
        lines += ["", "ECR Repositories:"]
        for repo in config.ecr_repositories:
            lines.append(f"{RESOURCE_PREFIX}{repo.name}")
            if repo.lifecycle_policy is not None:
                lines.append("    - Lifecycle policy would be applied")

    if config.iam_users:
        lines += ["", "IAM Users:"]
        for user in config.iam_users:
            lines.append(f"{RESOURCE_PREFIX}{user.name}")
            if user.policies:
                lines.append("    Policies:")
                for policy in user.policies:
                    lines.append(f"    - {policy.name}: {policy.description}")

    return PlanReport(lines)
