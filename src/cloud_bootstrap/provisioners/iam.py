"""IAM user reconciler with customer-managed policy upserts."""

from typing import Optional

from cloud_bootstrap.config.models import IAMPolicyConfig, IAMUserConfig
from cloud_bootstrap.utils.errors import error_code
from cloud_bootstrap.utils.logging import get_logger, resource_extra

from .base import AWS_ERRORS, BaseReconciler, ChangeType, ReconcileResult

logger = get_logger(__name__)

USER_NOT_FOUND_CODES = ('NoSuchEntity',)

ALREADY_ATTACHED_CODES = ('EntityAlreadyExists',)


class IAMUserReconciler(BaseReconciler[IAMUserConfig]):
    """Ensures IAM users exist with their policies created and attached.

    Policies are named ``<user>-<policy>`` so two users can reuse a policy
    name. IAM policy documents cannot be edited in place: an existing policy
    is updated by creating a new default version. Old versions are never
    deleted, so a policy updated often enough hits the IAM limit of five
    versions and further updates fail with ``LimitExceeded``.
    """

    resource_type = 'AWS::IAM::User'
    service = 'iam'
    kind = 'IAM user'

    def ensure(self, user: IAMUserConfig, result: ReconcileResult) -> None:
        name = user.name
        logger.info(f"Ensuring IAM user: {name}", extra=resource_extra(self.resource_type, name))

        found = self.lookup(lambda: self.client.get_user(UserName=name), USER_NOT_FOUND_CODES)

        if self.needs_create(name, found, result):
            try:
                self.client.create_user(UserName=name)
            except AWS_ERRORS as e:
                raise self.fatal(name, f"create IAM user {name}", e) from e
            self.success(name, f"Created IAM user: {name}")
            result.record(name, ChangeType.CREATE)
        else:
            self.success(name, f"IAM user {name} already exists")
            result.record(name, ChangeType.NO_CHANGE)

        for policy in user.policies:
            policy_arn = self.upsert_policy(user, policy, result)
            self._attach_policy(name, policy, policy_arn, result)

    def find_local_policy(self, policy_name: str) -> Optional[str]:
        """Find a customer-managed policy by name.

        Args:
            policy_name: Full policy name

        Returns:
            Policy ARN, or None if no local policy has that name
        """
        paginator = self.client.get_paginator('list_policies')
        for page in paginator.paginate(Scope='Local'):
            for policy in page.get('Policies', []):
                if policy['PolicyName'] == policy_name:
                    return policy['Arn']
        return None

    def upsert_policy(self, user: IAMUserConfig, policy: IAMPolicyConfig, result: ReconcileResult) -> str:
        """Create the user's policy, or publish its document as a new default version.

        Args:
            user: Owning user
            policy: Policy configuration
            result: Accumulator for changes

        Returns:
            ARN of the created or updated policy

        Raises:
            ProvisioningError: If listing, creating or updating the policy fails
        """
        full_name = user.full_policy_name(policy)
        document = policy.policy_document
        logger.debug(f"Policy {full_name} document sha256={document.content_hash}")

        try:
            policy_arn = self.find_local_policy(full_name)
        except AWS_ERRORS as e:
            raise self.fatal(full_name, "list IAM policies", e) from e

        if policy_arn:
            logger.info(f"✅ IAM policy {full_name} already exists, updating policy document",
                        extra=resource_extra('AWS::IAM::ManagedPolicy', full_name))
            try:
                self.client.create_policy_version(
                    PolicyArn=policy_arn,
                    PolicyDocument=document.text,
                    SetAsDefault=True
                )
            except AWS_ERRORS as e:
                raise self.fatal(full_name, f"update IAM policy {full_name}", e) from e

            self.success(full_name, f"Updated IAM policy: {full_name}")
            result.record(full_name, ChangeType.UPDATE)
            return policy_arn

        try:
            response = self.client.create_policy(
                PolicyName=full_name,
                Description=policy.description,
                PolicyDocument=document.text
            )
        except AWS_ERRORS as e:
            raise self.fatal(full_name, f"create IAM policy {full_name}", e) from e

        self.success(full_name, f"Created IAM policy: {full_name}")
        result.record(full_name, ChangeType.CREATE)
        return response['Policy']['Arn']

    def _attach_policy(self, user_name: str, policy: IAMPolicyConfig, policy_arn: str,
                       result: ReconcileResult) -> None:
        try:
            self.client.attach_user_policy(UserName=user_name, PolicyArn=policy_arn)
        except AWS_ERRORS as e:
            if error_code(e) in ALREADY_ATTACHED_CODES:
                self.success(user_name, f"Policy {policy.name} already attached to user {user_name}")
                return
            self.warn_or_raise(result, user_name, f"attach policy {policy.name} to user {user_name}", e)
        else:
            self.success(user_name, f"Attached policy {policy.name} to user {user_name}")
