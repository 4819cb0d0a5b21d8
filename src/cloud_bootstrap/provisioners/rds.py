"""RDS DB instance reconciler."""

from typing import Any, Dict

from cloud_bootstrap.config.models import RDSInstanceConfig
from cloud_bootstrap.utils.logging import get_logger, resource_extra

from .base import AWS_ERRORS, BaseReconciler, ChangeType, ExistenceCheck, ReconcileResult

logger = get_logger(__name__)

DB_NOT_FOUND_CODES = ('DBInstanceNotFound', 'DBInstanceNotFoundFault')

AVAILABLE_STATUS = 'available'


class RDSInstanceReconciler(BaseReconciler[RDSInstanceConfig]):
    """Creates RDS instances and grows or shrinks their allocated storage.

    Unlike the other reconcilers, only the specific not-found error counts as
    absence; any other describe failure is fatal. A failed create ends the
    run, so later instances in the list are not attempted.
    """

    resource_type = 'AWS::RDS::DBInstance'
    service = 'rds'
    kind = 'RDS instance'

    def ensure(self, instance: RDSInstanceConfig, result: ReconcileResult) -> None:
        identifier = instance.identifier
        logger.info(f"Ensuring RDS instance: {identifier}", extra=resource_extra(self.resource_type, identifier))

        found = self.lookup(
            lambda: self.client.describe_db_instances(DBInstanceIdentifier=identifier),
            DB_NOT_FOUND_CODES
        )

        if found.state == ExistenceCheck.CHECK_FAILED:
            raise self.fatal(identifier, f"check RDS instance {identifier}", found.error) from found.error

        if found.state == ExistenceCheck.NOT_FOUND:
            self._create_instance(instance)
            result.record(identifier, ChangeType.CREATE)
            return

        db_instances = found.response.get('DBInstances', [])
        if not db_instances:
            logger.debug(f"Describe returned no instances for {identifier}")
            result.record(identifier, ChangeType.NO_CHANGE)
            return

        result.record(identifier, self._reconcile_existing(instance, db_instances[0], result))

    def _create_instance(self, instance: RDSInstanceConfig) -> None:
        identifier = instance.identifier
        logger.info(f"Creating new RDS instance: {identifier}", extra=resource_extra(self.resource_type, identifier))

        try:
            self.client.create_db_instance(**self.build_create_params(instance))
        except AWS_ERRORS as e:
            raise self.fatal(identifier, f"create RDS instance {identifier}", e) from e

        self.success(identifier, f"Created RDS instance: {identifier}")

    def _reconcile_existing(self, instance: RDSInstanceConfig, existing: Dict[str, Any],
                            result: ReconcileResult) -> ChangeType:
        """Apply the storage size and report class/version drift.

        Returns:
            UPDATE if a storage modification was started, NO_CHANGE otherwise
        """
        identifier = instance.identifier
        change = ChangeType.NO_CHANGE
        current_storage = existing.get('AllocatedStorage') or 0

        if current_storage != instance.allocated_storage:
            logger.info(
                f"Modifying storage size for RDS instance {identifier} from {current_storage} GB "
                f"to {instance.allocated_storage} GB",
                extra=resource_extra(self.resource_type, identifier, 'modify')
            )

            status = existing.get('DBInstanceStatus') or ''
            if status != AVAILABLE_STATUS:
                message = (f"Cannot modify RDS instance {identifier} because it is in {status} state. "
                           f"Must be '{AVAILABLE_STATUS}'.")
                logger.warning(f"⚠️ Warning: {message}", extra=resource_extra(self.resource_type, identifier))
                result.warnings.append(message)
                return change

            try:
                self.client.modify_db_instance(
                    DBInstanceIdentifier=identifier,
                    AllocatedStorage=instance.allocated_storage,
                    ApplyImmediately=True
                )
            except AWS_ERRORS as e:
                self.warn_or_raise(result, identifier, f"modify storage for RDS instance {identifier}", e)
            else:
                self.success(identifier, f"Modified storage for RDS instance {identifier} "
                                         f"to {instance.allocated_storage} GB")
                logger.info("   Note: Storage modification is in progress and may take several minutes to complete")
                change = ChangeType.UPDATE
        else:
            self.success(identifier, f"RDS instance {identifier} already exists with correct storage size "
                                     f"({current_storage} GB)")

        current_class = existing.get('DBInstanceClass') or ''
        if current_class and current_class != instance.instance_class:
            logger.info(f"Instance class change detected ({current_class} -> {instance.instance_class}), "
                        f"but not implemented in this version")

        current_version = existing.get('EngineVersion') or ''
        if instance.engine_version and current_version and current_version != instance.engine_version:
            logger.info(f"Engine version change detected ({current_version} -> {instance.engine_version}), "
                        f"but not implemented in this version")

        return change

    @staticmethod
    def build_create_params(instance: RDSInstanceConfig) -> Dict[str, Any]:
        """Build CreateDBInstance parameters.

        Required fields are always present. Optional strings, counts and flags
        are sent only when non-empty, non-zero or true. ``skip_final_snapshot``
        only matters when deleting an instance and is not sent.

        Args:
            instance: RDS instance configuration

        Returns:
            Keyword arguments for ``create_db_instance``
        """
        params: Dict[str, Any] = {
            'DBInstanceIdentifier': instance.identifier,
            'Engine': instance.engine,
            'DBInstanceClass': instance.instance_class,
            'AllocatedStorage': instance.allocated_storage,
            'DBName': instance.db_name,
        }

        if instance.engine_version:
            params['EngineVersion'] = instance.engine_version
        if instance.storage_type:
            params['StorageType'] = instance.storage_type
        if instance.master_username:
            params['MasterUsername'] = instance.master_username
        if instance.master_password:
            params['MasterUserPassword'] = instance.master_password
        if instance.publicly_accessible:
            params['PubliclyAccessible'] = instance.publicly_accessible
        if instance.backup_retention_period > 0:
            params['BackupRetentionPeriod'] = instance.backup_retention_period
        if instance.multi_az:
            params['MultiAZ'] = instance.multi_az

        return params
