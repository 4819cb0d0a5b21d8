"""Base reconciler interface and shared result types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Collection, Generic, Iterable, List, Optional, TypeVar

from botocore.exceptions import BotoCoreError, ClientError

from cloud_bootstrap.utils.errors import (
    ErrorContext,
    ExistenceCheckError,
    ProvisioningError,
    error_code,
    error_handler,
    error_message,
)
from cloud_bootstrap.utils.logging import get_logger, resource_extra

logger = get_logger(__name__)

T = TypeVar('T')

# Errors raised by botocore for a failed call, as opposed to programming errors
AWS_ERRORS = (ClientError, BotoCoreError)


class FailurePolicy(Enum):
    """How configuration-step failures are treated."""
    ABORT_ON_FIRST_ERROR = "abort-on-first-error"
    CONTINUE_WITH_WARNINGS = "continue-with-warnings"


class ExistenceCheck(Enum):
    """Outcome of looking a resource up by name."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    CHECK_FAILED = "check_failed"


class ChangeType(Enum):
    """Type of change applied to a resource."""
    CREATE = "create"
    UPDATE = "update"
    NO_CHANGE = "no_change"


@dataclass
class Lookup:
    """Result of an existence check."""
    state: ExistenceCheck
    response: Optional[dict] = None
    error: Optional[Exception] = None


@dataclass
class ReconcileResult:
    """What a reconciler did to one resource kind."""
    resource_type: str
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def record(self, name: str, change_type: ChangeType) -> None:
        if change_type == ChangeType.CREATE:
            self.created.append(name)
        elif change_type == ChangeType.UPDATE:
            self.updated.append(name)
        else:
            self.unchanged.append(name)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.updated) + len(self.unchanged)


class BaseReconciler(ABC, Generic[T]):
    """Base class for all resource reconcilers.

    Subclasses implement ``ensure`` for a single resource; ``reconcile``
    walks the configured list in order. The service client is passed in by
    the caller; reconcilers never create their own.
    """

    resource_type = ''
    service = ''
    kind = ''

    def __init__(
        self,
        client: Any,
        failure_policy: FailurePolicy = FailurePolicy.CONTINUE_WITH_WARNINGS
    ):
        """Initialize reconciler.

        Args:
            client: boto3 client for the reconciler's service
            failure_policy: How configuration-step failures are handled
        """
        self.client = client
        self.failure_policy = failure_policy

    @property
    def strict(self) -> bool:
        return self.failure_policy == FailurePolicy.ABORT_ON_FIRST_ERROR

    def reconcile(self, items: Iterable[T]) -> ReconcileResult:
        """Ensure every configured resource, one at a time, in list order.

        Args:
            items: Desired resources of this reconciler's kind

        Returns:
            ReconcileResult for the whole list

        Raises:
            ProvisioningError: On the first fatal failure
        """
        result = ReconcileResult(resource_type=self.resource_type)
        for item in items:
            self.ensure(item, result)
        return result

    @abstractmethod
    def ensure(self, item: T, result: ReconcileResult) -> None:
        """Bring one resource to its desired state.

        Args:
            item: Desired resource configuration
            result: Accumulator for changes and warnings
        """
        pass

    def lookup(self, call: Callable[[], dict], not_found_codes: Collection[str]) -> Lookup:
        """Run an existence query and classify its outcome.

        Args:
            call: Zero-argument callable performing the describe/get request
            not_found_codes: AWS error codes that mean the resource is absent

        Returns:
            Lookup distinguishing found, not found and a failed check
        """
        try:
            return Lookup(ExistenceCheck.FOUND, response=call())
        except AWS_ERRORS as e:
            if error_code(e) in not_found_codes:
                return Lookup(ExistenceCheck.NOT_FOUND, error=e)
            return Lookup(ExistenceCheck.CHECK_FAILED, error=e)

    def needs_create(self, name: str, found: Lookup, result: ReconcileResult) -> bool:
        """Decide whether a lookup outcome calls for a create request.

        A failed check is fatal in strict mode. In tolerant mode it is treated
        as absence, so the create call decides.
        """
        if found.state == ExistenceCheck.FOUND:
            return False
        if found.state == ExistenceCheck.NOT_FOUND:
            return True

        if self.strict:
            raise ExistenceCheckError(
                f"failed to check {self.kind} {name}: {error_message(found.error)}",
                context=self._context(name, 'lookup'),
                cause=found.error,
                suggestions=error_handler.suggestions_for(found.error)
            )

        message = (f"could not determine whether {self.kind} {name} exists "
                   f"({error_message(found.error)}); attempting to create it")
        logger.warning(f"⚠️ Warning: {message}", extra=resource_extra(self.resource_type, name, 'lookup'))
        result.warnings.append(message)
        return True

    def warn_or_raise(self, result: ReconcileResult, name: str, action: str, error: Exception) -> None:
        """Handle a failed configuration step according to the failure policy.

        Args:
            result: Accumulator the warning is recorded in
            name: Resource name
            action: What was attempted, e.g. "enable versioning for bucket logs"
            error: The underlying error
        """
        if self.strict:
            raise self.fatal(name, action, error)

        message = f"failed to {action}: {error_message(error)}"
        logger.warning(f"⚠️ Warning: {message}", extra=resource_extra(self.resource_type, name, action))
        result.warnings.append(message)

    def fatal(self, name: str, action: str, error: Exception) -> ProvisioningError:
        """Build the fatal error for a failed operation on ``name``."""
        return ProvisioningError(
            f"failed to {action}: {error_message(error)}",
            context=self._context(name, action),
            cause=error,
            suggestions=error_handler.suggestions_for(error)
        )

    def success(self, name: str, message: str) -> None:
        logger.info(f"✅ {message}", extra=resource_extra(self.resource_type, name))

    def _context(self, name: str, operation: str) -> ErrorContext:
        return ErrorContext(
            resource_id=name,
            resource_type=self.resource_type,
            operation=operation,
            aws_service=self.service
        )
