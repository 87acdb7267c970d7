"""
Custom domain exceptions for the moderation backend.

These exceptions are raised by the service layer and converted to HTTP
responses by the centralized exception handlers in main.py, so services stay
usable outside of a request (CLI tools, background jobs, tests).

Every exception carries a correlation ID for Sentry and user error reports.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is absent or already deleted."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when the actor lacks the role or ownership for an operation."""

    pass


class ValidationException(DomainException):
    """Raised when input is malformed or incomplete."""

    pass


class ConflictException(DomainException):
    """Raised when an operation conflicts with existing data."""

    pass


class AuthenticationException(DomainException):
    """Raised when the bearer token cannot be verified."""

    pass


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    pass


class TransientException(DomainException):
    """
    Raised when the store or the audit trail timed out or is unavailable.

    The only retryable class of error. The core never retries by itself.
    """

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """Actor role is not allowed to perform the operation."""

    pass


class StoreUnavailableException(TransientException):
    """Database timed out or refused the connection."""

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message)


class ConcurrentModificationException(ConflictException):
    """Record was changed by someone else between read and write."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"{resource} {resource_id} was modified concurrently, reload and retry"
        )
        self.resource_id = resource_id


# ============================================================================
# Content Report Exceptions
# ============================================================================


class InvalidReportTargetException(ValidationException):
    """Report does not name exactly one post or comment."""

    def __init__(
        self,
        message: str = "Exactly one of content_post_id or content_comment_id must be provided",
    ):
        super().__init__(message)


class DuplicateReportException(ConflictException):
    """Reporter already has an active report on this content."""

    def __init__(self, message: str = "You have already reported this content"):
        super().__init__(message)


class ReportNotFoundException(NotFoundException):
    """Report does not exist or is not visible."""

    def __init__(self, report_id: str):
        super().__init__(f"Report with ID {report_id} not found")
        self.report_id = report_id


class ReportAlreadyDeletedException(ReportNotFoundException):
    """Report was soft-deleted before this call."""

    def __init__(self, report_id: str):
        super().__init__(report_id)
        self.message = f"Report with ID {report_id} is already deleted"
        self.args = (self.message,)


# ============================================================================
# Appeal Exceptions
# ============================================================================


class MissingAppealCauseException(ValidationException):
    """Appeal references neither a moderation action nor a report."""

    def __init__(
        self,
        message: str = "An appeal must reference a moderation action, a report, or both",
    ):
        super().__init__(message)


class DuplicateAppealException(ConflictException):
    """Appellant already has an active appeal against the same cause."""

    def __init__(self, message: str = "An appeal already exists for this cause"):
        super().__init__(message)


class AppealNotFoundException(NotFoundException):
    """Appeal does not exist or is not visible."""

    def __init__(self, appeal_id: str):
        super().__init__(f"Appeal with ID {appeal_id} not found")
        self.appeal_id = appeal_id


class AppealAlreadyRetiredException(AppealNotFoundException):
    """Appeal was already withdrawn by its appellant."""

    def __init__(self, appeal_id: str):
        super().__init__(appeal_id)
        self.message = f"Appeal with ID {appeal_id} is already withdrawn"
        self.args = (self.message,)


class AppealLockedException(PermissionDeniedException):
    """Appellant tried to edit an appeal that is no longer pending."""

    def __init__(
        self, message: str = "Appeals can only be edited while they are pending"
    ):
        super().__init__(message)


class NonDeletableStatusException(BusinessRuleException):
    """Administrator tried to erase an appeal outside the deletable statuses."""

    def __init__(self, appeal_id: str, status: str):
        super().__init__(
            f"Appeal {appeal_id} cannot be deleted while its status is '{status}'"
        )
        self.appeal_id = appeal_id
        self.status = status


# ============================================================================
# Audit Trail Exceptions
# ============================================================================


class AuditTrailUnavailableException(TransientException):
    """Audit entry could not be written."""

    def __init__(self, message: str = "Audit trail is temporarily unavailable"):
        super().__init__(message)
