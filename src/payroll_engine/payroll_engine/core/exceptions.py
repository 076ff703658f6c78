class DomainError(Exception):
    """Base exception for payroll business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid; caller-fixable, never retried."""


class InvalidPeriod(ValidationError):
    """Raised when year/month fall outside the accepted range."""


class NotFoundError(DomainError):
    """Raised when a required record does not exist."""


class NoWorkRecords(NotFoundError):
    """No work records contributed to the requested period."""


class RateNotFound(NotFoundError):
    """No rate set is effective for the employment type at the given date."""


class SnapshotNotFound(NotFoundError):
    """No snapshot exists for the (user, year, month) key."""


class SalarySettingNotFound(NotFoundError):
    """The worker has no effective pay setting."""


class ConflictError(DomainError):
    """Raised when the current state forbids the requested change."""


class InvalidTransition(ConflictError):
    """Snapshot status does not allow the requested transition."""


class DuplicateSnapshot(ConflictError):
    """A snapshot already exists for the key (resolved inside the store)."""


class ComputationError(DomainError):
    """An arithmetic precondition was violated (e.g. negative hours)."""


class OperationCancelled(DomainError):
    """The caller's deadline passed or the operation was cancelled."""
