"""Custom exception hierarchy for the installment engine."""


class InstallmentEngineError(Exception):
    """Base exception for all installment engine errors."""


class ContractValidationError(InstallmentEngineError):
    """Raised when contract terms cannot produce an installment plan."""


class DownPaymentExceedsTotalError(ContractValidationError):
    """Raised when the down payment is greater than the contract total."""


class DueDateInPastError(ContractValidationError):
    """Raised when the first due date is earlier than today."""


class InvalidInstallmentCountError(ContractValidationError):
    """Raised when the installment count is zero or negative."""


class NothingToInstallError(ContractValidationError):
    """Raised when nothing remains to be split after the down payment."""


class EntityNotFoundError(InstallmentEngineError):
    """Raised when a referenced entity does not exist."""


class InstallmentNotFoundError(EntityNotFoundError):
    """Raised when an installment id is unknown to the store."""


class PersistenceError(InstallmentEngineError):
    """Raised when the persistence collaborator fails."""


class ConfigurationError(InstallmentEngineError):
    """Raised when configuration is invalid or missing."""


class SinkError(InstallmentEngineError):
    """Raised when a sink operation fails."""
