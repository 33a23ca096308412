"""Enumeration types for billing domain entities."""

from enum import Enum


class InstallmentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    LATE = "LATE"


class ChangeType(str, Enum):
    GENERATED = "installments.generated"
    RECALCULATED = "installments.recalculated"
    PAID = "installment.paid"
    CLEARED = "installment.cleared"
    STATUS_UPDATED = "installments.status_updated"
    DELETED = "installments.deleted"
