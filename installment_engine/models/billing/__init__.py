"""Billing domain models."""

from installment_engine.models.billing.contract import Contract
from installment_engine.models.billing.enums import ChangeType, InstallmentStatus
from installment_engine.models.billing.installment import Installment

__all__ = [
    "ChangeType",
    "Contract",
    "Installment",
    "InstallmentStatus",
]
