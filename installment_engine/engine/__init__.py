"""Pure installment lifecycle rules: generation, status, payments, recalculation."""

from installment_engine.engine.generator import generate_installments, split_amount, validate_terms
from installment_engine.engine.payments import clear_payment, record_payment
from installment_engine.engine.recalculation import RecalculationPlan, recalculate
from installment_engine.engine.status import derive_statuses

__all__ = [
    "RecalculationPlan",
    "clear_payment",
    "derive_statuses",
    "generate_installments",
    "recalculate",
    "record_payment",
    "split_amount",
    "validate_terms",
]
