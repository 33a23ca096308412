"""Installment models for billing domain."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from installment_engine.models.billing.enums import InstallmentStatus


@dataclass
class Installment:
    """Scheduled payment obligation of a contract (parcela)."""

    installment_id: str
    contract_id: str
    client_id: str
    client_name: str  # Denormalized for display
    sequence_number: int  # 1, 2, 3, ...
    due_date: date
    amount: Decimal
    payment_date: date | None = None
    paid_amount: Decimal | None = None
    days_late: int = 0
    status: InstallmentStatus = InstallmentStatus.PENDING
    note: str | None = None
    created_at: datetime | None = None  # Record creation timestamp
    updated_at: datetime | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID

    @property
    def is_open(self) -> bool:
        """True while the installment still awaits payment."""
        return self.status != InstallmentStatus.PAID
