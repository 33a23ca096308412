"""Contract models for billing domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from installment_engine.dates import as_date, shift_months


@dataclass(frozen=True)
class Contract:
    """Contract terms used to build an installment plan.

    Values are not validated on construction; the generator and the
    recalculation engine reject inconsistent terms with a specific error.
    """

    contract_id: str
    client_id: str
    client_name: str
    total_value: Decimal
    down_payment: Decimal
    installment_count: int
    first_due_date: date
    contract_number: str = ""

    @property
    def financed_amount(self) -> Decimal:
        """Amount left to split into installments after the down payment."""
        return _money(self.total_value) - _money(self.down_payment)

    @property
    def anchor_day(self) -> int:
        """Day of month every installment is due on (clamped per month)."""
        return self.first_due_date.day

    @classmethod
    def from_purchase(
        cls,
        *,
        contract_id: str,
        client_id: str,
        client_name: str,
        total_value: Decimal,
        down_payment: Decimal,
        installment_count: int,
        purchase_date: date,
        due_day: int,
        contract_number: str = "",
    ) -> Contract:
        """Build a contract from a purchase date and a fixed due day.

        Older contracts only recorded the purchase date and the day of the
        month installments fall on. The first installment is due on
        ``due_day`` of the month after the purchase.

        Parameters
        ----------
        purchase_date : date
            Date the contract was signed.
        due_day : int
            Day of month (1-31) installments are due.

        Returns
        -------
        Contract
            Contract with ``first_due_date`` derived from the purchase terms.
        """
        if not 1 <= due_day <= 31:
            raise ValueError(f"due_day must be between 1 and 31, got {due_day}")

        first_due_date = shift_months(as_date(purchase_date), 1, anchor_day=due_day)
        return cls(
            contract_id=contract_id,
            client_id=client_id,
            client_name=client_name,
            total_value=total_value,
            down_payment=down_payment,
            installment_count=installment_count,
            first_due_date=first_due_date,
            contract_number=contract_number,
        )


def _money(value: Decimal | int | float | str) -> Decimal:
    # str() first so floats keep their shortest repr, not binary noise
    return value if isinstance(value, Decimal) else Decimal(str(value))
