"""Installment plan generation from contract terms."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import ROUND_DOWN, Decimal
from typing import Iterator

from installment_engine.dates import as_date, shift_months
from installment_engine.exceptions import (
    DownPaymentExceedsTotalError,
    DueDateInPastError,
    InvalidInstallmentCountError,
    NothingToInstallError,
)
from installment_engine.models.billing import Contract, Installment, InstallmentStatus

CENTS = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert a monetary value to ``Decimal`` without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_terms(contract: Contract, today: date | None = None) -> None:
    """Reject contract terms that cannot produce an installment plan.

    Checks run in a fixed order and the first failure wins. The due date
    check is skipped when ``today`` is None.

    Raises
    ------
    DownPaymentExceedsTotalError
        Down payment greater than the contract total.
    DueDateInPastError
        First due date earlier than ``today``.
    InvalidInstallmentCountError
        Installment count of zero or less.
    NothingToInstallError
        Nothing left to split after the down payment.
    """
    total = to_decimal(contract.total_value)
    down_payment = to_decimal(contract.down_payment)

    if down_payment > total:
        raise DownPaymentExceedsTotalError(
            f"Down payment {down_payment} exceeds contract total {total}"
        )
    if today is not None and as_date(contract.first_due_date) < as_date(today):
        raise DueDateInPastError(
            f"First due date {as_date(contract.first_due_date)} is before {as_date(today)}"
        )
    if contract.installment_count <= 0:
        raise InvalidInstallmentCountError(
            f"Installment count must be positive, got {contract.installment_count}"
        )
    if total - down_payment <= 0:
        raise NothingToInstallError(
            f"Nothing to install: total {total}, down payment {down_payment}"
        )


def split_amount(financed: Decimal, count: int) -> tuple[Decimal, Decimal]:
    """Split a financed amount into equal parts truncated to cents.

    Returns
    -------
    tuple[Decimal, Decimal]
        ``(regular, last)``. Every installment but the last of the plan is
        ``regular``; the last absorbs the leftover cents so the plan sums
        exactly to ``financed``. Truncating keeps ``last >= regular >= 0``.
    """
    regular = (financed / count).quantize(CENTS, rounding=ROUND_DOWN)
    last = financed - regular * (count - 1)
    return regular, last


def iter_installments(
    contract: Contract,
    first_sequence: int,
    count: int,
    now: datetime | None = None,
) -> Iterator[Installment]:
    """Yield ``count`` pending installments starting at ``first_sequence``.

    Due dates are computed from the contract's first due date, so
    installment ``n`` always falls ``n - 1`` months after it on the anchor
    day, clamped to the month's last day.
    """
    if now is None:
        now = datetime.now()

    first_due_date = as_date(contract.first_due_date)
    anchor_day = first_due_date.day
    regular, last = split_amount(contract.financed_amount, contract.installment_count)

    for sequence_number in range(first_sequence, first_sequence + count):
        yield Installment(
            installment_id=uuid.uuid4().hex,
            contract_id=contract.contract_id,
            client_id=contract.client_id,
            client_name=contract.client_name,
            sequence_number=sequence_number,
            due_date=shift_months(first_due_date, sequence_number - 1, anchor_day),
            amount=last if sequence_number == contract.installment_count else regular,
            status=InstallmentStatus.PENDING,
            days_late=0,
            created_at=now,
        )


def generate_installments(
    contract: Contract,
    today: date,
    now: datetime | None = None,
) -> list[Installment]:
    """Generate the full installment plan of a contract.

    Parameters
    ----------
    contract : Contract
        Contract terms.
    today : date
        Current date, used to reject first due dates in the past.
    now : datetime | None
        Creation timestamp stamped on the installments.

    Returns
    -------
    list[Installment]
        Installments numbered 1..N in due date order.
    """
    validate_terms(contract, today)
    return list(iter_installments(contract, 1, contract.installment_count, now))
