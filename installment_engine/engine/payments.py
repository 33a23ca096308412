"""Payment transitions of a single installment."""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from installment_engine.dates import as_date, days_late
from installment_engine.engine.generator import to_decimal
from installment_engine.models.billing import Installment, InstallmentStatus

# Fields written by record_payment / clear_payment
PAYMENT_FIELDS = ("payment_date", "paid_amount", "days_late", "status", "note")


def record_payment(
    installment: Installment,
    paid_amount: Decimal | int | str,
    payment_date: date | datetime,
    note: str | None = None,
) -> Installment:
    """Return a copy of ``installment`` marked as paid.

    Days late are counted from the due date to the payment date, never
    negative.
    """
    payment_date = as_date(payment_date)
    return replace(
        installment,
        payment_date=payment_date,
        paid_amount=to_decimal(paid_amount),
        days_late=days_late(installment.due_date, payment_date),
        status=InstallmentStatus.PAID,
        note=note,
    )


def clear_payment(installment: Installment) -> Installment:
    """Return a copy of ``installment`` with its payment removed."""
    return replace(
        installment,
        payment_date=None,
        paid_amount=None,
        days_late=0,
        status=InstallmentStatus.PENDING,
        note=None,
    )
