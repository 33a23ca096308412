"""Status derivation for open installments."""

from dataclasses import replace
from datetime import date
from typing import AbstractSet, Iterable

from installment_engine.dates import as_date, days_late
from installment_engine.models.billing import Installment, InstallmentStatus


def derive_statuses(
    installments: Iterable[Installment],
    today: date,
    recently_cleared: AbstractSet[str] = frozenset(),
) -> list[Installment]:
    """Flag pending installments that are past their due date.

    Only PENDING installments are inspected; PAID and LATE ones are left
    as they are, and ids in ``recently_cleared`` are skipped. A pending
    installment past its due date becomes LATE with its days late.

    Parameters
    ----------
    installments : Iterable[Installment]
        Installments to inspect.
    today : date
        Reference date.
    recently_cleared : AbstractSet[str]
        Installment ids whose payment was just cleared.

    Returns
    -------
    list[Installment]
        Updated copies of the installments whose ``(status, days_late)``
        changed. Running again with the same ``today`` returns nothing.
    """
    today = as_date(today)
    changed = []

    for inst in installments:
        if inst.status != InstallmentStatus.PENDING:
            continue
        if inst.installment_id in recently_cleared:
            continue

        late = days_late(inst.due_date, today)
        status = InstallmentStatus.LATE if late > 0 else InstallmentStatus.PENDING

        if status != inst.status or late != inst.days_late:
            changed.append(replace(inst, status=status, days_late=late))

    return changed
