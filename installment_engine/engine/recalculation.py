"""Recalculation of the unpaid tail after contract terms change."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from installment_engine.engine.generator import iter_installments, validate_terms
from installment_engine.models.billing import Contract, Installment, InstallmentStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecalculationPlan:
    """Changes to apply to a contract's installment set, in order."""

    to_delete: tuple[str, ...] = field(default_factory=tuple)
    to_create: tuple[Installment, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_create


def recalculate(
    contract: Contract,
    existing: Iterable[Installment],
    now: datetime | None = None,
) -> RecalculationPlan:
    """Rebuild the unpaid tail of a contract under its current terms.

    Paid installments are kept as they are. Every open installment is
    deleted and replaced by a new tail continuing after the highest paid
    sequence number. The per-installment amount is computed over the whole
    contract (financed amount divided by the installment count), not over
    the remaining balance.

    Parameters
    ----------
    contract : Contract
        Contract with its new terms.
    existing : Iterable[Installment]
        Installments currently stored for the contract.
    now : datetime | None
        Creation timestamp stamped on new installments.

    Returns
    -------
    RecalculationPlan
        Ids to delete and installments to create.
    """
    validate_terms(contract)

    existing = list(existing)
    paid = [i for i in existing if i.status == InstallmentStatus.PAID]
    unpaid = [i for i in existing if i.status != InstallmentStatus.PAID]
    to_delete = tuple(i.installment_id for i in unpaid)

    remaining = contract.installment_count - len(paid)
    if remaining <= 0:
        logger.warning(
            "Contract %s has %d paid installments for %d planned; no new installments generated",
            contract.contract_id,
            len(paid),
            contract.installment_count,
        )
        return RecalculationPlan(to_delete=to_delete)

    first_sequence = max(i.sequence_number for i in paid) + 1 if paid else 1
    to_create = tuple(iter_installments(contract, first_sequence, remaining, now))

    logger.debug(
        "Recalculated contract %s: %d paid kept, %d deleted, %d created from #%d",
        contract.contract_id,
        len(paid),
        len(to_delete),
        len(to_create),
        first_sequence,
    )
    return RecalculationPlan(to_delete=to_delete, to_create=to_create)
