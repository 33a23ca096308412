"""Installment store: the single writer of installments."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Iterable

from installment_engine.config import EngineConfig
from installment_engine.dates import as_date
from installment_engine.engine.generator import generate_installments
from installment_engine.engine.payments import PAYMENT_FIELDS, clear_payment, record_payment
from installment_engine.engine.recalculation import RecalculationPlan, recalculate
from installment_engine.engine.status import derive_statuses
from installment_engine.exceptions import ContractValidationError, InstallmentNotFoundError
from installment_engine.models.base import Event
from installment_engine.models.billing import ChangeType, Contract, Installment
from installment_engine.store.guard import RecentlyClearedGuard
from installment_engine.store.repository import InstallmentRepository

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Event], None]


class InstallmentStore:
    """Coordinate installment lifecycle operations over a repository.

    Every write goes through this class. It keeps an in-memory mirror of
    the installments it has seen, owns the recently-cleared guard, and
    announces each committed change as an :class:`Event` to subscribed
    callbacks and sinks so caches keyed by contract or client can be
    invalidated.

    Parameters
    ----------
    repository : InstallmentRepository
        Persistence collaborator.
    clock : Callable[[], date]
        Returns the current date.
    guard : RecentlyClearedGuard | None
        Guard shared with the sweep. Created from ``guard_seconds`` if None.
    guard_seconds : float
        Exclusion window after a payment is cleared.
    sinks : list[Any] | None
        Objects with ``write_batch(topic, records)`` receiving change events.
    topic : str
        Topic name passed to the sinks.
    """

    SOURCE = "installment-engine"

    def __init__(
        self,
        repository: InstallmentRepository,
        clock: Callable[[], date] = date.today,
        guard: RecentlyClearedGuard | None = None,
        guard_seconds: float = 5.0,
        sinks: list[Any] | None = None,
        topic: str = "billing.installment-changes",
    ) -> None:
        self.repository = repository
        self.clock = clock
        self.guard = guard if guard is not None else RecentlyClearedGuard(ttl=guard_seconds)
        self.sinks = list(sinks or [])
        self.topic = topic
        self._mirror: dict[str, Installment] = {}
        self._listeners: list[ChangeListener] = []
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        repository: InstallmentRepository,
        config: EngineConfig,
        sinks: list[Any] | None = None,
        clock: Callable[[], date] = date.today,
    ) -> InstallmentStore:
        """Build a store using the guard window and topic from ``config``."""
        return cls(
            repository,
            clock=clock,
            guard_seconds=config.guard_seconds,
            sinks=sinks,
            topic=config.change_topic,
        )

    # Queries
    def get(self, installment_id: str) -> Installment:
        """Look up an installment, mirror first.

        Raises
        ------
        InstallmentNotFoundError
            The id is unknown to the mirror and the repository.
        """
        inst = self._mirror.get(installment_id)
        if inst is not None:
            return replace(inst)
        inst = self.repository.get(installment_id)
        if inst is None:
            raise InstallmentNotFoundError(f"Installment {installment_id} not found")
        self._mirror[installment_id] = inst
        return replace(inst)

    def list_by_contract(self, contract_id: str) -> list[Installment]:
        """Installments of a contract in sequence order."""
        installments = self.repository.query_by_contract(contract_id)
        self._remember(installments)
        return installments

    def list_by_client(self, client_id: str) -> list[Installment]:
        installments = self.repository.query_by_client(client_id)
        self._remember(installments)
        return installments

    # Commands
    def generate(self, contract: Contract) -> list[Installment]:
        """Create the installment plan of a contract.

        Open installments already stored for the contract are replaced in
        the same atomic write. A contract that already has paid installments
        must go through :meth:`recalculate` instead.

        Returns
        -------
        list[Installment]
            The new installments.
        """
        with self._lock:
            installments = generate_installments(contract, as_date(self.clock()))

            existing = self.repository.query_by_contract(contract.contract_id)
            if any(i.is_paid for i in existing):
                raise ContractValidationError(
                    f"Contract {contract.contract_id} already has paid installments; recalculate instead"
                )

            stale_ids = [i.installment_id for i in existing]
            self.repository.replace(stale_ids, installments)
            self._forget(stale_ids)
            self._remember(installments)

        logger.info(
            "Generated %d installments for contract %s (client %s)",
            len(installments),
            contract.contract_id,
            contract.client_id,
            extra={"contract_id": contract.contract_id, "change": ChangeType.GENERATED.value},
        )
        self._emit(ChangeType.GENERATED, installments + existing)
        return installments

    def register_payment(
        self,
        installment_id: str,
        paid_amount: Decimal | int | str,
        payment_date: date | datetime,
        note: str | None = None,
    ) -> Installment:
        """Mark an installment as paid and return its new state."""
        with self._lock:
            current = self.get(installment_id)
            updated = record_payment(current, paid_amount, payment_date, note)
            self.repository.update(installment_id, _fields(updated, PAYMENT_FIELDS))
            self.guard.discard(installment_id)
            self._remember([updated])

        logger.info(
            "Payment registered for installment %s (contract %s #%d): %s, %d days late",
            installment_id,
            updated.contract_id,
            updated.sequence_number,
            updated.paid_amount,
            updated.days_late,
            extra={"installment_id": installment_id, "contract_id": updated.contract_id},
        )
        self._emit(ChangeType.PAID, [updated])
        return updated

    def clear_payment(self, installment_id: str) -> Installment:
        """Remove the payment of an installment and return its new state.

        The installment is excluded from status sweeps for the guard window.
        """
        with self._lock:
            current = self.get(installment_id)
            updated = clear_payment(current)
            self.repository.update(installment_id, _fields(updated, PAYMENT_FIELDS))
            self.guard.add(installment_id)
            self._remember([updated])

        logger.info(
            "Payment cleared for installment %s (contract %s)",
            installment_id,
            updated.contract_id,
            extra={"installment_id": installment_id, "contract_id": updated.contract_id},
        )
        self._emit(ChangeType.CLEARED, [updated])
        return updated

    def recalculate(self, contract: Contract) -> RecalculationPlan:
        """Rebuild the unpaid tail of a contract after its terms changed.

        The deletion of open installments and the insertion of the new tail
        are applied as one repository write.
        """
        with self._lock:
            existing = self.repository.query_by_contract(contract.contract_id)
            plan = recalculate(contract, existing)
            if plan.is_empty:
                logger.info("Nothing to recalculate for contract %s", contract.contract_id)
                return plan

            self.repository.replace(plan.to_delete, plan.to_create)
            self._forget(plan.to_delete)
            self._remember(plan.to_create)

        deleted_ids = set(plan.to_delete)
        deleted = [i for i in existing if i.installment_id in deleted_ids]
        logger.info(
            "Recalculated contract %s: %d deleted, %d created",
            contract.contract_id,
            len(plan.to_delete),
            len(plan.to_create),
            extra={"contract_id": contract.contract_id, "change": ChangeType.RECALCULATED.value},
        )
        self._emit(ChangeType.RECALCULATED, list(plan.to_create) + deleted)
        return plan

    def sweep(self) -> list[Installment]:
        """Flag overdue pending installments as LATE.

        Returns
        -------
        list[Installment]
            Installments whose status or days late changed.
        """
        applied: list[Installment] = []
        with self._lock:
            today = as_date(self.clock())
            changed = derive_statuses(self.repository.query_open(), today, self.guard.active())
            try:
                for inst in changed:
                    self.repository.update(
                        inst.installment_id,
                        {"status": inst.status, "days_late": inst.days_late},
                    )
                    self._remember([inst])
                    applied.append(inst)
            finally:
                # Announce rows committed before a failure
                if len(applied) < len(changed) and applied:
                    logger.warning(
                        "Status sweep for %s stopped after %d of %d updates",
                        today,
                        len(applied),
                        len(changed),
                    )
                    self._emit(ChangeType.STATUS_UPDATED, applied)

        if changed:
            logger.info("Status sweep for %s updated %d installments", today, len(changed))
            self._emit(ChangeType.STATUS_UPDATED, changed)
        else:
            logger.debug("Status sweep for %s found no changes", today)
        return changed

    def delete_by_contract(self, contract_id: str) -> int:
        """Delete every installment of a contract. Returns the count."""
        with self._lock:
            existing = self.repository.query_by_contract(contract_id)
            return self._delete_all(existing)

    def delete_by_client(self, client_id: str) -> int:
        """Delete every installment of a client. Returns the count."""
        with self._lock:
            existing = self.repository.query_by_client(client_id)
            return self._delete_all(existing)

    # Notification
    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener`` with every change event.

        Returns
        -------
        Callable[[], None]
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _delete_all(self, existing: list[Installment]) -> int:
        if not existing:
            return 0
        ids = [i.installment_id for i in existing]
        self.repository.replace(ids, [])
        self._forget(ids)
        for iid in ids:
            self.guard.discard(iid)
        logger.info("Deleted %d installments", len(ids))
        self._emit(ChangeType.DELETED, existing)
        return len(ids)

    def _remember(self, installments: Iterable[Installment]) -> None:
        for inst in installments:
            self._mirror[inst.installment_id] = replace(inst)

    def _forget(self, installment_ids: Iterable[str]) -> None:
        for iid in installment_ids:
            self._mirror.pop(iid, None)

    def _emit(self, change: ChangeType, installments: Iterable[Installment]) -> Event:
        installments = list(installments)
        contract_ids = sorted({i.contract_id for i in installments})
        event = Event(
            event_id=uuid.uuid4().hex,
            event_type=change.value,
            event_time=datetime.now(),
            source=self.SOURCE,
            subject=contract_ids[0] if len(contract_ids) == 1 else "*",
            data={
                "contract_ids": contract_ids,
                "client_ids": sorted({i.client_id for i in installments}),
                "installment_ids": [i.installment_id for i in installments],
            },
        )

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Change listener failed for %s", event.event_type)

        for sink in self.sinks:
            try:
                sink.write_batch(self.topic, [event])
            except Exception:
                logger.exception("Sink %s failed for %s", type(sink).__name__, event.event_type)

        return event


def _fields(installment: Installment, names: Iterable[str]) -> dict[str, Any]:
    return {name: getattr(installment, name) for name in names}
