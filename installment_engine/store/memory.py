"""In-memory installment repository with snapshot subscriptions."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Iterable

from installment_engine.exceptions import InstallmentNotFoundError, PersistenceError
from installment_engine.models.billing import Installment, InstallmentStatus

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[Installment]], None]


@dataclass
class InMemoryInstallmentRepository:
    """In-memory store for installments with relationship tracking.

    Entities are copied on the way in and out so callers never share state
    with the repository, matching the behaviour of a remote document store.
    """

    installments: dict[str, Installment] = field(default_factory=dict)

    # Relationship indexes
    _contract_installments: dict[str, list[str]] = field(default_factory=dict)
    _client_installments: dict[str, list[str]] = field(default_factory=dict)

    _subscribers: list[SnapshotCallback] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock)

    def insert(self, installment: Installment) -> str:
        """Add an installment to the store."""
        with self._lock:
            self._insert(installment)
        self._notify()
        return installment.installment_id

    def update(self, installment_id: str, fields: dict[str, Any]) -> None:
        """Overwrite fields of a stored installment."""
        with self._lock:
            current = self.installments.get(installment_id)
            if current is None:
                raise InstallmentNotFoundError(f"Installment {installment_id} not found")
            if "updated_at" not in fields:
                fields = {**fields, "updated_at": datetime.now()}
            self.installments[installment_id] = replace(current, **fields)
        self._notify()

    def delete(self, installment_id: str) -> None:
        """Remove an installment; unknown ids are ignored."""
        with self._lock:
            self._delete(installment_id)
        self._notify()

    def get(self, installment_id: str) -> Installment | None:
        with self._lock:
            inst = self.installments.get(installment_id)
            return replace(inst) if inst is not None else None

    def query_by_contract(self, contract_id: str) -> list[Installment]:
        """Get all installments for a contract."""
        with self._lock:
            ids = self._contract_installments.get(contract_id, [])
            return self._sorted_copies(ids)

    def query_by_client(self, client_id: str) -> list[Installment]:
        """Get all installments for a client."""
        with self._lock:
            ids = self._client_installments.get(client_id, [])
            return self._sorted_copies(ids)

    def query_open(self) -> list[Installment]:
        """Get all installments still awaiting payment."""
        with self._lock:
            ids = [
                iid for iid, inst in self.installments.items()
                if inst.status != InstallmentStatus.PAID
            ]
            return self._sorted_copies(ids)

    def replace(self, to_delete: Iterable[str], to_create: Iterable[Installment]) -> None:
        """Delete then insert under one lock so readers never see the gap."""
        to_delete = list(to_delete)
        to_create = list(to_create)
        with self._lock:
            # Validate before mutating so a failure leaves the store untouched
            kept = set(self.installments) - set(to_delete)
            duplicate = [i.installment_id for i in to_create if i.installment_id in kept]
            if duplicate:
                raise PersistenceError(f"Installment ids already stored: {', '.join(duplicate)}")
            for installment_id in to_delete:
                self._delete(installment_id)
            for inst in to_create:
                self._insert(inst)
        self._notify()

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Push a full snapshot to ``callback`` now and after every write.

        Returns
        -------
        Callable[[], None]
            Function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)
            snapshot = self._sorted_copies(list(self.installments))
        callback(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def summary(self) -> dict[str, int]:
        """Return counts of installments by status."""
        with self._lock:
            counts = {status.value: 0 for status in InstallmentStatus}
            for inst in self.installments.values():
                counts[inst.status.value] += 1
            counts["total"] = len(self.installments)
            return counts

    def _insert(self, installment: Installment) -> None:
        if installment.installment_id in self.installments:
            raise PersistenceError(f"Installment {installment.installment_id} already stored")
        stored = replace(installment)
        if stored.created_at is None:
            stored.created_at = datetime.now()
        self.installments[stored.installment_id] = stored
        self._contract_installments.setdefault(stored.contract_id, []).append(stored.installment_id)
        self._client_installments.setdefault(stored.client_id, []).append(stored.installment_id)

    def _delete(self, installment_id: str) -> None:
        inst = self.installments.pop(installment_id, None)
        if inst is None:
            return
        self._contract_installments[inst.contract_id].remove(installment_id)
        self._client_installments[inst.client_id].remove(installment_id)

    def _sorted_copies(self, ids: Iterable[str]) -> list[Installment]:
        items = [replace(self.installments[iid]) for iid in ids]
        return sorted(items, key=lambda i: (i.contract_id, i.sequence_number))

    def _notify(self) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
            if not subscribers:
                return
            snapshot = self._sorted_copies(list(self.installments))
        for callback in subscribers:
            try:
                callback(list(snapshot))
            except Exception:
                logger.exception("Snapshot subscriber failed")
