"""Installment persistence and the store that coordinates writes."""

from installment_engine.store.facade import InstallmentStore
from installment_engine.store.guard import RecentlyClearedGuard
from installment_engine.store.memory import InMemoryInstallmentRepository
from installment_engine.store.repository import InstallmentRepository

__all__ = [
    "InMemoryInstallmentRepository",
    "InstallmentRepository",
    "InstallmentStore",
    "RecentlyClearedGuard",
]
