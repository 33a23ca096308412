"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from installment_engine.models.billing import Contract
from installment_engine.store import InMemoryInstallmentRepository, InstallmentStore, RecentlyClearedGuard


class FakeClock:
    """Settable date source."""

    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


class FakeMonotonic:
    """Settable monotonic time source in seconds."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_contract(**overrides) -> Contract:
    """Build a contract with sensible defaults."""
    values = {
        "contract_id": "ctr-test-001",
        "client_id": "cli-test-001",
        "client_name": "Maria Souza",
        "total_value": Decimal("1000.00"),
        "down_payment": Decimal("200.00"),
        "installment_count": 4,
        "first_due_date": date(2024, 1, 15),
        "contract_number": "CT-2024-00001",
    }
    values.update(overrides)
    return Contract(**values)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def today() -> date:
    """Reference date used across tests."""
    return date(2024, 1, 1)


@pytest.fixture
def clock(today: date) -> FakeClock:
    return FakeClock(today)


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def contract() -> Contract:
    """Contract of 800.00 financed over 4 installments from 2024-01-15."""
    return make_contract()


@pytest.fixture
def repository() -> InMemoryInstallmentRepository:
    return InMemoryInstallmentRepository()


@pytest.fixture
def guard(monotonic: FakeMonotonic) -> RecentlyClearedGuard:
    return RecentlyClearedGuard(ttl=5.0, clock=monotonic)


@pytest.fixture
def store(
    repository: InMemoryInstallmentRepository,
    clock: FakeClock,
    guard: RecentlyClearedGuard,
) -> InstallmentStore:
    return InstallmentStore(repository, clock=clock, guard=guard)


@pytest.fixture
def contract_factory():
    """Build contracts overriding any default term."""
    return make_contract
