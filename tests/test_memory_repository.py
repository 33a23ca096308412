"""Tests for the in-memory installment repository."""

from datetime import date
from decimal import Decimal

import pytest

from installment_engine.engine import generate_installments
from installment_engine.exceptions import InstallmentNotFoundError, PersistenceError
from installment_engine.models.billing import InstallmentStatus
from installment_engine.store import InMemoryInstallmentRepository


@pytest.fixture
def plan(contract, today):
    return generate_installments(contract, today)


@pytest.fixture
def loaded(repository: InMemoryInstallmentRepository, plan) -> InMemoryInstallmentRepository:
    for inst in plan:
        repository.insert(inst)
    return repository


class TestInMemoryRepository:
    """Tests for InMemoryInstallmentRepository."""

    def test_insert_and_get(self, repository, plan) -> None:
        """Test insert and get."""
        returned = repository.insert(plan[0])

        assert returned == plan[0].installment_id
        assert repository.get(plan[0].installment_id) == plan[0]

    def test_get_unknown(self, repository) -> None:
        """Test get unknown."""
        assert repository.get("missing") is None

    def test_insert_duplicate(self, loaded, plan) -> None:
        """Test insert duplicate."""
        with pytest.raises(PersistenceError):
            loaded.insert(plan[0])

    def test_returns_copies(self, loaded, plan) -> None:
        """Test returns copies."""
        fetched = loaded.get(plan[0].installment_id)
        fetched.status = InstallmentStatus.PAID

        assert loaded.get(plan[0].installment_id).status == InstallmentStatus.PENDING

    def test_query_by_contract_sorted(self, repository, plan) -> None:
        """Test query by contract sorted."""
        for inst in reversed(plan):
            repository.insert(inst)

        result = repository.query_by_contract(plan[0].contract_id)

        assert [i.sequence_number for i in result] == [1, 2, 3, 4]

    def test_query_by_client_spans_contracts(self, loaded, contract_factory, today) -> None:
        """Test query by client spans contracts."""
        other = contract_factory(contract_id="ctr-test-002", installment_count=2)
        for inst in generate_installments(other, today):
            loaded.insert(inst)

        result = loaded.query_by_client("cli-test-001")

        assert [(i.contract_id, i.sequence_number) for i in result] == [
            ("ctr-test-001", 1),
            ("ctr-test-001", 2),
            ("ctr-test-001", 3),
            ("ctr-test-001", 4),
            ("ctr-test-002", 1),
            ("ctr-test-002", 2),
        ]

    def test_update(self, loaded, plan) -> None:
        """Test update."""
        loaded.update(plan[0].installment_id, {"status": InstallmentStatus.LATE, "days_late": 3})

        stored = loaded.get(plan[0].installment_id)
        assert stored.status == InstallmentStatus.LATE
        assert stored.days_late == 3
        assert stored.updated_at is not None

    def test_update_unknown(self, repository) -> None:
        """Test update unknown."""
        with pytest.raises(InstallmentNotFoundError):
            repository.update("missing", {"days_late": 1})

    def test_delete(self, loaded, plan) -> None:
        """Test delete."""
        loaded.delete(plan[0].installment_id)
        loaded.delete("missing")

        assert loaded.get(plan[0].installment_id) is None
        assert len(loaded.query_by_contract(plan[0].contract_id)) == 3
        assert len(loaded.query_by_client(plan[0].client_id)) == 3

    def test_query_open(self, loaded, plan) -> None:
        """Test query open."""
        loaded.update(
            plan[0].installment_id,
            {"status": InstallmentStatus.PAID, "paid_amount": Decimal("200.00"), "payment_date": date(2024, 1, 15)},
        )

        assert [i.sequence_number for i in loaded.query_open()] == [2, 3, 4]

    def test_replace(self, loaded, plan, contract, today) -> None:
        """Test replace."""
        fresh = generate_installments(contract, today)

        loaded.replace([i.installment_id for i in plan], fresh)

        assert {i.installment_id for i in loaded.query_by_contract(contract.contract_id)} == {
            i.installment_id for i in fresh
        }

    def test_replace_failure_leaves_store_untouched(self, loaded, plan) -> None:
        """Test replace failure leaves store untouched."""
        with pytest.raises(PersistenceError):
            loaded.replace([plan[0].installment_id], [plan[1]])

        assert len(loaded.query_by_contract(plan[0].contract_id)) == 4

    def test_replace_may_reinsert_deleted_id(self, loaded, plan) -> None:
        """Test replace may reinsert deleted id."""
        loaded.replace([plan[0].installment_id], [plan[0]])

        assert loaded.get(plan[0].installment_id) == plan[0]

    def test_subscribe_pushes_snapshots(self, loaded, plan) -> None:
        """Test subscribe pushes snapshots."""
        snapshots = []

        unsubscribe = loaded.subscribe(snapshots.append)
        loaded.delete(plan[0].installment_id)
        unsubscribe()
        loaded.delete(plan[1].installment_id)

        assert [len(s) for s in snapshots] == [4, 3]

    def test_failing_subscriber_does_not_break_writes(self, loaded, plan) -> None:
        """Test failing subscriber does not break writes."""
        calls = []

        def failing(snapshot) -> None:
            calls.append(len(snapshot))
            if len(calls) > 1:
                raise RuntimeError("boom")

        loaded.subscribe(failing)
        loaded.delete(plan[0].installment_id)

        assert calls == [4, 3]
        assert loaded.get(plan[0].installment_id) is None

    def test_summary(self, loaded, plan) -> None:
        """Test summary."""
        loaded.update(plan[0].installment_id, {"status": InstallmentStatus.PAID})

        assert loaded.summary() == {"PENDING": 3, "PAID": 1, "LATE": 0, "total": 4}
