"""Tests for the sample contract generator."""

from datetime import date
from decimal import Decimal

import pytest

from installment_engine.engine import generate_installments
from installment_engine.generators import ContractGenerator


class TestContractGenerator:
    """Tests for ContractGenerator."""

    def test_contract_terms_are_valid(self, seed: int) -> None:
        """Test contract terms are valid."""
        gen = ContractGenerator(seed=seed)
        today = date(2024, 1, 31)

        for contract in gen.generate_batch(50, today):
            assert contract.first_due_date > today
            assert Decimal("0") <= contract.down_payment < contract.total_value
            assert contract.installment_count in ContractGenerator.INSTALLMENT_COUNTS
            assert contract.total_value == contract.total_value.quantize(Decimal("0.01"))
            assert len(generate_installments(contract, today)) == contract.installment_count

    def test_clients_are_shared(self, seed: int) -> None:
        """Test clients are shared."""
        gen = ContractGenerator(seed=seed, client_pool_size=3)

        contracts = list(gen.generate_batch(30, date(2024, 1, 1)))

        assert len({c.client_id for c in contracts}) <= 3
        assert len({c.contract_id for c in contracts}) == 30

    def test_client_name_matches_client(self, seed: int) -> None:
        """Test client name matches client."""
        gen = ContractGenerator(seed=seed, client_pool_size=5)
        names = dict(gen.clients)

        for contract in gen.generate_batch(20, date(2024, 1, 1)):
            assert names[contract.client_id] == contract.client_name

    def test_contract_numbers_are_sequential(self, seed: int) -> None:
        """Test contract numbers are sequential."""
        gen = ContractGenerator(seed=seed)

        numbers = [c.contract_number for c in gen.generate_batch(3, date(2024, 6, 1))]

        assert numbers == ["CT-2024-00001", "CT-2024-00002", "CT-2024-00003"]

    def test_reproducible(self, seed: int) -> None:
        """Test reproducible."""
        first = list(ContractGenerator(seed=seed).generate_batch(5, date(2024, 1, 1)))
        second = list(ContractGenerator(seed=seed).generate_batch(5, date(2024, 1, 1)))

        assert first == second

    def test_invalid_pool_size(self) -> None:
        """Test invalid pool size."""
        with pytest.raises(ValueError):
            ContractGenerator(client_pool_size=0)
