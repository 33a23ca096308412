"""Sample client and contract generator."""

from __future__ import annotations

import random
from datetime import date
from decimal import Decimal
from typing import Iterator

from faker import Faker

from installment_engine.engine.generator import CENTS
from installment_engine.models.billing import Contract


class ContractGenerator:
    """Generate synthetic contracts for demos and load checks.

    Clients are drawn from a small pool so that several contracts share
    the same client, as they would in a real portfolio.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``pt_BR``).
    client_pool_size : int
        Number of distinct clients contracts are spread over.
    """

    # Installment count choices and their weights
    INSTALLMENT_COUNTS = [1, 3, 6, 10, 12, 18, 24]
    INSTALLMENT_WEIGHTS = [0.05, 0.15, 0.20, 0.20, 0.20, 0.10, 0.10]

    # Preferred due days, month-end heavy to exercise clamping
    DUE_DAYS = [1, 5, 10, 15, 20, 25, 28, 30, 31]

    TOTAL_RANGE = (300, 25000)
    MAX_DOWN_PAYMENT_RATIO = 0.3

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "pt_BR",
        client_pool_size: int = 50,
    ) -> None:
        if client_pool_size < 1:
            raise ValueError("client_pool_size must be at least 1")
        self.fake = Faker(locale)
        self.rng = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)
        self.clients = [
            (self.fake.uuid4(), self.fake.name()) for _ in range(client_pool_size)
        ]
        self._sequence = 0

    def generate(self, today: date | None = None) -> Contract:
        """Generate a single contract whose first due date is after ``today``.

        Parameters
        ----------
        today : date | None
            Reference date (default: current date).

        Returns
        -------
        Contract
            Generated contract.
        """
        today = today or date.today()
        client_id, client_name = self.rng.choice(self.clients)

        total = Decimal(str(self.rng.uniform(*self.TOTAL_RANGE))).quantize(CENTS)
        if self.rng.random() < 0.4:
            ratio = self.rng.uniform(0, self.MAX_DOWN_PAYMENT_RATIO)
            down = (total * Decimal(str(ratio))).quantize(CENTS)
        else:
            down = Decimal("0.00")

        count = self.rng.choices(self.INSTALLMENT_COUNTS, weights=self.INSTALLMENT_WEIGHTS, k=1)[0]
        self._sequence += 1
        return Contract.from_purchase(
            contract_id=self.fake.uuid4(),
            client_id=client_id,
            client_name=client_name,
            total_value=total,
            down_payment=down,
            installment_count=count,
            purchase_date=today,
            due_day=self.rng.choice(self.DUE_DAYS),
            contract_number=f"CT-{today.year}-{self._sequence:05d}",
        )

    def generate_batch(self, count: int, today: date | None = None) -> Iterator[Contract]:
        """Generate ``count`` contracts.

        Yields
        ------
        Contract
            Generated contracts.
        """
        for _ in range(count):
            yield self.generate(today)
