"""Persistence collaborator protocol for installments."""

from typing import Any, Iterable, Protocol

from installment_engine.models.billing import Installment


class InstallmentRepository(Protocol):
    """Operations the installment store needs from persistence.

    Implementations raise ``PersistenceError`` for backend failures and
    ``InstallmentNotFoundError`` when updating an unknown id.
    """

    def insert(self, installment: Installment) -> str:
        """Store a new installment and return its id."""
        ...

    def update(self, installment_id: str, fields: dict[str, Any]) -> None:
        """Overwrite the given fields of an installment."""
        ...

    def delete(self, installment_id: str) -> None:
        """Remove an installment."""
        ...

    def get(self, installment_id: str) -> Installment | None:
        """Return an installment or None."""
        ...

    def query_by_contract(self, contract_id: str) -> list[Installment]:
        """Installments of a contract ordered by sequence number."""
        ...

    def query_by_client(self, client_id: str) -> list[Installment]:
        """Installments of a client ordered by contract and sequence number."""
        ...

    def query_open(self) -> list[Installment]:
        """All installments that are not paid."""
        ...

    def replace(self, to_delete: Iterable[str], to_create: Iterable[Installment]) -> None:
        """Delete then insert as one atomic change."""
        ...
