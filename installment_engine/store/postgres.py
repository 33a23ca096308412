"""PostgreSQL installment repository."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from installment_engine.exceptions import InstallmentNotFoundError, PersistenceError
from installment_engine.models.billing import Installment, InstallmentStatus

logger = logging.getLogger(__name__)

COLUMNS = [
    "installment_id",
    "contract_id",
    "client_id",
    "client_name",
    "sequence_number",
    "due_date",
    "amount",
    "payment_date",
    "paid_amount",
    "days_late",
    "status",
    "note",
    "created_at",
    "updated_at",
]

UPDATABLE_COLUMNS = frozenset(COLUMNS) - {"installment_id", "contract_id", "created_at"}

DDL = """
CREATE TABLE IF NOT EXISTS installments (
    installment_id   VARCHAR(64) PRIMARY KEY,
    contract_id      VARCHAR(64) NOT NULL,
    client_id        VARCHAR(64) NOT NULL,
    client_name      VARCHAR(200) NOT NULL,
    sequence_number  INTEGER NOT NULL CHECK (sequence_number >= 1),
    due_date         DATE NOT NULL,
    amount           NUMERIC(15, 2) NOT NULL,
    payment_date     DATE,
    paid_amount      NUMERIC(15, 2),
    days_late        INTEGER NOT NULL DEFAULT 0 CHECK (days_late >= 0),
    status           VARCHAR(10) NOT NULL DEFAULT 'PENDING',
    note             TEXT,
    created_at       TIMESTAMP NOT NULL DEFAULT now(),
    updated_at       TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_installments_contract ON installments (contract_id, sequence_number);
CREATE INDEX IF NOT EXISTS idx_installments_client ON installments (client_id);
CREATE INDEX IF NOT EXISTS idx_installments_open ON installments (status) WHERE status <> 'PAID';
"""

_SELECT = "SELECT " + ", ".join(COLUMNS) + " FROM installments"
_INSERT = (
    "INSERT INTO installments (" + ", ".join(COLUMNS) + ") VALUES ("
    + ", ".join(f"%({c})s" for c in COLUMNS) + ")"
)


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except psycopg.Error as e:
        raise PersistenceError(f"{action} failed: {e}") from e


class PostgresInstallmentRepository:
    """Store installments in a PostgreSQL table.

    Single statements run in autocommit mode; ``replace`` wraps its delete
    and insert in one transaction.
    """

    def __init__(self, connection_string: str) -> None:
        """Open the connection.

        Parameters
        ----------
        connection_string : str
            libpq connection string or URL.
        """
        with _translate_errors("Connect"):
            self.conn = psycopg.connect(connection_string, autocommit=True, row_factory=dict_row)
        self._counts: dict[str, int] = {"inserted": 0, "updated": 0, "deleted": 0}

    def create_tables(self) -> None:
        """Create the installments table and indexes if missing."""
        with _translate_errors("Create tables"):
            with self.conn.cursor() as cur:
                cur.execute(DDL)
        logger.info("Installments table ready")

    def insert(self, installment: Installment) -> str:
        with _translate_errors("Insert installment"):
            with self.conn.cursor() as cur:
                cur.execute(_INSERT + " RETURNING installment_id", _to_row(installment))
                row = cur.fetchone()
        self._counts["inserted"] += 1
        return row["installment_id"] if row else installment.installment_id

    def update(self, installment_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")
        if not fields:
            return

        values = {k: _to_column(v) for k, v in fields.items()}
        assignments = [sql.SQL("{} = %s").format(sql.Identifier(name)) for name in values]
        if "updated_at" not in values:
            assignments.append(sql.SQL("updated_at = now()"))

        query = sql.SQL("UPDATE installments SET {} WHERE installment_id = %s").format(
            sql.SQL(", ").join(assignments)
        )
        with _translate_errors("Update installment"):
            with self.conn.cursor() as cur:
                cur.execute(query, [*values.values(), installment_id])
                rowcount = cur.rowcount
        if rowcount == 0:
            raise InstallmentNotFoundError(f"Installment {installment_id} not found")
        self._counts["updated"] += 1

    def delete(self, installment_id: str) -> None:
        with _translate_errors("Delete installment"):
            with self.conn.cursor() as cur:
                cur.execute("DELETE FROM installments WHERE installment_id = %s", [installment_id])
        self._counts["deleted"] += 1

    def get(self, installment_id: str) -> Installment | None:
        rows = self._fetch(_SELECT + " WHERE installment_id = %s", [installment_id])
        return rows[0] if rows else None

    def query_by_contract(self, contract_id: str) -> list[Installment]:
        return self._fetch(
            _SELECT + " WHERE contract_id = %s ORDER BY sequence_number", [contract_id]
        )

    def query_by_client(self, client_id: str) -> list[Installment]:
        return self._fetch(
            _SELECT + " WHERE client_id = %s ORDER BY contract_id, sequence_number", [client_id]
        )

    def query_open(self) -> list[Installment]:
        return self._fetch(
            _SELECT + " WHERE status <> %s ORDER BY contract_id, sequence_number",
            [InstallmentStatus.PAID.value],
        )

    def replace(self, to_delete: Iterable[str], to_create: Iterable[Installment]) -> None:
        """Delete and insert inside a single transaction."""
        to_delete = list(to_delete)
        rows = [_to_row(inst) for inst in to_create]

        with _translate_errors("Replace installments"):
            with self.conn.transaction():
                with self.conn.cursor() as cur:
                    if to_delete:
                        cur.execute(
                            "DELETE FROM installments WHERE installment_id = ANY(%s)", [to_delete]
                        )
                    if rows:
                        cur.executemany(_INSERT, rows)

        self._counts["deleted"] += len(to_delete)
        self._counts["inserted"] += len(rows)
        logger.debug("Replaced installments: deleted=%d inserted=%d", len(to_delete), len(rows))

    def close(self) -> None:
        """Close the connection."""
        self.conn.close()
        logger.info(
            "PostgreSQL repository closed: inserted=%d, updated=%d, deleted=%d",
            self._counts["inserted"],
            self._counts["updated"],
            self._counts["deleted"],
        )

    def _fetch(self, query: str, params: list[Any]) -> list[Installment]:
        with _translate_errors("Query installments"):
            with self.conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [_from_row(row) for row in rows]


def _to_column(value: Any) -> Any:
    if isinstance(value, InstallmentStatus):
        return value.value
    return value


def _to_row(installment: Installment) -> dict[str, Any]:
    row = {column: _to_column(getattr(installment, column)) for column in COLUMNS}
    if row["created_at"] is None:
        row["created_at"] = datetime.now()
    return row


def _from_row(row: dict[str, Any]) -> Installment:
    data = {column: row.get(column) for column in COLUMNS}
    data["status"] = InstallmentStatus(data["status"])
    data["days_late"] = data["days_late"] or 0
    return Installment(**data)
