#!/usr/bin/env python3
"""Seed sample contracts and their installment plans.

Generates Faker clients and contracts, builds each plan through the
installment store, registers a few payments, and writes everything as
JSON Lines files (one per topic) for manual inspection. With --postgres
the installments are also persisted to the configured database.
"""

import argparse
import logging
import random
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from installment_engine.config import EngineConfig
from installment_engine.exceptions import InstallmentEngineError
from installment_engine.generators import ContractGenerator
from installment_engine.logging import configure_logging
from installment_engine.sinks import JsonFileSink
from installment_engine.store import InMemoryInstallmentRepository, InstallmentStore
from installment_engine.store.postgres import PostgresInstallmentRepository

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed sample contracts and installments")
    parser.add_argument("--contracts", type=int, default=20, help="Number of contracts to generate")
    parser.add_argument("--clients", type=int, default=8, help="Number of distinct clients")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--pay-ratio",
        type=float,
        default=0.3,
        help="Share of contracts whose first installment gets paid",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=project_root / "local",
        help="Directory for the JSON Lines files",
    )
    parser.add_argument(
        "--postgres",
        action="store_true",
        help="Persist installments to PostgreSQL (POSTGRES_* environment variables)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    config = EngineConfig.from_env()
    configure_logging(config)

    if args.postgres:
        repository = PostgresInstallmentRepository(config.postgres.connection_string)
        repository.create_tables()
    else:
        repository = InMemoryInstallmentRepository()

    sink = JsonFileSink(args.output_dir)
    store = InstallmentStore.from_config(repository, config, sinks=[sink])
    generator = ContractGenerator(seed=args.seed, client_pool_size=args.clients)
    rng = random.Random(args.seed)
    today = date.today()

    contracts = list(generator.generate_batch(args.contracts, today))
    sink.write_batch("contracts", contracts)

    installments = []
    try:
        for contract in contracts:
            plan = store.generate(contract)
            if rng.random() < args.pay_ratio:
                first = plan[0]
                store.register_payment(first.installment_id, first.amount, first.due_date)
            installments.extend(store.list_by_contract(contract.contract_id))
    except InstallmentEngineError:
        logger.exception("Seeding stopped")
        return 1
    finally:
        if args.postgres:
            repository.close()

    sink.write_batch("installments", installments)
    sink.close()
    logger.info("Seeded %d contracts with %d installments", len(contracts), len(installments))
    return 0


if __name__ == "__main__":
    sys.exit(main())
