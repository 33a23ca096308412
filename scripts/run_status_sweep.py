#!/usr/bin/env python3
"""Refresh installment statuses stored in PostgreSQL.

Runs one sweep and exits with --once, otherwise keeps sweeping every
SWEEP_INTERVAL_SECONDS until interrupted. Change events go to Kafka
(--sink kafka) or are printed (--sink console).
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from installment_engine.config import EngineConfig
from installment_engine.exceptions import InstallmentEngineError
from installment_engine.logging import configure_logging
from installment_engine.sinks import ConsoleSink, KafkaSink
from installment_engine.store import InstallmentStore
from installment_engine.store.postgres import PostgresInstallmentRepository
from installment_engine.sweeper import StatusSweeper

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the installment status sweep")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument(
        "--sink",
        choices=["console", "kafka"],
        default="console",
        help="Where change events are published",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between sweeps (default: SWEEP_INTERVAL_SECONDS)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    config = EngineConfig.from_env()
    configure_logging(config)

    sink = KafkaSink(config.kafka) if args.sink == "kafka" else ConsoleSink(max_records=5)
    repository = PostgresInstallmentRepository(config.postgres.connection_string)
    store = InstallmentStore.from_config(repository, config, sinks=[sink])

    try:
        repository.create_tables()
        if args.once:
            changed = store.sweep()
            logger.info("Sweep updated %d installments", len(changed))
            return 0

        sweeper = StatusSweeper(store, args.interval or config.sweep_interval_seconds)
        stop_requested = threading.Event()
        original_sigint = signal.getsignal(signal.SIGINT)

        def _signal_handler(signum: int, frame: object) -> None:
            logger.info("Shutdown requested, waiting for the current sweep...")
            stop_requested.set()

        signal.signal(signal.SIGINT, _signal_handler)
        try:
            sweeper.start()
            stop_requested.wait()
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            sweeper.stop()
        return 0
    except InstallmentEngineError:
        logger.exception("Status sweep aborted")
        return 1
    finally:
        sink.close()
        repository.close()


if __name__ == "__main__":
    sys.exit(main())
