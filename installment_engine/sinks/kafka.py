"""Kafka sink for publishing installment change events."""

import json
import logging
from dataclasses import dataclass, is_dataclass
from typing import Any

from confluent_kafka import Producer

from installment_engine.config import KafkaConfig
from installment_engine.exceptions import SinkError
from installment_engine.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0


class KafkaSink:
    """Publish records to Kafka topics.

    Change events are keyed by their subject (the contract id) so every
    change of a contract lands on the same partition, in order.
    """

    # Record attribute used as message key, checked in order
    KEY_FIELDS = ("subject", "contract_id")

    def __init__(self, config: KafkaConfig | str, flush_timeout: float = 30.0) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        flush_timeout : float
            Seconds to wait for delivery at the end of each batch.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.flush_timeout = flush_timeout
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats()

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def _get_key(self, record: Any) -> str | None:
        """Extract message key from record."""
        for key_field in self.KEY_FIELDS:
            if is_dataclass(record):
                value = getattr(record, key_field, None)
            elif isinstance(record, dict):
                value = record.get(key_field)
            else:
                value = None
            if value:
                return str(value)
        return None

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Send a single record to Kafka topic."""
        value = json.dumps(to_dict(record), ensure_ascii=False).encode("utf-8")

        if key is None:
            key = self._get_key(record)

        self.producer.produce(
            topic=topic,
            key=key.encode("utf-8") if key else None,
            value=value,
            callback=self._delivery_callback,
        )
        self.stats.sent += 1
        self.producer.poll(0)

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Send a batch of records and wait for delivery.

        Raises
        ------
        SinkError
            If any record of the batch failed delivery or is still queued
            after the flush timeout.
        """
        failed_before = self.stats.failed

        for record in records:
            self.send(topic, record)

        pending = self.flush()
        failed = self.stats.failed - failed_before

        if failed or pending:
            raise SinkError(
                f"Kafka batch to {topic} incomplete: {failed} failed, {pending} still queued"
            )
        logger.debug("Batch to %s delivered: %d records", topic, len(records))

    def flush(self) -> int:
        """Flush pending messages. Returns the number still queued."""
        return self.producer.flush(self.flush_timeout)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
