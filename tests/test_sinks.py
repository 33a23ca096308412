"""Tests for output sinks."""

import json
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from installment_engine.config import KafkaConfig
from installment_engine.engine import generate_installments
from installment_engine.exceptions import SinkError
from installment_engine.models.base import Event
from installment_engine.models.billing import InstallmentStatus
from installment_engine.sinks import ConsoleSink, JsonFileSink, KafkaSink
from installment_engine.sinks.kafka import ProducerStats
from installment_engine.sinks.serialization import serialize_value, to_dict


@pytest.fixture
def event() -> Event:
    return Event(
        event_id="evt-1",
        event_type="installment.paid",
        event_time=datetime(2024, 1, 15, 10, 0),
        source="installment-engine",
        subject="ctr-test-001",
        data={"contract_ids": ["ctr-test-001"], "installment_ids": ["inst-1"]},
    )


class TestSerialization:
    """Tests for to_dict and serialize_value."""

    def test_decimal_keeps_cents(self) -> None:
        """Test decimal keeps cents."""
        assert serialize_value(Decimal("200.10")) == "200.10"

    def test_enum_and_dates(self) -> None:
        """Test enum and dates."""
        assert serialize_value(InstallmentStatus.LATE) == "LATE"
        assert serialize_value(date(2024, 2, 29)) == "2024-02-29"
        assert serialize_value(datetime(2024, 1, 1, 9, 30)) == "2024-01-01T09:30:00"

    def test_nested_collections(self) -> None:
        """Test nested collections."""
        assert serialize_value({"ids": ("a", "b"), "when": [date(2024, 1, 1)]}) == {
            "ids": ["a", "b"],
            "when": ["2024-01-01"],
        }

    def test_dataclass(self, event: Event) -> None:
        """Test dataclass."""
        data = to_dict(event)

        assert data["event_time"] == "2024-01-15T10:00:00"
        assert data["data"]["installment_ids"] == ["inst-1"]
        assert data["metadata"] == {}

    def test_installment(self, contract, today) -> None:
        """Test installment."""
        data = to_dict(generate_installments(contract, today)[0])

        assert data["amount"] == "200.00"
        assert data["status"] == "PENDING"
        assert data["due_date"] == "2024-01-15"

    def test_other_values(self) -> None:
        """Test other values."""
        assert to_dict(42) == {"value": "42"}


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_write_batch_pretty(self, capsys, event: Event) -> None:
        """Test write batch pretty."""
        sink = ConsoleSink()

        sink.write_batch("changes", [event])

        out = capsys.readouterr().out
        assert "--- changes (1 records)" in out
        assert '"event_id": "evt-1"' in out

    def test_compact_event_line(self, capsys, event: Event) -> None:
        """Test compact event line."""
        sink = ConsoleSink(pretty=False)

        sink.write_batch("changes", [event, {"contract_id": "ctr-9"}])

        out = capsys.readouterr().out
        assert "installment.paid ctr-test-001 ids=1" in out
        assert '{"contract_id": "ctr-9"}' in out

    def test_max_records(self, capsys, event: Event) -> None:
        """Test max records."""
        sink = ConsoleSink(max_records=1)

        sink.write_batch("changes", [event, event, event])

        assert "... and 2 more records" in capsys.readouterr().out

    def test_close_prints_counts(self, capsys, event: Event) -> None:
        """Test close prints counts."""
        sink = ConsoleSink()
        sink.write_batch("changes", [event])
        sink.write_batch("changes", [event])

        sink.close()

        out = capsys.readouterr().out
        assert "changes: 2 records" in out
        assert "installment.paid: 2" in out
        assert sink.event_types["installment.paid"] == 2


class TestJsonFileSink:
    """Tests for JsonFileSink."""

    def test_path_for(self, tmp_path) -> None:
        """Test path for."""
        sink = JsonFileSink(tmp_path)

        assert sink.path_for("billing.installment-changes") == tmp_path / "billing_installment_changes.jsonl"

    def test_appends_json_lines(self, tmp_path, event: Event) -> None:
        """Test appends json lines."""
        sink = JsonFileSink(tmp_path / "out")

        sink.write_batch("changes", [event])
        sink.write_batch("changes", [event])

        lines = (tmp_path / "out" / "changes.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["subject"] == "ctr-test-001"

    def test_close_logs_counts(self, tmp_path, event: Event, caplog) -> None:
        """Test close logs counts."""
        sink = JsonFileSink(tmp_path)
        sink.write_batch("changes", [event])

        with caplog.at_level("INFO"):
            sink.close()

        assert "changes: 1 records" in caplog.text


class TestKafkaSink:
    """Tests for KafkaSink with a mocked producer."""

    @pytest.fixture
    def producer(self):
        with patch("installment_engine.sinks.kafka.Producer") as producer_cls:
            producer = producer_cls.return_value
            producer.flush.return_value = 0
            yield producer

    def test_config_from_string(self, producer) -> None:
        """Test config from string."""
        sink = KafkaSink("kafka:9092")

        assert sink.config.bootstrap_servers == "kafka:9092"

    def test_producer_config(self) -> None:
        """Test producer config."""
        with patch("installment_engine.sinks.kafka.Producer") as producer_cls:
            KafkaSink(KafkaConfig(bootstrap_servers="kafka:9092", acks="1"))

        config = producer_cls.call_args[0][0]
        assert config["bootstrap.servers"] == "kafka:9092"
        assert config["acks"] == "1"

    def test_send_keys_by_subject(self, producer, event: Event) -> None:
        """Test send keys by subject."""
        sink = KafkaSink("kafka:9092")

        sink.send("changes", event)

        kwargs = producer.produce.call_args.kwargs
        assert kwargs["topic"] == "changes"
        assert kwargs["key"] == b"ctr-test-001"
        assert json.loads(kwargs["value"])["event_type"] == "installment.paid"
        assert sink.stats.sent == 1
        producer.poll.assert_called_with(0)

    def test_key_from_dict(self, producer) -> None:
        """Test key from dict."""
        sink = KafkaSink("kafka:9092")

        assert sink._get_key({"contract_id": "ctr-9"}) == "ctr-9"
        assert sink._get_key({"other": 1}) is None
        assert sink._get_key("plain") is None

    def test_delivery_callback(self, producer) -> None:
        """Test delivery callback."""
        sink = KafkaSink("kafka:9092")
        msg = MagicMock()
        msg.partition.return_value = 0
        msg.offset.return_value = 1

        sink._delivery_callback(None, msg)
        sink._delivery_callback("timeout", None)

        assert sink.stats.delivered == 1
        assert sink.stats.failed == 1
        assert sink.stats.success_rate == 0.5

    def test_write_batch_flushes(self, producer, event: Event) -> None:
        """Test write batch flushes."""
        sink = KafkaSink("kafka:9092", flush_timeout=2.0)

        sink.write_batch("changes", [event, event])

        assert producer.produce.call_count == 2
        producer.flush.assert_called_with(2.0)

    def test_write_batch_pending_messages(self, producer, event: Event) -> None:
        """Test write batch pending messages."""
        producer.flush.return_value = 1
        sink = KafkaSink("kafka:9092")

        with pytest.raises(SinkError, match="1 still queued"):
            sink.write_batch("changes", [event])

    def test_write_batch_delivery_failure(self, producer, event: Event) -> None:
        """Test write batch delivery failure."""
        sink = KafkaSink("kafka:9092")
        producer.flush.side_effect = lambda timeout: sink._delivery_callback("broker down", None) or 0

        with pytest.raises(SinkError, match="1 failed"):
            sink.write_batch("changes", [event])

    def test_close_flushes(self, producer) -> None:
        """Test close flushes."""
        KafkaSink("kafka:9092").close()

        producer.flush.assert_called_once()

    def test_success_rate_without_deliveries(self) -> None:
        """Test success rate without deliveries."""
        assert ProducerStats().success_rate == 0.0
