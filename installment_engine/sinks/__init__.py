"""Output sinks for installment change events."""

from installment_engine.sinks.console import ConsoleSink
from installment_engine.sinks.json_file import JsonFileSink
from installment_engine.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
