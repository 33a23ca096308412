"""JSON Lines file sink."""

import json
import logging
from pathlib import Path
from typing import Any

from installment_engine.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Append records to one JSON Lines file per topic."""

    def __init__(self, output_dir: str | Path) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write ``<topic>.jsonl`` files to.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._counts: dict[str, int] = {}

    def path_for(self, topic: str) -> Path:
        """File a topic is written to (dots and dashes become underscores)."""
        filename = topic.replace(".", "_").replace("-", "_") + ".jsonl"
        return self.output_dir / filename

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Append a batch of records to the topic file."""
        with open(self.path_for(topic), "a", encoding="utf-8") as f:
            for record in records:
                f.write(json.dumps(to_dict(record), ensure_ascii=False) + "\n")

        self._counts[topic] = self._counts.get(topic, 0) + len(records)

    def close(self) -> None:
        """Log summary."""
        logger.info("JSON files written to: %s", self.output_dir)
        for topic, count in self._counts.items():
            logger.info("  %s: %d records", topic, count)
