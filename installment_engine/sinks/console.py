"""Console sink for watching change events during development."""

import json
from collections import Counter
from typing import Any

from installment_engine.sinks.serialization import to_dict


class ConsoleSink:
    """Print records to stdout.

    Parameters
    ----------
    pretty : bool
        Indent each JSON record. When False every record is a single
        ``event_type subject ids=N`` line, which is easier to follow while a
        sweeper is running.
    max_records : int | None
        Maximum records printed per batch (None for all).
    """

    def __init__(self, pretty: bool = True, max_records: int | None = None) -> None:
        self.pretty = pretty
        self.max_records = max_records
        self.topics: Counter[str] = Counter()
        self.event_types: Counter[str] = Counter()

    def write_batch(self, topic: str, records: list[Any]) -> None:
        print(f"--- {topic} ({len(records)} records)")

        shown = records if self.max_records is None else records[: self.max_records]
        for record in shown:
            data = to_dict(record)
            if self.pretty:
                print(json.dumps(data, indent=2, ensure_ascii=False))
            else:
                print(_one_line(data))

        hidden = len(records) - len(shown)
        if hidden > 0:
            print(f"... and {hidden} more records")

        self.topics[topic] += len(records)
        for record in records:
            event_type = getattr(record, "event_type", None)
            if event_type:
                self.event_types[event_type] += 1

    def close(self) -> None:
        """Print per-topic and per-event-type totals."""
        print("--- console sink summary")
        for topic, count in self.topics.items():
            print(f"  {topic}: {count} records")
        for event_type, count in self.event_types.most_common():
            print(f"  {event_type}: {count}")


def _one_line(data: dict[str, Any]) -> str:
    if "event_type" not in data:
        return json.dumps(data, ensure_ascii=False)
    ids = data.get("data", {}).get("installment_ids", [])
    return f"{data['event_type']} {data.get('subject')} ids={len(ids)}"
