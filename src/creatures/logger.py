"""Append-only JSONL log of registry events.

One JSON object per line, each with a UTC timestamp and a per-logger
``sequence`` number so events can be ordered even when timestamps tie.

Two layouts:
- single file: ``output_file`` (default ``logging.output_file``),
  truncated when the logger is created
- per run: ``{logs_dir}/{run_id}/events.jsonl``, with a ``latest``
  symlink in ``logs_dir`` pointing at the newest run
"""

from __future__ import annotations

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import get
from .events import RegistryEvent

EVENTS_FILENAME = "events.jsonl"


def _point_latest_at(logs_dir: Path, run_id: str) -> None:
    latest = logs_dir / "latest"
    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.is_dir():
        shutil.rmtree(latest)
    latest.symlink_to(run_id)


class EventLogger:
    """EventSink writing RegistryEvents to a JSONL file."""

    def __init__(
        self,
        output_file: str | None = None,
        logs_dir: str | None = None,
        run_id: str | None = None,
    ) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else None
        self._run_id = run_id
        self._sequence = 0

        if self._logs_dir is not None and run_id:
            run_dir = self._logs_dir / run_id
            run_dir.mkdir(parents=True, exist_ok=True)
            self.output_path = run_dir / EVENTS_FILENAME
            _point_latest_at(self._logs_dir, run_id)
        else:
            self.output_path = Path(output_file or get("logging.output_file", EVENTS_FILENAME))
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text("")

    @property
    def run_id(self) -> str | None:
        return self._run_id

    @property
    def logs_dir(self) -> Path | None:
        return self._logs_dir

    def log(self, event_type: str, data: dict[str, Any]) -> None:
        """Append one event line."""
        self._sequence += 1
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "sequence": self._sequence,
            "event_type": event_type,
            **data,
        }
        with open(self.output_path, "a") as f:
            f.write(json.dumps(record) + "\n")

    def notify(self, event: RegistryEvent) -> None:
        self.log(event.event_type.value, event.data)

    def read_recent(self, n: int | None = None) -> list[dict[str, Any]]:
        """The last ``n`` events, oldest first (default ``logging.default_recent``)."""
        if n is None:
            n = int(get("logging.default_recent", 50))
        if not self.output_path.exists():
            return []
        with open(self.output_path) as f:
            lines = [line for line in f if line.strip()]
        return [json.loads(line) for line in lines[-n:]]
