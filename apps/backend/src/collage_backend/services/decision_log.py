"""In-memory interaction log with CSV export."""

from __future__ import annotations

import csv
import io
import logging
import threading

from collage_shared.protocol import DecisionRow

logger = logging.getLogger(__name__)

CSV_HEADER = ["timestamp", "user_decision", "prompts", "internal_explanations"]


class DecisionLog:
    """Accepted / skipped recommendation sets, in arrival order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: list[DecisionRow] = []

    def record(self, row: DecisionRow) -> None:
        with self._lock:
            self._rows.append(row)
        logger.info("Logged decision %s", row.decision.value)

    def rows(self) -> list[DecisionRow]:
        with self._lock:
            return list(self._rows)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def to_csv(self) -> str:
        """Every field quoted, embedded quotes doubled, rows joined by newline."""
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for row in self.rows():
            writer.writerow(row.as_row())
        return buf.getvalue().rstrip("\n")
