"""Structured event logging for the chronicle and storage diagnostics."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO

from chronicles.core.clock import format_year


@dataclass
class LogEntry:
    """A single log entry."""

    year: int
    category: str
    message: str
    person_ids: list[int] = field(default_factory=list)
    data: dict = field(default_factory=dict)


class SimLogger:
    """Structured logging with categories and verbosity control."""

    # Category constants
    LIFECYCLE = "LIFECYCLE"
    MARRIAGE = "MARRIAGE"
    BIRTH = "BIRTH"
    DEATH = "DEATH"
    FAMINE = "FAMINE"
    STORAGE = "STORAGE"

    _VERBOSITY_MAP = {
        LIFECYCLE: 0,
        FAMINE: 0,
        STORAGE: 0,
        DEATH: 1,
        BIRTH: 1,
        MARRIAGE: 1,
    }

    def __init__(
        self,
        verbosity: int = 1,
        log_file: Optional[str] = None,
        stdout: bool = True,
    ) -> None:
        """
        verbosity levels:
            0 = only lifecycle, famine and storage warnings
            1 = + yearly births, deaths, marriages
        """
        self.verbosity = verbosity
        self._buffer: list[LogEntry] = []
        self._all_entries: list[LogEntry] = []
        self._file: Optional[TextIO] = None
        self._stdout = stdout

        if log_file:
            os.makedirs(os.path.dirname(log_file) if os.path.dirname(log_file) else ".", exist_ok=True)
            self._file = open(log_file, "w", encoding="utf-8")

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._all_entries)

    def log(
        self,
        category: str,
        message: str,
        person_ids: Optional[list[int]] = None,
        year: int = 0,
        **data,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            year=year,
            category=category,
            message=message,
            person_ids=person_ids or [],
            data=data,
        )
        self._buffer.append(entry)

    def warning(self, message: str, **data) -> None:
        """Report a recovered storage problem straight away, bypassing verbosity."""
        entry = LogEntry(year=0, category=self.STORAGE, message=message, data=data)
        self._all_entries.append(entry)
        line = f"[WARNING] [{self.STORAGE:<9}] {message}"
        if self._stdout:
            print(line, file=sys.stderr)
        if self._file:
            self._file.write(line + "\n")
            self._file.flush()

    def flush_year(self, year: int) -> None:
        """Write buffered logs for the year."""
        for entry in self._buffer:
            required_verbosity = self._VERBOSITY_MAP.get(entry.category, 1)
            if required_verbosity <= self.verbosity:
                line = f"[{format_year(entry.year):>8}] [{entry.category:<9}] {entry.message}"
                if self._stdout:
                    print(line)
                if self._file:
                    self._file.write(line + "\n")

        self._all_entries.extend(self._buffer)
        self._buffer.clear()

        if self._file:
            self._file.flush()

    def get_narrative(self, year: int) -> str:
        """Generate a human-readable summary of a specific year."""
        year_entries = [e for e in self._all_entries if e.year == year and e.category != self.STORAGE]
        if not year_entries:
            return f"{format_year(year)}: Nothing notable happened."

        lines = [f"=== {format_year(year)} ==="]
        for entry in year_entries:
            lines.append(f"  [{entry.category}] {entry.message}")
        return "\n".join(lines)

    def export_json(self, filepath: str) -> None:
        """Export all log entries to JSON."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        data = [
            {
                "year": e.year,
                "category": e.category,
                "message": e.message,
                "person_ids": e.person_ids,
                "data": e.data,
            }
            for e in self._all_entries
        ]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None
