"""A simulated data logger that stores rows of labelled values."""

from __future__ import annotations

import enum
import errno
import os
import time
from collections.abc import Callable, Mapping
from typing import Any


class Timestamp(enum.Enum):
    """Units for the automatic timestamp column."""

    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @property
    def seconds(self) -> float:
        """Length of one unit in seconds."""
        return _UNIT_SECONDS[self]

    @property
    def label(self) -> str:
        """Heading of the timestamp column."""
        return f"Time ({self.value})"


_UNIT_SECONDS = {
    Timestamp.MILLISECONDS: 0.001,
    Timestamp.SECONDS: 1.0,
    Timestamp.MINUTES: 60.0,
    Timestamp.HOURS: 3600.0,
    Timestamp.DAYS: 86400.0,
}


def _no_space() -> OSError:
    return OSError(errno.ENOSPC, os.strerror(errno.ENOSPC))


def _text(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a str, not {type(value).__name__}")
    return value


class DataLog:
    """A log of rows, each a set of values under named columns.

    ``columns`` lists the column headings in order of first appearance.
    With mirroring on, every stored row is also appended, as a CSV line, to
    ``mirrored``.  ``clock`` returns the elapsed time in seconds.
    """

    def __init__(self, capacity: int = 1024 * 1024) -> None:
        self.capacity = capacity
        self.columns: list[str] = []
        self._rows: list[dict[str, str]] = []
        self.timestamp: Timestamp | None = Timestamp.SECONDS
        self.mirroring = False
        self.mirrored: list[str] = []
        self.erased_fully = False
        start = time.monotonic()
        self.clock: Callable[[], float] = lambda: time.monotonic() - start

    def set_labels(self, *args: str, timestamp: Timestamp | None = Timestamp.SECONDS) -> None:
        """Set the timestamp unit (None for none) and add column headings."""
        self.timestamp = None if timestamp is None else Timestamp(timestamp)
        if args:
            self._store_row([(_text(label, "label"), "") for label in args])

    def set_mirroring(self, serial: Any) -> None:
        """Turn copying of each row to the serial output on or off."""
        self.mirroring = bool(serial)

    def delete(self, full: bool = False) -> None:
        """Erase the log; ``full`` asks for a full rather than a quick erase."""
        self.columns.clear()
        self._rows.clear()
        self.erased_fully = bool(full)

    def add(self, data: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        """Add a row from a dict or from keyword arguments."""
        if data is None:
            items = kwargs
        elif isinstance(data, Mapping):
            items = data
        else:
            raise ValueError("expecting a dict")
        entries = []
        for key, value in items.items():
            key = _text(key, "key")
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            entries.append((key, _text(value, "value")))
        self._store_row(entries)

    def rows(self) -> list[dict[str, str]]:
        """Return the stored rows, each with every column (missing values empty)."""
        return [{column: row.get(column, "") for column in self.columns} for row in self._rows]

    def _timestamp_value(self) -> str:
        assert self.timestamp is not None
        amount = self.clock() / self.timestamp.seconds
        if self.timestamp is Timestamp.MILLISECONDS:
            return str(int(amount))
        return f"{amount:.2f}"

    def _store_row(self, entries: list[tuple[str, str]]) -> None:
        columns = list(self.columns)
        row: dict[str, str] = {}
        has_data = any(value for _, value in entries)
        if has_data and self.timestamp is not None:
            entries = [(self.timestamp.label, self._timestamp_value()), *entries]
        for key, value in entries:
            if key not in columns:
                columns.append(key)
            row[key] = value
        rows = self._rows + [row] if has_data else self._rows
        if self._size(columns, rows) > self.capacity:
            raise _no_space()
        self.columns = columns
        if has_data:
            self._rows.append(row)
            if self.mirroring:
                self.mirrored.append(",".join(row.get(c, "") for c in columns))

    @staticmethod
    def _size(columns: list[str], rows: list[dict[str, str]]) -> int:
        size = len(",".join(columns)) + 1
        for row in rows:
            size += len(",".join(row.get(c, "") for c in columns)) + 1
        return size