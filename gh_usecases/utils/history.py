"""Bounded log of what the user typed and picked during a session.

The error display appends the most recent entries so a failure can be
reproduced. Only the last ``max_entries`` interactions are kept.
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime

from gh_usecases.enums import InteractionType

DEFAULT_MAX_ENTRIES = 50


@dataclass(frozen=True)
class InteractionEntry:
    timestamp: datetime
    type: InteractionType
    label: str
    value: str

    def format(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.label}: {self.value}"


class InteractionHistory:
    """Ring buffer of interaction entries, oldest first."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: deque[InteractionEntry] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    def record(self, type: InteractionType, label: str, value: str) -> InteractionEntry:
        entry = InteractionEntry(timestamp=datetime.now(), type=type, label=label, value=value)
        self._entries.append(entry)
        return entry

    def entries(self) -> list[InteractionEntry]:
        return list(self._entries)

    def last(self, count: int = 5) -> list[InteractionEntry]:
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def formatted(self, count: int | None = None) -> list[str]:
        entries = self.entries() if count is None else self.last(count)
        return [entry.format() for entry in entries]

    def clear(self) -> None:
        self._entries.clear()
