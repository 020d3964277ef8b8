"""
Historical data read interface.

The trend analyzer consumes history through ``HistoryProvider``; real
stores and the demo simulator both sit behind it.
"""

from typing import Iterable, Protocol

from riskboard.schemas.scoring import HistoricalRiskData


class HistoryProvider(Protocol):
    def load_history(self) -> list[HistoricalRiskData]:
        """Daily entries, oldest first."""
        ...


class InMemoryHistoryProvider:
    """History held in memory, kept sorted by date."""

    def __init__(self, entries: Iterable[HistoricalRiskData] = ()):
        self._entries: list[HistoricalRiskData] = sorted(entries, key=lambda d: d.date)

    def load_history(self) -> list[HistoricalRiskData]:
        return list(self._entries)

    def append(self, entry: HistoricalRiskData) -> None:
        """Add a day. A second entry for an existing date replaces it."""
        self._entries = [e for e in self._entries if e.date != entry.date]
        self._entries.append(entry)
        self._entries.sort(key=lambda d: d.date)
