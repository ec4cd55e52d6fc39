import json
import logging
import os
from typing import Iterable, Protocol

from job_finder.config import LEDGER_CAPACITY, LEDGER_PATH

logger = logging.getLogger(__name__)

DEFAULT_EXCLUSION_SAMPLE = 50


class DedupLedger:
    """Bounded, ordered memory of company names already shown to the user.

    Membership is exact-string and case-sensitive. The ledger is a hint for the
    next plan's exclusion list, not a filter this package enforces.
    """

    def __init__(self, capacity: int = LEDGER_CAPACITY, entries: Iterable[str] = ()) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: list[str] = []
        self.add(entries)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def add(self, names: Iterable[str]) -> None:
        """Append names, moving repeats to the most recent end, then evict the oldest."""
        for name in names:
            if not isinstance(name, str) or not name:
                continue
            if name in self._entries:
                self._entries.remove(name)
            self._entries.append(name)
        overflow = len(self._entries) - self.capacity
        if overflow > 0:
            del self._entries[:overflow]

    def recent_sample(self, n: int = DEFAULT_EXCLUSION_SAMPLE) -> list[str]:
        if n <= 0:
            return []
        return self._entries[-n:]

    def clear(self) -> None:
        self._entries.clear()


class LedgerStore(Protocol):
    def load(self) -> DedupLedger: ...

    def save(self, ledger: DedupLedger) -> None: ...


class InMemoryLedgerStore:
    def __init__(self, entries: Iterable[str] = (), capacity: int = LEDGER_CAPACITY) -> None:
        self.capacity = capacity
        self.saved: list[str] = list(entries)
        self.save_count = 0

    def load(self) -> DedupLedger:
        return DedupLedger(self.capacity, self.saved)

    def save(self, ledger: DedupLedger) -> None:
        self.saved = ledger.entries
        self.save_count += 1


class JsonLedgerStore:
    """Persists the ledger as a JSON list of strings in a single file."""

    def __init__(self, path: str = LEDGER_PATH, capacity: int = LEDGER_CAPACITY) -> None:
        self.path = path
        self.capacity = capacity

    def load(self) -> DedupLedger:
        if not os.path.exists(self.path):
            return DedupLedger(self.capacity)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load history from {self.path}: {e}")
            return DedupLedger(self.capacity)
        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed history in {self.path}: expected a list")
            return DedupLedger(self.capacity)
        return DedupLedger(self.capacity, [item for item in data if isinstance(item, str)])

    def save(self, ledger: DedupLedger) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(ledger.entries, f, ensure_ascii=False, indent=2)
        logger.info(f"History saved to {self.path}: {len(ledger)} entries")
