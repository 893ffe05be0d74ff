"""Most-recent-first history of processed calculations, persisted per chat."""

from __future__ import annotations

import json
import logging

from liquidacao.calculo import storage
from liquidacao.calculo.models import Calculation, HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_KEY = "calculo-history"


def history_key(chat_id) -> str:
    return f"{HISTORY_KEY}:{chat_id}"


class HistoryStore:
    """Ordered list of HistoryEntry backed by one storage slot.

    Loaded once on creation; every mutation writes the whole list back.
    """

    def __init__(self, key: str, backend=storage):
        self.key = key
        self._backend = backend
        self._entries = self._load()

    def _load(self) -> list[HistoryEntry]:
        raw = self._backend.get_value(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("history slot is not a list")
            return [HistoryEntry.from_dict(item) for item in data]
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Discarding unreadable history in {self.key}: {e}")
            return []

    def _save(self):
        payload = json.dumps([e.to_dict() for e in self._entries], ensure_ascii=False)
        self._backend.set_value(self.key, payload)

    def all(self) -> list[HistoryEntry]:
        return list(self._entries)

    def get(self, entry_id: str) -> HistoryEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        self._entries.insert(0, entry)
        self._save()
        return entry

    def replace(self, entry_id: str, result: Calculation) -> bool:
        """Swap the result of one entry in place. Order and other entries are untouched."""
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                self._entries[i] = HistoryEntry(
                    id=entry.id,
                    filename=entry.filename,
                    result=result,
                    created_at=entry.created_at,
                    observation=entry.observation,
                )
                self._save()
                return True
        logger.warning(f"History entry {entry_id} not found in {self.key}")
        return False

    def clear(self):
        self._entries = []
        self._save()

    def __len__(self) -> int:
        return len(self._entries)
