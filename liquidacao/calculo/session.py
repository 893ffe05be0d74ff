"""Per-chat state: queued files, form inputs, current result and edit mode."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

import config
from liquidacao.calculo.history import HistoryStore
from liquidacao.calculo.models import Calculation, HistoryEntry
from liquidacao.calculo.recalculate import recalculate
from liquidacao.calculo.uploads import QueuedFile


@dataclass
class CalculationSession:
    history: HistoryStore
    queue: list[QueuedFile] = field(default_factory=list)
    instructions: str = ""
    employer_percentage: str = field(default_factory=lambda: config.DEFAULT_EMPLOYER_CHARGE_PERCENT)
    model_variant: str = field(default_factory=lambda: config.DEFAULT_MODEL_VARIANT)

    current: Calculation | None = None
    current_entry_id: str | None = None
    editing: bool = False
    snapshot: Calculation | None = None

    @property
    def current_entry(self) -> HistoryEntry | None:
        if self.current_entry_id is None:
            return None
        return self.history.get(self.current_entry_id)

    def select_entry(self, entry: HistoryEntry):
        self.editing = False
        self.snapshot = None
        self.current = copy.deepcopy(entry.result)
        self.current_entry_id = entry.id

    def start_edit(self) -> bool:
        if self.current is None:
            return False
        self.snapshot = copy.deepcopy(self.current)
        # totals shown while editing are always derived from the line items
        self.current, _ = recalculate(self.current)
        self.editing = True
        return True

    def cancel_edit(self):
        if self.snapshot is not None:
            self.current = self.snapshot
        self.editing = False
        self.snapshot = None

    def save_edit(self) -> bool:
        """Write the edited result back over its history entry."""
        saved = False
        if self.current is not None and self.current_entry_id:
            saved = self.history.replace(self.current_entry_id, self.current)
        self.editing = False
        self.snapshot = None
        return saved

    def clear_selection(self):
        self.queue = []
        self.current = None
        self.current_entry_id = None
        self.editing = False
        self.snapshot = None
        self.instructions = ""

    def reset_inputs(self):
        """Form inputs are one-shot: cleared after every batch."""
        self.instructions = ""
