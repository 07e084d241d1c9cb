from __future__ import annotations

import threading
from typing import List, Protocol

from .models.generation import PromptRecord


class PromptRecorder(Protocol):
    def record(self, entry: PromptRecord) -> None:
        ...


class InMemoryPromptRecorder:
    def __init__(self) -> None:
        self._records: List[PromptRecord] = []
        self._lock = threading.Lock()

    def record(self, entry: PromptRecord) -> None:
        with self._lock:
            self._records.append(entry)

    def list_records(self, user_id: str | None = None) -> list[PromptRecord]:
        with self._lock:
            if user_id is None:
                return list(self._records)
            return [entry for entry in self._records if entry.user_id == user_id]


__all__ = ["InMemoryPromptRecorder", "PromptRecorder"]
