from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator

from .models.conversation import ConversationRecord, StepRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class _Entry:
    record: ConversationRecord
    lock: threading.Lock = field(default_factory=threading.Lock)
    evicted: bool = False


class ConversationStore:
    """Per-user memory of recently executed plan steps.

    The map lock only guards insertion and eviction of whole records; every
    read or mutation of a record happens under that user's own lock, so
    requests for different users never wait on each other.
    """

    def __init__(
        self,
        *,
        max_age: timedelta = DEFAULT_MAX_AGE,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._max_age = max_age
        self._clock = clock

    @contextmanager
    def _locked(self, user_id: str) -> Iterator[ConversationRecord]:
        while True:
            with self._lock:
                entry = self._entries.get(user_id)
                if entry is None:
                    entry = _Entry(
                        record=ConversationRecord(user_id=user_id, last_activity_at=self._clock())
                    )
                    self._entries[user_id] = entry
            with entry.lock:
                # Lost a race with sweep(); pick up a fresh record.
                if entry.evicted:
                    continue
                yield entry.record
                return

    def touch(self, user_id: str) -> None:
        with self._locked(user_id) as record:
            record.last_activity_at = self._clock()

    def append_step(
        self,
        user_id: str,
        instruction_text: str,
        *,
        succeeded: bool,
        executed_at: datetime | None = None,
    ) -> StepRecord:
        with self._locked(user_id) as record:
            step = StepRecord(
                instruction_text=instruction_text,
                succeeded=succeeded,
                executed_at=executed_at or self._clock(),
            )
            record.completed_steps.append(step)
            record.last_activity_at = step.executed_at
            return step

    def recent_steps(self, user_id: str, limit: int = 2) -> list[StepRecord]:
        with self._locked(user_id) as record:
            if limit <= 0:
                return []
            return [step.model_copy() for step in record.completed_steps[-limit:]]

    def get(self, user_id: str) -> ConversationRecord | None:
        with self._lock:
            entry = self._entries.get(user_id)
        if entry is None:
            return None
        with entry.lock:
            if entry.evicted:
                return None
            return entry.record.model_copy(deep=True)

    def sweep(self, now: datetime | None = None) -> list[str]:
        """Drop records idle for longer than ``max_age``; returns the removed ids."""
        now = _as_utc(now or self._clock())
        with self._lock:
            candidates = list(self._entries.items())
        removed: list[str] = []
        for user_id, entry in candidates:
            with entry.lock:
                if entry.evicted or now - _as_utc(entry.record.last_activity_at) <= self._max_age:
                    continue
                entry.evicted = True
                with self._lock:
                    if self._entries.get(user_id) is entry:
                        del self._entries[user_id]
            removed.append(user_id)
        if removed:
            logger.info(
                "Swept idle conversations",
                extra={"removed": len(removed), "remaining": len(self)},
            )
        return removed

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["ConversationStore", "DEFAULT_MAX_AGE", "utcnow"]
