"""Conversation store tests."""

import threading
from datetime import datetime, timedelta

from section_orchestrator.conversation_store import ConversationStore


def test_record_created_lazily(store, clock):
    """A record exists only after the first touch."""
    assert "u1" not in store
    assert store.get("u1") is None

    store.touch("u1")

    record = store.get("u1")
    assert record.user_id == "u1"
    assert record.completed_steps == []
    assert record.last_activity_at == clock.now


def test_append_updates_activity_and_history(store, clock):
    """Appends keep order and refresh the activity timestamp."""
    store.append_step("u1", "nav", succeeded=True)
    clock.advance(minutes=5)
    store.append_step("u1", "hero", succeeded=False)

    record = store.get("u1")
    assert [(s.instruction_text, s.succeeded) for s in record.completed_steps] == [
        ("nav", True),
        ("hero", False),
    ]
    assert record.last_activity_at == clock.now


def test_recent_steps_returns_copies(store):
    """recent_steps returns the last N entries without exposing internals."""
    for name in ("a", "b", "c"):
        store.append_step("u1", name, succeeded=True)

    recent = store.recent_steps("u1", 2)
    recent.clear()

    assert [s.instruction_text for s in store.recent_steps("u1", 2)] == ["b", "c"]
    assert store.recent_steps("u1", 0) == []


def test_sweep_removes_only_expired_records(store, clock):
    """A record idle for 25h is swept; one idle for 1h survives."""
    store.touch("stale")
    clock.advance(hours=24)
    store.touch("fresh")
    clock.advance(hours=1)

    removed = store.sweep()

    assert removed == ["stale"]
    assert "stale" not in store
    assert "fresh" in store


def test_sweep_accepts_explicit_now(clock):
    """The sweep time can be supplied by the scheduler."""
    store = ConversationStore(max_age=timedelta(hours=24), clock=clock)
    store.touch("u1")

    assert store.sweep(now=clock.now + timedelta(hours=1)) == []
    assert store.sweep(now=clock.now + timedelta(hours=25)) == ["u1"]
    assert len(store) == 0


def test_sweep_accepts_naive_now(clock):
    """A naive sweep time is read as UTC."""
    store = ConversationStore(max_age=timedelta(hours=24), clock=clock)
    store.touch("u1")
    naive_now = clock.now.replace(tzinfo=None)

    assert store.sweep(now=naive_now + timedelta(hours=1)) == []
    assert store.sweep(now=naive_now + timedelta(hours=25)) == ["u1"]


def test_sweep_with_naive_clock():
    """Records stamped by a naive clock can still be swept."""
    now = datetime(2025, 1, 1, 12, 0)
    store = ConversationStore(max_age=timedelta(hours=24), clock=lambda: now)
    store.touch("u1")

    assert store.sweep(now=now + timedelta(hours=25)) == ["u1"]


def test_record_recreated_after_sweep(store, clock):
    """A swept user starts over with an empty record."""
    store.append_step("u1", "old", succeeded=True)
    clock.advance(hours=30)
    store.sweep()

    store.append_step("u1", "new", succeeded=True)

    assert [s.instruction_text for s in store.get("u1").completed_steps] == ["new"]


def test_concurrent_appends_are_not_lost(store):
    """Parallel appends for one user and for many users all land."""
    def worker(user_id):
        for index in range(50):
            store.append_step(user_id, f"step-{index}", succeeded=True)

    threads = [threading.Thread(target=worker, args=(uid,)) for uid in ("same", "same", "a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.get("same").completed_steps) == 100
    assert len(store.get("a").completed_steps) == 50
    assert len(store.get("b").completed_steps) == 50


def test_sweep_concurrent_with_appends(clock):
    """Sweeping while another user appends never loses the active user's record."""
    store = ConversationStore(clock=clock)
    store.touch("idle")
    clock.advance(hours=25)

    def appender():
        for index in range(200):
            store.append_step("active", f"s{index}", succeeded=True)

    thread = threading.Thread(target=appender)
    thread.start()
    for _ in range(20):
        store.sweep()
    thread.join()

    assert "idle" not in store
    assert len(store.get("active").completed_steps) == 200
