"""
Tests for the in-memory session store and its expiry sweep.
"""
import asyncio
from datetime import datetime, timedelta

import pytest

from utils.session_store import SessionStore, run_periodic_sweep


def test_get_or_create_returns_same_session():
    store = SessionStore()
    first = store.get_or_create("conv-1")
    second = store.get_or_create("conv-1")

    assert first is second
    assert first.mode == "idle"
    assert first.step == 0
    assert first.ticket.is_empty()
    assert len(store) == 1


def test_get_or_create_generates_an_id_when_missing():
    store = SessionStore()
    session = store.get_or_create(None)

    assert session.session_id
    assert session.session_id in store


def test_get_or_create_refreshes_last_seen():
    store = SessionStore()
    session = store.get_or_create("conv-1")
    session.last_seen_at = datetime.now() - timedelta(hours=1)

    store.get_or_create("conv-1")

    assert datetime.now() - session.last_seen_at < timedelta(minutes=1)


def test_get_does_not_create():
    store = SessionStore()
    assert store.get("missing") is None
    assert len(store) == 0


def test_reset_returns_session_to_idle_with_empty_ticket():
    store = SessionStore()
    session = store.get_or_create("conv-1")
    session.switch_mode("network")
    session.step = 2
    session.ticket.capture_issue("wifi drops")

    store.reset(session)

    assert session.mode == "idle"
    assert session.step == 0
    assert session.ticket.is_empty()
    assert "conv-1" in store


def test_clear():
    store = SessionStore()
    store.get_or_create("conv-1")

    assert store.clear("conv-1") is True
    assert store.clear("conv-1") is False


def test_sweep_removes_only_idle_sessions():
    store = SessionStore(ttl=timedelta(minutes=45))
    now = datetime.now()
    stale = store.get_or_create("stale")
    fresh = store.get_or_create("fresh")
    stale.last_seen_at = now - timedelta(minutes=50)
    fresh.last_seen_at = now - timedelta(minutes=10)

    removed = store.sweep_expired(now=now)

    assert removed == 1
    assert "stale" not in store
    assert "fresh" in store


def test_expired_session_comes_back_fresh():
    store = SessionStore(ttl=timedelta(minutes=45))
    session = store.get_or_create("conv-1")
    session.switch_mode("windows")
    session.ticket.capture_issue("blue screen")
    session.last_seen_at = datetime.now() - timedelta(minutes=50)

    store.sweep_expired()
    again = store.get_or_create("conv-1")

    assert again is not session
    assert again.mode == "idle"
    assert again.ticket.issue == ""


def test_sweep_with_explicit_ttl():
    store = SessionStore(ttl=timedelta(minutes=45))
    session = store.get_or_create("conv-1")
    session.last_seen_at = datetime.now() - timedelta(minutes=5)

    assert store.sweep_expired(ttl=timedelta(minutes=1)) == 1


def test_least_recently_used_session_is_evicted_when_full():
    store = SessionStore(max_sessions=2)
    store.get_or_create("a")
    store.get_or_create("b")
    store.get_or_create("a")
    store.get_or_create("c")

    assert "a" in store
    assert "b" not in store
    assert "c" in store


@pytest.mark.asyncio
async def test_periodic_sweep_runs_until_cancelled():
    store = SessionStore(ttl=timedelta(minutes=45))
    session = store.get_or_create("stale")
    session.last_seen_at = datetime.now() - timedelta(hours=2)

    task = asyncio.create_task(run_periodic_sweep(store, interval_seconds=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(store) == 0
