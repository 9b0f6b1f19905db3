"""Tests for the session store and the escalation ledger."""

import json
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from model_selector.ledger.escalations import EscalationLedger
from model_selector.models.routing import EscalationEntry
from model_selector.sessions.store import SessionStore


def _entry(work_id: str, model: str = "opus", session_key: str = "s1", category: str = "coding"):
    return EscalationEntry(work_id=work_id, model=model, category=category, session_key=session_key)


# =============================================================================
# SESSION STORE
# =============================================================================


class TestSessionStore:
    """Tests for SessionStore."""

    def test_create_on_first_use(self):
        """Test a fresh session starts on the default model."""
        store = SessionStore()
        state = store.get_or_create("s1")

        assert state.session_key == "s1"
        assert state.current_model is None
        assert state.pending_approval is False
        assert "s1" in store

    def test_same_state_returned(self):
        """Test repeated lookups return the same object."""
        store = SessionStore()
        assert store.get_or_create("s1") is store.get_or_create("s1")

    def test_sessions_are_isolated(self):
        """Test state changes do not leak across sessions."""
        store = SessionStore()
        store.get_or_create("s1").current_model = "opus"
        assert store.get_or_create("s2").current_model is None

    def test_get_does_not_create(self):
        store = SessionStore()
        assert store.get("missing") is None
        assert len(store) == 0

    def test_discard(self):
        """Test discard releases the state and reports whether it existed."""
        store = SessionStore()
        store.get_or_create("s1")

        assert store.discard("s1") is True
        assert store.discard("s1") is False
        assert "s1" not in store

    def test_concurrent_creation(self):
        """Test concurrent first use of a key creates exactly one state."""
        store = SessionStore()
        barrier = threading.Barrier(8)

        def create(_):
            barrier.wait()
            return store.get_or_create("shared")

        with ThreadPoolExecutor(max_workers=8) as pool:
            states = list(pool.map(create, range(8)))

        assert len({id(state) for state in states}) == 1
        assert store.keys() == ["shared"]


# =============================================================================
# ESCALATION LEDGER
# =============================================================================


class TestEscalationLedgerInMemory:
    """Tests for the in-memory ledger."""

    def test_record_and_get(self):
        ledger = EscalationLedger()
        ledger.record(_entry("W-1"))

        entry = ledger.get("W-1")
        assert entry is not None
        assert entry.model == "opus"
        assert len(ledger.get_all()) == 1

    def test_record_supersedes(self):
        """Test a second record for the same id replaces the first."""
        ledger = EscalationLedger()
        ledger.record(_entry("W-1", model="opus"))
        ledger.record(_entry("W-1", model="sonnet"))

        assert len(ledger.get_all()) == 1
        assert ledger.get("W-1").model == "sonnet"

    def test_remove(self):
        """Test remove returns the entry once."""
        ledger = EscalationLedger()
        ledger.record(_entry("W-1"))

        removed = ledger.remove("W-1")
        assert removed is not None
        assert removed.work_id == "W-1"
        assert ledger.remove("W-1") is None
        assert ledger.get("W-1") is None

    def test_for_session(self):
        ledger = EscalationLedger()
        ledger.record(_entry("W-1", session_key="a"))
        ledger.record(_entry("W-2", session_key="b"))

        assert [e.work_id for e in ledger.for_session("a")] == ["W-1"]


class TestEscalationLedgerFile:
    """Tests for the JSON-file ledger."""

    def test_persists_across_instances(self, tmp_path):
        """Test entries written by one instance are read by another."""
        path = tmp_path / "escalations.json"
        EscalationLedger(path).record(_entry("W-1"))

        entry = EscalationLedger(path).get("W-1")
        assert entry is not None
        assert entry.session_key == "s1"

    def test_file_layout(self, tmp_path):
        """Test the on-disk format."""
        path = tmp_path / "escalations.json"
        EscalationLedger(path).record(_entry("W-1"))

        data = json.loads(path.read_text())
        assert data["escalations"]["W-1"]["model"] == "opus"
        assert data["escalations"]["W-1"]["category"] == "coding"

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "escalations.json"
        EscalationLedger(path).record(_entry("W-1"))
        assert path.exists()

    def test_missing_file_is_empty(self, tmp_path):
        ledger = EscalationLedger(tmp_path / "missing.json")
        assert ledger.get_all() == []
        assert ledger.get("W-1") is None

    def test_malformed_file_is_empty(self, tmp_path):
        """Test a corrupt file reads as empty and is rewritten on the next record."""
        path = tmp_path / "escalations.json"
        path.write_text("{not json")

        ledger = EscalationLedger(path)
        assert ledger.get_all() == []

        ledger.record(_entry("W-1"))
        assert EscalationLedger(path).get("W-1") is not None

    def test_bad_entries_skipped(self, tmp_path):
        """Test an unreadable entry does not hide the others."""
        path = tmp_path / "escalations.json"
        path.write_text(json.dumps({
            "escalations": {
                "W-1": {"work_id": "W-1", "model": "opus", "category": "coding", "session_key": "s1"},
                "W-2": {"work_id": "W-2"},
            }
        }))

        ledger = EscalationLedger(path)
        assert [e.work_id for e in ledger.get_all()] == ["W-1"]

    def test_writers_do_not_lose_updates(self, tmp_path):
        """Test two instances on one file keep each other's entries."""
        path = tmp_path / "escalations.json"
        first = EscalationLedger(path)
        second = EscalationLedger(path)

        first.record(_entry("W-1", session_key="a"))
        second.record(_entry("W-2", session_key="b"))
        first.remove("W-1")

        assert [e.work_id for e in second.get_all()] == ["W-2"]

    def test_concurrent_records(self, tmp_path):
        """Test concurrent writers all land in the file."""
        path = tmp_path / "escalations.json"
        ledgers = [EscalationLedger(path) for _ in range(4)]

        def record(i):
            ledgers[i % 4].record(_entry(f"W-{i}", session_key=f"s{i}"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(record, range(20)))

        assert len(EscalationLedger(path).get_all()) == 20

    def test_no_temp_file_left_behind(self, tmp_path):
        path = tmp_path / "escalations.json"
        EscalationLedger(path).record(_entry("W-1"))
        assert not (tmp_path / "escalations.json.tmp").exists()


@pytest.mark.parametrize("storage", ["memory", "file"])
def test_remove_missing_is_noop(storage, tmp_path):
    """Test removing an unknown id leaves the ledger alone."""
    ledger = EscalationLedger(tmp_path / "e.json" if storage == "file" else None)
    ledger.record(_entry("W-1"))

    assert ledger.remove("W-9") is None
    assert len(ledger.get_all()) == 1
