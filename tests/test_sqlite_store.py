from __future__ import annotations

import sqlite3
import threading
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from pystepper.exceptions import StepperStoreError
from pystepper.models.checkpoint import Checkpoint
from pystepper.store.sqlite import StepDatabase

_DAY = date(2026, 3, 10)
_NOW = datetime(2026, 3, 10, 8, 30, tzinfo=UTC)


def test_empty_database(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    with db.transaction() as tx:
        assert tx.get_steps(_DAY) is None
        assert tx.get_current_steps() == 0
        assert tx.get_checkpoint() is None
        assert tx.get_days() == []


def test_baseline_is_written_once(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    with db.transaction() as tx:
        tx.insert_new_day(_DAY, 1000)
    with db.transaction() as tx:
        tx.insert_new_day(_DAY, 2000)
        assert tx.get_steps(_DAY) == 1000


def test_checkpoint_round_trip(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    with db.transaction() as tx:
        tx.save_current_steps(1234, _NOW)
    with db.transaction() as tx:
        tx.save_current_steps(1300, _NOW.replace(minute=45))

    with db.transaction() as tx:
        assert tx.get_current_steps() == 1300
        assert tx.get_checkpoint() == Checkpoint(saved_steps=1300, saved_at=_NOW.replace(minute=45))


def test_days_are_ordered(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    with db.transaction() as tx:
        tx.insert_new_day(date(2026, 3, 11), 500)
        tx.insert_new_day(date(2026, 3, 9), 100)
        tx.insert_new_day(_DAY, 300)
        assert tx.get_days() == [(date(2026, 3, 9), 100), (_DAY, 300), (date(2026, 3, 11), 500)]


def test_error_inside_transaction_rolls_back(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    with pytest.raises(RuntimeError):
        with db.transaction() as tx:
            tx.insert_new_day(_DAY, 1000)
            raise RuntimeError("boom")

    with db.transaction() as tx:
        assert tx.get_steps(_DAY) is None


def test_data_survives_a_new_instance(tmp_path: Path) -> None:
    path = tmp_path / "steps.db"
    with StepDatabase(path).transaction() as tx:
        tx.insert_new_day(_DAY, 42)
        tx.save_current_steps(50, _NOW)

    with StepDatabase(path).transaction() as tx:
        assert tx.get_steps(_DAY) == 42
        assert tx.get_current_steps() == 50


def test_unopenable_file_raises_store_error(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "missing-dir" / "steps.db")
    with pytest.raises(StepperStoreError):
        with db.transaction():
            pass


def test_locked_database_raises_store_error(tmp_path: Path) -> None:
    path = tmp_path / "steps.db"
    db = StepDatabase(path, timeout=0.05)
    with db.transaction():
        pass

    other = sqlite3.connect(path, isolation_level=None)
    other.execute("BEGIN IMMEDIATE")
    try:
        with pytest.raises(StepperStoreError):
            with db.transaction():
                pass
    finally:
        other.execute("ROLLBACK")
        other.close()


def test_concurrent_first_writes_keep_one_baseline(tmp_path: Path) -> None:
    path = tmp_path / "steps.db"
    StepDatabase(path).get_preferences()
    results: list[int] = []

    def writer(value: int) -> None:
        db = StepDatabase(path, timeout=5.0)
        with db.transaction() as tx:
            baseline = tx.get_steps(_DAY)
            if baseline is None:
                tx.insert_new_day(_DAY, value)
                baseline = value
            results.append(baseline)

    threads = [threading.Thread(target=writer, args=(value,)) for value in (100, 200, 300, 400)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    with StepDatabase(path).transaction() as tx:
        stored = tx.get_steps(_DAY)
    assert stored is not None
    # Every writer saw the same baseline: the one that got there first.
    assert results == [stored] * 4


def test_preferences_defaults(tmp_path: Path) -> None:
    prefs = StepDatabase(tmp_path / "steps.db").load_preferences()
    assert prefs.goal == 10000
    assert prefs.notification is True
    assert prefs.steps_to_go_text == "{0} steps to go"


def test_preferences_stored_as_text(tmp_path: Path) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    db.set_preference("goal", 8000)
    db.set_preference("notification", False)
    db.set_preference("steps_to_go_format_text", "Only {0} left")

    assert db.get_preferences() == {
        "goal": "8000",
        "notification": "false",
        "steps_to_go_format_text": "Only {0} left",
    }
    prefs = db.load_preferences()
    assert prefs.goal == 8000
    assert prefs.notification is False
    assert prefs.steps_to_go_text == "Only {0} left"


def test_invalid_preference_falls_back_to_default(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    db = StepDatabase(tmp_path / "steps.db")
    db.set_preference("goal", "lots")
    db.set_preference("is_counting_text", "Walking")

    with caplog.at_level("WARNING"):
        prefs = db.load_preferences()

    assert prefs.goal == 10000
    assert prefs.is_counting_text == "Walking"
    assert "goal" in caplog.text
