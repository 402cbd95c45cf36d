"""Tests for versioned match persistence."""
import json
from datetime import UTC, datetime, timedelta

import pytest

from wiowa_api.services.memory import match_engine
from wiowa_api.services.memory.match_storage import (
    CURRENT_MATCH_KEY,
    MATCH_HISTORY_KEY,
    PLAYER_STATS_KEY,
    MatchStorage,
    apply_match_record,
)
from wiowa_api.services.memory.match_types import MatchConfig, MatchRecord, RoundResult
from wiowa_api.utils.kv_store import InMemoryKeyValueStore, StorageError

START = datetime(2026, 3, 1, 18, 0, tzinfo=UTC)
CONFIG = MatchConfig(rounds_to_win=2, initial_grid_size="4x4")


def _record(index: int, players=("Alice", "Bob"), winner=0) -> MatchRecord:
    timestamp = START + timedelta(minutes=index)
    rounds = (
        RoundResult(round_number=1, winner=winner, scores=(5, 3), grid_size="4x4", moves=18, duration_ms=40_000),
        RoundResult(round_number=2, winner=winner, scores=(6, 2), grid_size="4x4", moves=16, duration_ms=35_000),
    )
    final_score = (2, 0) if winner == 0 else (0, 2)
    return MatchRecord(
        id=match_engine.match_id_for(timestamp),
        timestamp=timestamp,
        config=CONFIG,
        players=players,
        final_score=final_score,
        rounds=rounds,
        winner=winner,
        duration_ms=75_000,
    )


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def storage(store):
    return MatchStorage(store)


def test_current_match_round_trip(storage, store):
    state = match_engine.start_match(CONFIG, ["Alice", "Bob"], START)

    storage.save_match_state(state)

    envelope = json.loads(store.get(CURRENT_MATCH_KEY))
    assert envelope["version"] == "1.0"
    assert storage.load_current_match() == state

    storage.clear_current_match()
    assert storage.load_current_match() is None


def test_other_version_is_ignored(store):
    state = match_engine.start_match(CONFIG, ["Alice", "Bob"], START)
    MatchStorage(store, version="0.9").save_match_state(state)

    assert MatchStorage(store).load_current_match() is None


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"version": "1.0", "match": {"bad": true}}'])
def test_corrupt_values_are_treated_as_absent(store, raw):
    store.set(CURRENT_MATCH_KEY, raw)
    store.set(MATCH_HISTORY_KEY, raw)
    store.set(PLAYER_STATS_KEY, raw)
    storage = MatchStorage(store)

    assert storage.load_current_match() is None
    assert storage.load_match_history() == []
    assert storage.load_player_stats() == {}


def test_complete_match_updates_history_and_stats(storage):
    storage.save_match_state(match_engine.start_match(CONFIG, ["Alice", "Bob"], START))

    storage.complete_match(_record(1))
    storage.complete_match(_record(2, winner=1))

    history = storage.load_match_history()
    assert [record.id for record in history] == [_record(2).id, _record(1).id]
    assert storage.load_current_match() is None

    alice = storage.get_player_stats("Alice")
    assert alice.matches_played == 2
    assert alice.match_wins == 1
    assert alice.total_rounds_played == 4
    assert alice.total_rounds_won == 2
    assert alice.total_pairs_matched == 5 + 6 + 5 + 6
    assert alice.average_score_per_round == pytest.approx(22 / 4)
    assert alice.last_played == _record(2).timestamp
    assert storage.get_player_stats("Nobody") is None


def test_history_is_capped(store):
    storage = MatchStorage(store, history_limit=3)

    for index in range(5):
        storage.complete_match(_record(index))

    history = storage.load_match_history()
    assert len(history) == 3
    assert history[0].id == _record(4).id


def test_apply_match_record_is_pure():
    stats = {}

    updated = apply_match_record(stats, _record(1, players=("Carol", "Dan"), winner=1))

    assert stats == {}
    assert updated["Dan"].match_wins == 1
    assert updated["Carol"].match_wins == 0
    assert updated["Carol"].total_pairs_matched == 5 + 6
    assert updated["Dan"].total_pairs_matched == 3 + 2


def test_clear_old_match_history_keeps_newest_half(store):
    storage = MatchStorage(store, history_limit=4)
    for index in range(4):
        storage.complete_match(_record(index))

    storage.clear_old_match_history()

    assert [record.id for record in storage.load_match_history()] == [_record(3).id, _record(2).id]


class FailingStore(InMemoryKeyValueStore):
    """Refuses writes to one key, like a full browser storage quota."""

    def __init__(self, failing_key: str):
        super().__init__()
        self.failing_key = failing_key

    def set(self, key: str, value: str) -> None:
        if key == self.failing_key:
            raise StorageError("quota exceeded")
        super().set(key, value)


def test_failed_save_trims_history():
    store = FailingStore(CURRENT_MATCH_KEY)
    storage = MatchStorage(store, history_limit=4)
    for index in range(4):
        storage.complete_match(_record(index))

    storage.save_match_state(match_engine.start_match(CONFIG, ["Alice", "Bob"], START))

    assert storage.load_current_match() is None
    assert len(storage.load_match_history()) == 2
