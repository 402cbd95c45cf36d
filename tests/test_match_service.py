"""Tests for MatchService: transitions mirrored to storage."""
from datetime import UTC, datetime, timedelta

import pytest

from wiowa_api.services.memory import MatchService, MatchStorage
from wiowa_api.services.memory.match_types import MatchConfig, MatchPhase, RoundResult
from wiowa_api.utils.kv_store import InMemoryKeyValueStore

CONFIG = MatchConfig(rounds_to_win=2, initial_grid_size="6x6")


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 18, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MatchStorage(InMemoryKeyValueStore())


@pytest.fixture
def service(storage, clock):
    return MatchService(storage, clock=clock)


def _result(service: MatchService, winner: int) -> RoundResult:
    return RoundResult(
        round_number=service.state.current_round,
        winner=winner,
        scores=(4, 2) if winner == 0 else (2, 4),
        grid_size=service.state.config.initial_grid_size,
        moves=14,
        duration_ms=30_000,
    )


def test_state_survives_a_new_service(service, storage, clock):
    service.start_match(CONFIG, ["Alice", "Bob"])

    reloaded = MatchService(storage, clock=clock)

    assert reloaded.state == service.state
    assert reloaded.has_match_in_progress


def test_end_round_without_match(service):
    assert service.end_round(
        RoundResult(round_number=1, winner=0, scores=(1, 0), grid_size="4x4", moves=2, duration_ms=1)
    ) is None
    assert service.start_next_round() is None


def test_play_full_match(service, storage, clock):
    service.start_match(CONFIG, ["Alice", "Bob"])

    outcome = service.end_round(_result(service, 0))
    assert outcome.record is None
    assert storage.load_current_match().match_phase == MatchPhase.BETWEEN_ROUNDS

    service.start_next_round("8x8")
    assert service.state.config.initial_grid_size == "8x8"

    clock.advance(minutes=3)
    outcome = service.end_round(_result(service, 0))

    assert outcome.record is not None
    assert outcome.record.winner == 0
    assert outcome.record.duration_ms == 3 * 60 * 1000
    assert service.is_match_complete
    assert service.match_winner == 0
    # Completed matches move from the current slot into the history
    assert storage.load_current_match() is None
    assert storage.load_match_history()[0].id == outcome.record.id
    assert storage.get_player_stats("Alice").match_wins == 1


def test_ignored_transition_is_not_persisted(service, storage):
    service.start_match(CONFIG, ["Alice", "Bob"])
    before = storage.load_current_match()

    service.start_next_round()

    assert storage.load_current_match() == before


def test_rematch_from_live_state(service, clock):
    service.start_match(CONFIG, ["Alice", "Bob"])
    service.end_round(_result(service, 1))
    clock.advance(minutes=10)

    fresh = service.rematch()

    assert fresh.match_score == (0, 0)
    assert fresh.start_time == clock.now


def test_rematch_from_history_record(service, storage, clock):
    service.start_match(CONFIG, ["Alice", "Bob"])
    service.end_round(_result(service, 1))
    service.start_next_round()
    outcome = service.end_round(_result(service, 1))

    # A new request has no in-memory state, only the stored history
    restarted = MatchService(storage, clock=clock)
    assert restarted.state is None
    fresh = restarted.rematch(storage.load_match_history()[0])

    assert fresh.config == outcome.record.config
    assert [player.name for player in fresh.players] == ["Alice", "Bob"]
    assert storage.load_current_match() == fresh


def test_rematch_without_anything(service):
    assert service.rematch() is None


def test_resume_match_does_not_write(service, storage):
    other = MatchService(MatchStorage(InMemoryKeyValueStore())).start_match(CONFIG, ["Carol", "Dan"])

    service.resume_match(other)

    assert service.state == other
    assert storage.load_current_match() is None


def test_end_match_clears_state(service, storage):
    service.start_match(CONFIG, ["Alice", "Bob"])

    service.end_match()

    assert service.state is None
    assert storage.load_current_match() is None
    assert storage.load_match_history() == []
