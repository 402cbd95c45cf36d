"""Tests for memory match state transitions."""
from datetime import UTC, datetime, timedelta

import pytest

from wiowa_api.services.memory import match_engine
from wiowa_api.services.memory.match_types import (
    MatchConfig,
    MatchPhase,
    Player,
    RoundResult,
)

START = datetime(2026, 3, 1, 18, 0, tzinfo=UTC)


def _config(rounds_to_win=2, grid="4x4") -> MatchConfig:
    return MatchConfig(rounds_to_win=rounds_to_win, initial_grid_size=grid)


def _result(round_number, winner, scores=(5, 3), grid="4x4") -> RoundResult:
    return RoundResult(
        round_number=round_number,
        winner=winner,
        scores=scores,
        grid_size=grid,
        moves=20,
        duration_ms=45_000,
    )


def test_start_match():
    state = match_engine.start_match(_config(), ["Alice", "Bob"], START)

    assert state.current_round == 1
    assert state.match_score == (0, 0)
    assert state.round_history == ()
    assert state.match_phase == MatchPhase.PLAYING
    assert state.players == (Player(name="Alice"), Player(name="Bob"))
    assert state.start_time == START
    assert state.current_round_start_time == START


def test_start_match_requires_two_players():
    with pytest.raises(ValueError):
        match_engine.start_match(_config(), ["Solo"], START)


def test_end_round_moves_between_rounds():
    state = match_engine.start_match(_config(), ["Alice", "Bob"], START)

    outcome = match_engine.end_round(state, _result(1, 1), START + timedelta(minutes=1))

    assert outcome.record is None
    assert outcome.state.match_score == (0, 1)
    assert outcome.state.match_phase == MatchPhase.BETWEEN_ROUNDS
    assert outcome.state.round_history == (_result(1, 1),)
    # The original state is untouched
    assert state.match_score == (0, 0)


def test_end_round_outside_playing_is_ignored():
    state = match_engine.start_match(_config(), ["Alice", "Bob"], START)
    between = match_engine.end_round(state, _result(1, 0), START).state

    outcome = match_engine.end_round(between, _result(2, 0), START)

    assert outcome.state is between
    assert outcome.record is None


def test_start_next_round_with_new_grid():
    state = match_engine.start_match(_config(), ["Alice", "Bob"], START)
    between = match_engine.end_round(state, _result(1, 0), START).state
    later = START + timedelta(minutes=2)

    next_state = match_engine.start_next_round(between, "6x6", later)

    assert next_state.current_round == 2
    assert next_state.match_phase == MatchPhase.PLAYING
    assert next_state.config.initial_grid_size == "6x6"
    assert next_state.config.rounds_to_win == 2
    assert next_state.current_round_start_time == later
    assert next_state.start_time == START


def test_start_next_round_requires_between_rounds():
    state = match_engine.start_match(_config(), ["Alice", "Bob"], START)

    assert match_engine.start_next_round(state, None, START) is state


def test_match_completes_with_record():
    state = match_engine.start_match(_config(rounds_to_win=2), ["Alice", "Bob"], START)
    state = match_engine.end_round(state, _result(1, 0, (6, 2)), START).state
    state = match_engine.start_next_round(state, None, START)
    state = match_engine.end_round(state, _result(2, 1, (3, 5)), START).state
    state = match_engine.start_next_round(state, None, START)

    end = START + timedelta(minutes=5)
    outcome = match_engine.end_round(state, _result(3, 0, (4, 4)), end)

    assert outcome.state.match_phase == MatchPhase.COMPLETE
    assert outcome.state.match_score == (2, 1)
    record = outcome.record
    assert record is not None
    assert record.id == f"match-{int(START.timestamp() * 1000)}"
    assert record.timestamp == START
    assert record.players == ("Alice", "Bob")
    assert record.final_score == (2, 1)
    assert record.winner == 0
    assert len(record.rounds) == 3
    assert record.duration_ms == 5 * 60 * 1000

    assert match_engine.is_match_complete(outcome.state)
    assert not match_engine.has_match_in_progress(outcome.state)
    assert match_engine.match_winner(outcome.state) == 0


def test_match_queries_without_state():
    assert not match_engine.is_match_complete(None)
    assert not match_engine.has_match_in_progress(None)
    assert match_engine.match_winner(None) is None


def test_winner_is_none_until_complete():
    state = match_engine.start_match(_config(), ["Alice", "Bob"], START)
    state = match_engine.end_round(state, _result(1, 1), START).state

    assert match_engine.has_match_in_progress(state)
    assert match_engine.match_winner(state) is None


def test_rematch_resets_progress():
    state = match_engine.start_match(_config(rounds_to_win=2, grid="8x8"), ["Alice", "Bob"], START)
    state = match_engine.end_round(state, _result(1, 0), START).state
    later = START + timedelta(hours=1)

    fresh = match_engine.rematch(state, later)

    assert fresh.config == state.config
    assert [player.name for player in fresh.players] == ["Alice", "Bob"]
    assert all(player.score == 0 for player in fresh.players)
    assert fresh.current_round == 1
    assert fresh.match_score == (0, 0)
    assert fresh.round_history == ()
    assert fresh.start_time == later


def test_three_straight_wins_complete_a_best_of_five():
    state = match_engine.start_match(_config(rounds_to_win=3), ["Alice", "Bob"], START)
    records = []

    for round_number in (1, 2, 3):
        outcome = match_engine.end_round(state, _result(round_number, 0), START)
        if outcome.record is not None:
            records.append(outcome.record)
        state = match_engine.start_next_round(outcome.state, None, START)

    assert state.match_phase == MatchPhase.COMPLETE
    assert state.match_score == (3, 0)
    assert len(records) == 1
    assert records[0].winner == 0
    assert len(records[0].rounds) == 3


def test_end_round_on_complete_match_is_ignored():
    state = match_engine.start_match(_config(rounds_to_win=2), ["Alice", "Bob"], START)
    state = match_engine.end_round(state, _result(1, 1), START).state
    state = match_engine.start_next_round(state, None, START)
    complete = match_engine.end_round(state, _result(2, 1), START).state

    outcome = match_engine.end_round(complete, _result(3, 0), START)

    assert outcome.state is complete
    assert outcome.state.match_score == (0, 2)
    assert len(outcome.state.round_history) == 2
    assert outcome.record is None


def test_current_round_never_decreases():
    state = match_engine.start_match(_config(rounds_to_win=4), ["Alice", "Bob"], START)
    rounds_seen = [state.current_round]

    for round_number, winner in enumerate([0, 1, 0, 1, 0], start=1):
        state = match_engine.start_next_round(state, None, START)  # ignored while playing
        rounds_seen.append(state.current_round)
        state = match_engine.end_round(state, _result(round_number, winner), START).state
        state = match_engine.start_next_round(state, None, START)
        rounds_seen.append(state.current_round)

    assert rounds_seen == sorted(rounds_seen)
    assert state.current_round == 6
