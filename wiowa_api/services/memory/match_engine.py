"""Pure state transitions for memory matches.

Every function takes the current ``MatchState`` and returns a new one;
persistence is left to the caller. Illegal transitions are logged and
return the state unchanged.
"""
import logging
from datetime import datetime, UTC
from typing import Optional, Sequence, Union

from wiowa_api.services.memory.match_types import (
    GridSize,
    MatchConfig,
    MatchPhase,
    MatchRecord,
    MatchState,
    Player,
    PlayerIndex,
    RoundOutcome,
    RoundResult,
)
from wiowa_api.utils.datetime_helpers import elapsed_ms

logger = logging.getLogger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(UTC)


def _as_player(player: Union[Player, str]) -> Player:
    if isinstance(player, Player):
        return player
    return Player(name=player)


def start_match(
    config: MatchConfig,
    players: Sequence[Union[Player, str]],
    now: Optional[datetime] = None,
) -> MatchState:
    """Begin a new match at round 1, replacing whatever was in progress."""
    if len(players) != 2:
        raise ValueError("A match needs exactly two players")

    started = _now(now)
    return MatchState(
        config=config,
        players=(_as_player(players[0]), _as_player(players[1])),
        current_round=1,
        match_score=(0, 0),
        round_history=(),
        match_phase=MatchPhase.PLAYING,
        start_time=started,
        current_round_start_time=started,
    )


def match_id_for(start_time: datetime) -> str:
    return f"match-{int(start_time.timestamp() * 1000)}"


def end_round(state: MatchState, result: RoundResult, now: Optional[datetime] = None) -> RoundOutcome:
    """Record a finished round.

    The winner's match score goes up by one. Reaching ``rounds_to_win``
    completes the match and yields a ``MatchRecord``; otherwise the match
    waits between rounds.
    """
    if state.match_phase != MatchPhase.PLAYING:
        logger.warning(f"Cannot end round: match is {state.match_phase.value}, not playing")
        return RoundOutcome(state=state)

    scores = list(state.match_score)
    scores[result.winner] += 1
    match_score = (scores[0], scores[1])
    history = state.round_history + (result,)

    rounds_to_win = state.config.rounds_to_win
    is_complete = match_score[0] >= rounds_to_win or match_score[1] >= rounds_to_win

    new_state = state.model_copy(
        update={
            "match_score": match_score,
            "round_history": history,
            "match_phase": MatchPhase.COMPLETE if is_complete else MatchPhase.BETWEEN_ROUNDS,
        }
    )
    if not is_complete:
        return RoundOutcome(state=new_state)

    # Only the player who just won the round can have crossed the threshold
    winner: PlayerIndex = 0 if match_score[0] >= rounds_to_win else 1
    record = MatchRecord(
        id=match_id_for(state.start_time),
        timestamp=state.start_time,
        config=state.config,
        players=(state.players[0].name, state.players[1].name),
        final_score=match_score,
        rounds=history,
        winner=winner,
        duration_ms=max(0, elapsed_ms(state.start_time, _now(now))),
    )
    return RoundOutcome(state=new_state, record=record)


def start_next_round(
    state: MatchState,
    new_grid_size: Optional[GridSize] = None,
    now: Optional[datetime] = None,
) -> MatchState:
    """Move from between-rounds to the next round, optionally on a new grid size."""
    if state.match_phase != MatchPhase.BETWEEN_ROUNDS:
        logger.warning(f"Cannot start next round: match is {state.match_phase.value}, not between-rounds")
        return state

    update = {
        "current_round": state.current_round + 1,
        "match_phase": MatchPhase.PLAYING,
        "current_round_start_time": _now(now),
    }
    if new_grid_size:
        update["config"] = state.config.model_copy(update={"initial_grid_size": new_grid_size})
    return state.model_copy(update=update)


def rematch(state: MatchState, now: Optional[datetime] = None) -> MatchState:
    """Start over with the same configuration and players."""
    players = [player.model_copy(update={"score": 0}) for player in state.players]
    return start_match(state.config, players, now)


def is_match_complete(state: Optional[MatchState]) -> bool:
    return state is not None and state.match_phase == MatchPhase.COMPLETE


def has_match_in_progress(state: Optional[MatchState]) -> bool:
    return state is not None and not is_match_complete(state)


def match_winner(state: Optional[MatchState]) -> Optional[PlayerIndex]:
    """Index of the winning player once the match is complete, else None."""
    if not is_match_complete(state):
        return None
    first, second = state.match_score
    if first > second:
        return 0
    if second > first:
        return 1
    return None
