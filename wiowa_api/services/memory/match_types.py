"""Data types for best-of-N memory matches."""
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

GridSize = Literal["4x4", "6x6", "8x8"]
RoundsToWin = Literal[2, 3, 4]
PlayerIndex = Literal[0, 1]


class MatchPhase(str, Enum):
    """Phase of the match lifecycle.

    ``config`` only exists while a client is choosing settings; the engine
    never produces it.
    """
    CONFIG = "config"
    PLAYING = "playing"
    BETWEEN_ROUNDS = "between-rounds"
    COMPLETE = "complete"


class MatchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    rounds_to_win: RoundsToWin
    initial_grid_size: GridSize


class Player(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=50)
    score: int = 0


class RoundResult(BaseModel):
    """Outcome of one round; immutable once appended to a match."""

    model_config = ConfigDict(frozen=True)

    round_number: int = Field(ge=1)
    winner: PlayerIndex
    scores: tuple[int, int]  # pairs matched by each player
    grid_size: GridSize
    moves: int = Field(ge=0)
    duration_ms: int = Field(ge=0)


class MatchState(BaseModel):
    model_config = ConfigDict(frozen=True)

    config: MatchConfig
    players: tuple[Player, Player]
    current_round: int = Field(ge=1)
    match_score: tuple[int, int]  # rounds won by each player
    round_history: tuple[RoundResult, ...] = ()
    match_phase: MatchPhase
    start_time: datetime
    current_round_start_time: datetime


class MatchRecord(BaseModel):
    """Snapshot of a finished match, written once to the history."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    config: MatchConfig
    players: tuple[str, str]
    final_score: tuple[int, int]
    rounds: tuple[RoundResult, ...]
    winner: PlayerIndex
    duration_ms: int


class PlayerStats(BaseModel):
    """Aggregated counters for one player name across completed matches."""

    name: str
    matches_played: int = 0
    match_wins: int = 0
    total_rounds_played: int = 0
    total_rounds_won: int = 0
    total_pairs_matched: int = 0
    average_score_per_round: float = 0.0
    last_played: Optional[datetime] = None


class RoundOutcome(BaseModel):
    """Result of ending a round: the next state and, on completion, its record."""

    model_config = ConfigDict(frozen=True)

    state: MatchState
    record: Optional[MatchRecord] = None
