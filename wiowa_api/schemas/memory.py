"""Memory match API schemas."""
from typing import Optional

from pydantic import BaseModel, Field, constr

from wiowa_api.services.memory.match_types import (
    GridSize,
    MatchConfig,
    MatchRecord,
    MatchState,
    PlayerIndex,
    PlayerStats,
)

PlayerName = constr(strip_whitespace=True, min_length=1, max_length=50)


class StartMatchRequest(BaseModel):
    config: MatchConfig
    players: tuple[PlayerName, PlayerName]


class EndRoundRequest(BaseModel):
    """Round result reported by the client; the round number comes from the match."""

    winner: PlayerIndex
    scores: tuple[int, int]
    grid_size: Optional[GridSize] = None
    moves: int = Field(ge=0)
    duration_ms: int = Field(ge=0)


class NextRoundRequest(BaseModel):
    grid_size: Optional[GridSize] = None


class MatchStateResponse(BaseModel):
    match: Optional[MatchState] = None
    is_match_complete: bool = False
    has_match_in_progress: bool = False
    match_winner: Optional[PlayerIndex] = None


class EndRoundResponse(MatchStateResponse):
    record: Optional[MatchRecord] = None


class MatchHistoryResponse(BaseModel):
    matches: list[MatchRecord]


class PlayerStatsResponse(BaseModel):
    stats: dict[str, PlayerStats]
