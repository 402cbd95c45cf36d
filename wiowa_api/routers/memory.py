"""Memory match endpoints: best-of-N progression, history and player stats."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from wiowa_api.dependencies import get_match_service
from wiowa_api.schemas.memory import (
    EndRoundRequest,
    EndRoundResponse,
    MatchHistoryResponse,
    MatchStateResponse,
    NextRoundRequest,
    PlayerStatsResponse,
    StartMatchRequest,
)
from wiowa_api.services.memory import MatchService
from wiowa_api.services.memory.match_types import MatchPhase, PlayerStats, RoundResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/memory", tags=["memory"])


def _state_response(service: MatchService) -> MatchStateResponse:
    return MatchStateResponse(
        match=service.state,
        is_match_complete=service.is_match_complete,
        has_match_in_progress=service.has_match_in_progress,
        match_winner=service.match_winner,
    )


@router.get("/match", response_model=MatchStateResponse)
async def get_current_match(service: MatchService = Depends(get_match_service)) -> MatchStateResponse:
    """Return the saved match, if any."""
    return _state_response(service)


@router.post("/match", response_model=MatchStateResponse, status_code=201)
async def start_match(
    request: StartMatchRequest,
    service: MatchService = Depends(get_match_service),
) -> MatchStateResponse:
    service.start_match(request.config, request.players)
    return _state_response(service)


@router.delete("/match", status_code=204)
async def end_match(service: MatchService = Depends(get_match_service)) -> None:
    """Abandon the current match without recording it."""
    service.end_match()


@router.post("/match/rounds", response_model=EndRoundResponse)
async def end_round(
    request: EndRoundRequest,
    service: MatchService = Depends(get_match_service),
) -> EndRoundResponse:
    """Record the result of the round being played."""
    state = service.state
    if state is None:
        raise HTTPException(status_code=404, detail="No match in progress")
    if state.match_phase != MatchPhase.PLAYING:
        raise HTTPException(status_code=409, detail=f"Match is {state.match_phase.value}, not playing")

    result = RoundResult(
        round_number=state.current_round,
        winner=request.winner,
        scores=request.scores,
        grid_size=request.grid_size or state.config.initial_grid_size,
        moves=request.moves,
        duration_ms=request.duration_ms,
    )
    outcome = service.end_round(result)
    return EndRoundResponse(**_state_response(service).model_dump(), record=outcome.record)


@router.post("/match/next-round", response_model=MatchStateResponse)
async def start_next_round(
    request: NextRoundRequest,
    service: MatchService = Depends(get_match_service),
) -> MatchStateResponse:
    state = service.state
    if state is None:
        raise HTTPException(status_code=404, detail="No match in progress")
    if state.match_phase != MatchPhase.BETWEEN_ROUNDS:
        raise HTTPException(status_code=409, detail=f"Match is {state.match_phase.value}, not between-rounds")

    service.start_next_round(request.grid_size)
    return _state_response(service)


@router.post("/match/rematch", response_model=MatchStateResponse, status_code=201)
async def rematch(service: MatchService = Depends(get_match_service)) -> MatchStateResponse:
    """Start a new match with the players and settings of the last one."""
    history = service.storage.load_match_history()
    fallback = history[0] if history else None

    if service.rematch(fallback) is None:
        raise HTTPException(status_code=404, detail="No match to replay")
    return _state_response(service)


@router.get("/history", response_model=MatchHistoryResponse)
async def get_match_history(service: MatchService = Depends(get_match_service)) -> MatchHistoryResponse:
    """Completed matches, newest first."""
    return MatchHistoryResponse(matches=service.storage.load_match_history())


@router.get("/stats", response_model=PlayerStatsResponse)
async def get_all_player_stats(service: MatchService = Depends(get_match_service)) -> PlayerStatsResponse:
    return PlayerStatsResponse(stats=service.storage.load_player_stats())


@router.get("/stats/{player_name}", response_model=PlayerStats)
async def get_player_stats(
    player_name: str,
    service: MatchService = Depends(get_match_service),
) -> PlayerStats:
    stats = service.storage.get_player_stats(player_name)
    if stats is None:
        raise HTTPException(status_code=404, detail=f"No stats for player {player_name}")
    return stats
