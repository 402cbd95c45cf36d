"""Motus word game endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from wiowa_api.dependencies import get_motus_service
from wiowa_api.schemas.motus import GuessRequest, MotusGameResponse, NewGameRequest
from wiowa_api.services.motus import MotusError, MotusService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/motus", tags=["motus"])


@router.get("/game", response_model=MotusGameResponse)
async def get_game(service: MotusService = Depends(get_motus_service)) -> MotusGameResponse:
    game = service.current_game()
    if game is None:
        raise HTTPException(status_code=404, detail="No game in progress")
    return MotusGameResponse.from_game(game)


@router.post("/game", response_model=MotusGameResponse, status_code=201)
async def new_game(
    request: NewGameRequest,
    service: MotusService = Depends(get_motus_service),
) -> MotusGameResponse:
    """Start a new game, replacing any game in progress."""
    game = service.start_game(request.difficulty)
    return MotusGameResponse.from_game(game)


@router.post("/game/guess", response_model=MotusGameResponse)
async def submit_guess(
    request: GuessRequest,
    service: MotusService = Depends(get_motus_service),
) -> MotusGameResponse:
    try:
        game = service.guess(request.guess)
    except MotusError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return MotusGameResponse.from_game(game)


@router.delete("/game", status_code=204)
async def abandon_game(service: MotusService = Depends(get_motus_service)) -> None:
    service.abandon()
