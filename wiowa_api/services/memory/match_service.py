"""Stateful front for the match engine: applies transitions and persists them."""
import logging
from datetime import datetime
from typing import Callable, Optional, Sequence, Union

from wiowa_api.services.memory import match_engine
from wiowa_api.services.memory.match_storage import MatchStorage
from wiowa_api.services.memory.match_types import (
    GridSize,
    MatchConfig,
    MatchRecord,
    MatchState,
    Player,
    PlayerIndex,
    RoundOutcome,
    RoundResult,
)
from wiowa_api.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


class MatchService:
    """Hold the current match and mirror every accepted change to storage."""

    def __init__(self, storage: MatchStorage, clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.clock = clock
        self.state: Optional[MatchState] = storage.load_current_match()

    @property
    def is_match_complete(self) -> bool:
        return match_engine.is_match_complete(self.state)

    @property
    def has_match_in_progress(self) -> bool:
        return match_engine.has_match_in_progress(self.state)

    @property
    def match_winner(self) -> Optional[PlayerIndex]:
        return match_engine.match_winner(self.state)

    def start_match(self, config: MatchConfig, players: Sequence[Union[Player, str]]) -> MatchState:
        self.state = match_engine.start_match(config, players, self.clock())
        self.storage.save_match_state(self.state)
        logger.info(f"Started match between {self.state.players[0].name} and {self.state.players[1].name}")
        return self.state

    def resume_match(self, state: MatchState) -> MatchState:
        """Adopt ``state`` as the current match without writing it."""
        self.state = state
        return state

    def end_round(self, result: RoundResult) -> Optional[RoundOutcome]:
        if self.state is None:
            logger.warning("Cannot end round: no active match")
            return None

        outcome = match_engine.end_round(self.state, result, self.clock())
        if outcome.state is self.state:
            return outcome

        self.state = outcome.state
        self.storage.save_match_state(self.state)
        if outcome.record is not None:
            self.storage.complete_match(outcome.record)
            logger.info(f"Match {outcome.record.id} complete, winner {outcome.record.players[outcome.record.winner]}")
        return outcome

    def start_next_round(self, new_grid_size: Optional[GridSize] = None) -> Optional[MatchState]:
        if self.state is None:
            logger.warning("Cannot start next round: no match")
            return None

        new_state = match_engine.start_next_round(self.state, new_grid_size, self.clock())
        if new_state is not self.state:
            self.state = new_state
            self.storage.save_match_state(self.state)
        return self.state

    def rematch(self, fallback: Optional[MatchRecord] = None) -> Optional[MatchState]:
        """Restart with the same config and players.

        A completed match is cleared from storage, so a caller without the
        in-memory state can pass the finished ``MatchRecord`` instead.
        """
        if self.state is not None:
            self.state = match_engine.rematch(self.state, self.clock())
        elif fallback is not None:
            self.state = match_engine.start_match(fallback.config, fallback.players, self.clock())
        else:
            logger.warning("Cannot rematch: no match state")
            return None

        self.storage.save_match_state(self.state)
        return self.state

    def end_match(self) -> None:
        self.state = None
        self.storage.clear_current_match()
