"""Keep one Motus game per player in the key/value store."""
import json
import logging
import random
from typing import Optional

from pydantic import ValidationError

from wiowa_api.services.motus.word_game import MotusError, MotusGame, new_game, submit_guess
from wiowa_api.utils.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

CURRENT_GAME_KEY = "mymotus:currentGame"


class MotusService:
    def __init__(self, store: KeyValueStore, *, version: str = "1.0", rng: Optional[random.Random] = None):
        self.store = store
        self.version = version
        self.rng = rng

    def current_game(self) -> Optional[MotusGame]:
        raw = self.store.get(CURRENT_GAME_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if data.get("version") != self.version or not data.get("game"):
                return None
            return MotusGame.model_validate(data["game"])
        except (ValueError, AttributeError, ValidationError) as exc:
            logger.error(f"Error loading Motus game: {exc}")
            return None

    def _save(self, game: MotusGame) -> None:
        self.store.set(
            CURRENT_GAME_KEY,
            json.dumps({"version": self.version, "game": game.model_dump(mode="json")}),
        )

    def start_game(self, difficulty: int) -> MotusGame:
        game = new_game(difficulty, self.rng)
        self._save(game)
        return game

    def guess(self, word: str) -> MotusGame:
        game = self.current_game()
        if game is None:
            raise MotusError("No game in progress")
        game = submit_guess(game, word)
        self._save(game)
        return game

    def abandon(self) -> None:
        self.store.delete(CURRENT_GAME_KEY)
