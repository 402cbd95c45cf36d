"""Motus API schemas."""
from typing import Optional

from pydantic import BaseModel, constr

from wiowa_api.services.motus.word_game import Difficulty, LetterResult, MotusGame


class NewGameRequest(BaseModel):
    difficulty: Difficulty = 8


class GuessRequest(BaseModel):
    guess: constr(strip_whitespace=True, min_length=1, max_length=16)


class MotusGameResponse(BaseModel):
    """Game as seen by the player; the word is revealed once the game ends."""

    difficulty: Difficulty
    first_letter: str
    guesses: list[list[LetterResult]]
    max_attempts: int
    attempts_left: int
    game_won: bool
    game_over: bool
    target: Optional[str] = None

    @classmethod
    def from_game(cls, game: MotusGame) -> "MotusGameResponse":
        return cls(
            difficulty=game.difficulty,
            first_letter=game.first_letter,
            guesses=[list(row) for row in game.guesses],
            max_attempts=game.max_attempts,
            attempts_left=game.attempts_left,
            game_won=game.game_won,
            game_over=game.game_over,
            target=game.target if game.game_over else None,
        )
