"""Motus word guessing rules.

The first letter of the hidden word is given. Each guess must have the
word's length and start with that letter; letters are scored ``correct``
(right place), ``present`` (elsewhere in the word) or ``absent``.
"""
import logging
import random
import re
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from wiowa_api.utils.exceptions import WiowaException

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 6

Difficulty = Literal[5, 6, 7, 8]

_WORDS_8 = (
    "ABSOLUTE", "ACCEPTER", "ACCIDENT", "ACCORDON", "ACHARNEE", "ACTIVITE",
    "AFFAIRES", "AFFICHER", "AFRICAIN", "AGREMENT", "AGRESSIF", "AGRICOLE",
    "AIMERAIT", "AILLEURS", "ANNONCEE", "ANTENNES", "APPARENT", "APPAREIL",
)
_WORDS_7 = (
    "ABSOLUE", "ACCORDE", "ACHETER", "ACTRICE", "ADAPTER", "ADRESSE",
    "AFFAIRE", "AFRIQUE", "ALCOOLS", "ALLUMER", "AMATEUR", "AMELIOR",
    "AMITIER", "ANGLAIS", "ANNONCE", "ADOPTER", "APPELER",
)
_WORDS_6 = (
    "ABSOLU", "ACCENT", "ACCORD", "ACHETE", "ACTEUR", "ACTION", "ADMIRE",
    "ADOPTE", "ADORER", "AFFAME", "AIGUES", "AIMENT", "AMENER", "ANCIEN",
    "ANIMAL", "ARGENT",
)
_WORDS_5 = (
    "ABORD", "ABUSE", "ACHAT", "ACIER", "ACTIF", "ADIEU", "AIDER", "AIGLE",
    "AIMER", "ALBUM", "ALLER", "APPEL", "ARBRE", "ARMER",
)

WORD_LISTS: dict[int, tuple[str, ...]] = {
    5: _WORDS_5,
    6: _WORDS_6,
    7: _WORDS_7,
    8: _WORDS_8,
}

_LETTERS_ONLY = re.compile(r"^[A-Z]+$")


class MotusError(WiowaException):
    """Raised when a guess breaks the rules of the game."""


class LetterState(str, Enum):
    CORRECT = "correct"
    PRESENT = "present"
    ABSENT = "absent"


class LetterResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    char: str
    state: LetterState


class MotusGame(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    difficulty: Difficulty
    guesses: tuple[tuple[LetterResult, ...], ...] = ()
    max_attempts: int = MAX_ATTEMPTS
    game_won: bool = False
    game_over: bool = False

    @property
    def first_letter(self) -> str:
        return self.target[0]

    @property
    def attempts_left(self) -> int:
        return self.max_attempts - len(self.guesses)


def evaluate_guess(target: str, guess: str) -> list[LetterResult]:
    """Score ``guess`` against ``target`` letter by letter.

    Exact matches are found first; the remaining guess letters are then
    matched left to right against the target letters that were not matched
    exactly, so a repeated letter is only ``present`` as many times as it is
    still unaccounted for in the target.

    Example:
        >>> [r.state.value for r in evaluate_guess("ABORD", "ARBRE")]
        ['correct', 'absent', 'present', 'correct', 'absent']
    """
    if len(target) != len(guess):
        raise ValueError("guess and target must have the same length")

    states = [LetterState.ABSENT] * len(guess)
    remaining_target: list[str] = []
    unmatched: list[int] = []

    for i, (guess_char, target_char) in enumerate(zip(guess, target)):
        if guess_char == target_char:
            states[i] = LetterState.CORRECT
        else:
            remaining_target.append(target_char)
            unmatched.append(i)

    for i in unmatched:
        char = guess[i]
        if char in remaining_target:
            states[i] = LetterState.PRESENT
            remaining_target.remove(char)

    return [LetterResult(char=char, state=state) for char, state in zip(guess, states)]


def new_game(difficulty: int, rng: Optional[random.Random] = None) -> MotusGame:
    """Start a game with a random word of ``difficulty`` letters."""
    words = WORD_LISTS.get(difficulty)
    if not words:
        raise MotusError(f"Unsupported difficulty: {difficulty}")
    target = (rng or random).choice(words)
    return MotusGame(target=target, difficulty=difficulty)


def submit_guess(game: MotusGame, guess: str) -> MotusGame:
    """Validate and score a guess, returning the updated game."""
    if game.game_over:
        raise MotusError("Game is over")

    normalized = (guess or "").strip().upper()
    if not _LETTERS_ONLY.match(normalized):
        raise MotusError("Guess must contain letters only")
    if len(normalized) != game.difficulty:
        raise MotusError(f"Guess must be {game.difficulty} letters long")
    if normalized[0] != game.first_letter:
        raise MotusError(f"Guess must start with {game.first_letter}")

    guesses = game.guesses + (tuple(evaluate_guess(game.target, normalized)),)
    won = normalized == game.target
    over = won or len(guesses) >= game.max_attempts
    if over:
        logger.info(f"Motus game finished: won={won} after {len(guesses)} guesses")

    return game.model_copy(update={"guesses": guesses, "game_won": won, "game_over": over})
