"""Motus word guessing game."""
from wiowa_api.services.motus.motus_service import MotusService
from wiowa_api.services.motus.word_game import MotusError, MotusGame

__all__ = ["MotusError", "MotusGame", "MotusService"]
