"""Versioned persistence of match state, history and player statistics.

Each value is stored as a JSON envelope ``{"version": ..., <payload>}``.
An envelope with another version, or one that cannot be decoded, is
treated as absent; there is no migration between versions.
"""
import json
import logging
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from wiowa_api.services.memory.match_types import MatchRecord, MatchState, PlayerStats
from wiowa_api.utils.kv_store import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

CURRENT_MATCH_KEY = "mymemory:currentMatch"
MATCH_HISTORY_KEY = "mymemory:matchHistory"
PLAYER_STATS_KEY = "mymemory:playerStats"

STORAGE_VERSION = "1.0"
MAX_MATCH_HISTORY = 50

_history_adapter = TypeAdapter(list[MatchRecord])
_stats_adapter = TypeAdapter(dict[str, PlayerStats])


def apply_match_record(stats: dict[str, PlayerStats], record: MatchRecord) -> dict[str, PlayerStats]:
    """Return ``stats`` with the counters of both players advanced by ``record``."""
    updated = dict(stats)
    for idx, name in enumerate(record.players):
        current = updated.get(name) or PlayerStats(name=name)
        pairs = sum(round_result.scores[idx] for round_result in record.rounds)

        rounds_played = current.total_rounds_played + len(record.rounds)
        pairs_matched = current.total_pairs_matched + pairs
        updated[name] = current.model_copy(
            update={
                "matches_played": current.matches_played + 1,
                "match_wins": current.match_wins + (1 if idx == record.winner else 0),
                "total_rounds_played": rounds_played,
                "total_rounds_won": current.total_rounds_won + record.final_score[idx],
                "total_pairs_matched": pairs_matched,
                "average_score_per_round": pairs_matched / rounds_played if rounds_played else 0.0,
                "last_played": record.timestamp,
            }
        )
    return updated


class MatchStorage:
    """Adapter between the match engine and a key/value store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        version: str = STORAGE_VERSION,
        history_limit: int = MAX_MATCH_HISTORY,
    ):
        self.store = store
        self.version = version
        self.history_limit = history_limit

    # ------------------------------------------------------------------
    # Envelope helpers
    # ------------------------------------------------------------------
    def _read_envelope(self, key: str) -> Optional[dict[str, Any]]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.error(f"Error loading {key}: {exc}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Error loading {key}: expected an object")
            return None
        if data.get("version") != self.version:
            logger.info(f"Ignoring {key} stored with version {data.get('version')}")
            return None
        return data

    def _write_envelope(self, key: str, payload: dict[str, Any]) -> None:
        self.store.set(key, json.dumps({"version": self.version, **payload}))

    # ------------------------------------------------------------------
    # Current match
    # ------------------------------------------------------------------
    def load_current_match(self) -> Optional[MatchState]:
        data = self._read_envelope(CURRENT_MATCH_KEY)
        if not data or not data.get("match"):
            return None
        try:
            return MatchState.model_validate(data["match"])
        except ValidationError as exc:
            logger.error(f"Error loading current match: {exc}")
            return None

    def save_match_state(self, state: MatchState) -> None:
        try:
            self._write_envelope(CURRENT_MATCH_KEY, {"match": state.model_dump(mode="json")})
        except StorageError as exc:
            logger.error(f"Error saving match state: {exc}")
            logger.warning("Storage write failed. Clearing old match history.")
            self.clear_old_match_history()

    def clear_current_match(self) -> None:
        self.store.delete(CURRENT_MATCH_KEY)

    # ------------------------------------------------------------------
    # History and stats
    # ------------------------------------------------------------------
    def load_match_history(self) -> list[MatchRecord]:
        data = self._read_envelope(MATCH_HISTORY_KEY)
        if not data:
            return []
        try:
            return _history_adapter.validate_python(data.get("matches", []))
        except ValidationError as exc:
            logger.error(f"Error loading match history: {exc}")
            return []

    def load_player_stats(self) -> dict[str, PlayerStats]:
        data = self._read_envelope(PLAYER_STATS_KEY)
        if not data:
            return {}
        try:
            return _stats_adapter.validate_python(data.get("stats", {}))
        except ValidationError as exc:
            logger.error(f"Error loading player stats: {exc}")
            return {}

    def get_player_stats(self, player_name: str) -> Optional[PlayerStats]:
        return self.load_player_stats().get(player_name)

    def _write_history(self, history: list[MatchRecord]) -> None:
        self._write_envelope(
            MATCH_HISTORY_KEY,
            {"matches": [record.model_dump(mode="json") for record in history]},
        )

    def complete_match(self, record: MatchRecord) -> None:
        """Prepend ``record`` to the history, fold it into the stats and clear the current match."""
        try:
            history = [record, *self.load_match_history()][: self.history_limit]
            self._write_history(history)

            stats = apply_match_record(self.load_player_stats(), record)
            self._write_envelope(
                PLAYER_STATS_KEY,
                {"stats": {name: item.model_dump(mode="json") for name, item in stats.items()}},
            )

            self.clear_current_match()
        except StorageError as exc:
            logger.error(f"Error completing match {record.id}: {exc}")
            logger.warning("Storage write failed. Clearing old match history.")
            self.clear_old_match_history()

    def clear_old_match_history(self) -> None:
        """Keep only the newest half of the history to free space."""
        try:
            reduced = self.load_match_history()[: self.history_limit // 2]
            self._write_history(reduced)
        except StorageError as exc:
            logger.error(f"Error clearing old match history: {exc}")
