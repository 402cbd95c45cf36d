"""Memory (pair matching) game: best-of-N match progression."""
from wiowa_api.services.memory.match_service import MatchService
from wiowa_api.services.memory.match_storage import MatchStorage

__all__ = ["MatchService", "MatchStorage"]
