"""Daily Puzzle core: seeded generation, validation, scoring and offline-first sync."""
from .coordinator import PuzzleGameCoordinator
from .game_manager import GameManager
from .generator import generate
from .scoring import compute_score, is_plausible
from .storage import LocalStore
from .streak import StreakEngine
from .sync import SyncEngine
from .validator import validate

__all__ = [
    "GameManager",
    "LocalStore",
    "PuzzleGameCoordinator",
    "StreakEngine",
    "SyncEngine",
    "compute_score",
    "generate",
    "is_plausible",
    "validate",
]
