"""Constants for the Daily Puzzle core."""

# Puzzle types
PUZZLE_TYPE_GRID_FILL = "grid-fill"
PUZZLE_TYPE_PATTERN_FILL = "pattern-fill"
PUZZLE_TYPES = (PUZZLE_TYPE_GRID_FILL, PUZZLE_TYPE_PATTERN_FILL)

TYPE_SELECTOR_KEY = "type-selector"

# Difficulty
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"
DIFFICULTIES = (DIFFICULTY_EASY, DIFFICULTY_MEDIUM, DIFFICULTY_HARD)

# Uniform draw < threshold picks the band
EASY_THRESHOLD = 0.33
MEDIUM_THRESHOLD = 0.66

# Grid-fill puzzles
GRID_SIZE = 6
CLUES_BY_DIFFICULTY = {
    DIFFICULTY_EASY: 20,
    DIFFICULTY_MEDIUM: 16,
    DIFFICULTY_HARD: 12,
}

# Pattern-fill puzzles
PATTERN_DIFFICULTY = DIFFICULTY_MEDIUM

PATTERNS = [
    # Heart
    [
        [0, 1, 1, 0, 0, 1, 1, 0],
        [1, 1, 1, 1, 1, 1, 1, 1],
        [1, 1, 1, 1, 1, 1, 1, 1],
        [1, 1, 1, 1, 1, 1, 1, 1],
        [0, 1, 1, 1, 1, 1, 1, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 0, 0, 0, 0, 0, 0],
    ],
    # Diamond
    [
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 1, 1, 1, 1, 1, 1, 0],
        [1, 1, 1, 1, 1, 1, 1, 1],
        [0, 1, 1, 1, 1, 1, 1, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 0, 0, 0, 0, 0, 0],
    ],
    # Arrow
    [
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 1, 1, 1, 1, 1, 1, 0],
        [1, 1, 0, 1, 1, 0, 1, 1],
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 0, 1, 1, 0, 0, 0],
        [0, 0, 0, 1, 1, 0, 0, 0],
    ],
    # Smiley
    [
        [0, 0, 1, 1, 1, 1, 0, 0],
        [0, 1, 0, 0, 0, 0, 1, 0],
        [1, 0, 1, 0, 0, 1, 0, 1],
        [1, 0, 0, 0, 0, 0, 0, 1],
        [1, 0, 1, 0, 0, 1, 0, 1],
        [1, 0, 0, 1, 1, 0, 0, 1],
        [0, 1, 0, 0, 0, 0, 1, 0],
        [0, 0, 1, 1, 1, 1, 0, 0],
    ],
]

# Scoring
BASE_SCORES = {
    DIFFICULTY_EASY: 100,
    DIFFICULTY_MEDIUM: 200,
    DIFFICULTY_HARD: 300,
}
MAX_SCORES = {
    DIFFICULTY_EASY: 200,
    DIFFICULTY_MEDIUM: 400,
    DIFFICULTY_HARD: 600,
}
MIN_SCORE = 10
MAX_TIME_MULTIPLIER = 2.0
MIN_TIME_MULTIPLIER = 0.5
TIME_DECAY_SECONDS = 300
HINT_PENALTY = 0.9
SCORE_TOLERANCE = 0.1
MIN_COMPLETION_TIME = 5  # seconds
MAX_COMPLETION_TIME = 3600  # 1 hour

MAX_HINTS = 3

# Storage collections
COLLECTION_PUZZLES = "puzzles"
COLLECTION_SCORES = "scores"
COLLECTION_ACTIVITY = "activity"
COLLECTION_ACHIEVEMENTS = "achievements"
COLLECTION_STREAK = "streak"
COLLECTION_USER = "user"
COLLECTIONS = (
    COLLECTION_PUZZLES,
    COLLECTION_SCORES,
    COLLECTION_ACTIVITY,
    COLLECTION_ACHIEVEMENTS,
    COLLECTION_STREAK,
    COLLECTION_USER,
)
STREAK_KEY = "current"
USER_KEY = "profile"

# Schema versions for persisted payloads
PUZZLE_SCHEMA_VERSION = 1
PROGRESS_SCHEMA_VERSION = 1

# Remote history window
HISTORY_LIMIT = 365

# Achievements
ACHIEVEMENT_FIRST_WIN = "first-win"
ACHIEVEMENT_STREAK_3 = "streak-3"
ACHIEVEMENT_STREAK_7 = "streak-7"
ACHIEVEMENT_PERFECT_SCORE = "perfect-score"
ACHIEVEMENT_NO_HINTS = "no-hints"
ACHIEVEMENT_SPEED_DEMON = "speed-demon"

PERFECT_SCORE_THRESHOLD = 400
SPEED_DEMON_SECONDS = 180

# Heatmap level boundaries (score strictly greater than)
HEATMAP_LEVELS = (150, 250, 400)
