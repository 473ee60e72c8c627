"""
Configuration settings for the Daily Puzzle client core
"""
import os

# Puzzle generation
PUZZLE_SECRET_KEY = os.getenv("PUZZLE_SECRET_KEY", "ultra-secret-seed-key-2026")

# Remote score service
SCORE_SERVICE_URL = os.getenv("SCORE_SERVICE_URL", "http://localhost:5000")
SYNC_TIMEOUT = float(os.getenv("SYNC_TIMEOUT", "10.0"))

# Local store
LOCAL_DATABASE_URL = os.getenv("LOCAL_DATABASE_URL", "sqlite+aiosqlite:///./data/local_store.db")

# Autosave debounce window in seconds
AUTOSAVE_DELAY = float(os.getenv("AUTOSAVE_DELAY", "1.0"))
