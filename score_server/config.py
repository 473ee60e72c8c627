"""
Configuration settings for the score service
"""
import os

# Database settings
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/score_service.db")

# History returned by GET /scores
MAX_HISTORY = int(os.getenv("MAX_HISTORY", "365"))

# Server settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
