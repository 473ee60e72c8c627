"""Remote score service for Daily Puzzle."""
