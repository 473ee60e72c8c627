"""Exceptions raised by the Daily Puzzle core."""


class PuzzleGameError(Exception):
    """Base class for all Daily Puzzle errors."""


class InputRejectedError(PuzzleGameError, ValueError):
    """Input was malformed or out of range; nothing was changed."""


class StorageUnavailableError(PuzzleGameError):
    """The local store cannot be used."""


class ScoreServiceError(PuzzleGameError):
    """The remote score service could not be reached or failed."""
