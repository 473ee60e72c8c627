"""
Upgrade stored puzzle/progress payloads to the current schema version
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from .const import PROGRESS_SCHEMA_VERSION, PUZZLE_SCHEMA_VERSION
from .generator import box_dimensions, line_clues

_LOGGER = logging.getLogger(__name__)

_LEGACY_TYPES = {
    "sudoku": "grid-fill",
    "nonogram": "pattern-fill",
}


def _legacy_cells(rows: list[list[dict]]) -> list[list[dict]]:
    return [
        [
            {
                "value": cell.get("value", 0),
                "revealed": cell.get("revealed", False),
                "is_clue": cell.get("is_clue", cell.get("isClue", False)),
            }
            for cell in row
        ]
        for row in rows
    ]


def _legacy_timestamp(value: Any) -> Any:
    # Unversioned records stored epoch milliseconds
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    return value


def migrate_puzzle_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a current-version puzzle payload built from ``raw``."""
    if raw.get("schema_version") == PUZZLE_SCHEMA_VERSION:
        return raw

    data = dict(raw)
    data["type"] = _LEGACY_TYPES.get(data.get("type"), data.get("type"))
    data["grid"] = _legacy_cells(data.get("grid", []))
    solution = data.get("solution", [])
    size = len(solution)

    if data["type"] == "grid-fill":
        box_rows, box_cols = box_dimensions(size)
        data.setdefault("box_rows", box_rows)
        data.setdefault("box_cols", box_cols)
    else:
        data.setdefault("row_clues", [line_clues(row) for row in solution])
        data.setdefault("col_clues", [line_clues([row[c] for row in solution]) for c in range(size)])

    data["schema_version"] = PUZZLE_SCHEMA_VERSION
    return data


def migrate_progress_payload(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a current-version progress payload built from ``raw``.

    Unversioned payloads use camelCase keys and the old type names.
    """
    if raw.get("schema_version") == PROGRESS_SCHEMA_VERSION:
        return raw

    _LOGGER.info("Migrating progress record for %s to schema v%d", raw.get("date"), PROGRESS_SCHEMA_VERSION)
    puzzle = migrate_puzzle_payload(raw.get("puzzle_data") or raw.get("puzzleData") or {})
    progress = raw.get("progress") or puzzle["grid"]

    return {
        "schema_version": PROGRESS_SCHEMA_VERSION,
        "date": raw["date"],
        "puzzle_data": puzzle,
        "progress": _legacy_cells(progress),
        "completed": raw.get("completed", False),
        "score": raw.get("score"),
        "completion_time": raw.get("completion_time", raw.get("completionTime")),
        "hints_used": raw.get("hints_used", raw.get("hintsUsed")),
        "has_started": raw.get("has_started", raw.get("hasStarted")),
        "updated_at": _legacy_timestamp(raw.get("updated_at", raw.get("updatedAt"))) or datetime.now(timezone.utc).isoformat(),
    }
