"""
Winning line detection for the 5x5 bingo grid.
"""

from __future__ import annotations

from typing import Sequence

from wikibingo.config import GRID_CELL_COUNT

# All 12 winning lines: 5 rows, 5 columns, 2 diagonals
WIN_LINES: tuple[tuple[int, ...], ...] = (
    # rows
    (0, 1, 2, 3, 4),
    (5, 6, 7, 8, 9),
    (10, 11, 12, 13, 14),
    (15, 16, 17, 18, 19),
    (20, 21, 22, 23, 24),
    # columns
    (0, 5, 10, 15, 20),
    (1, 6, 11, 16, 21),
    (2, 7, 12, 17, 22),
    (3, 8, 13, 18, 23),
    (4, 9, 14, 19, 24),
    # diagonals
    (0, 6, 12, 18, 24),
    (4, 8, 12, 16, 20),
)


def detect_wins(matched: Sequence[bool]) -> list[int]:
    """
    Find every completed line.

    Args:
        matched: 25 booleans, one per grid cell in row-major order

    Returns:
        Indices into WIN_LINES of all fully matched lines (ascending)

    Raises:
        ValueError: If `matched` does not have exactly 25 entries
    """
    if len(matched) != GRID_CELL_COUNT:
        raise ValueError(f"Expected {GRID_CELL_COUNT} cells, got {len(matched)}")

    return [
        line_index
        for line_index, line in enumerate(WIN_LINES)
        if all(matched[cell] for cell in line)
    ]


def winning_cells(line_indices: Sequence[int]) -> list[int]:
    """Sorted union of the grid cells covered by the given lines."""
    cells = {cell for line_index in line_indices for cell in WIN_LINES[line_index]}
    return sorted(cells)
