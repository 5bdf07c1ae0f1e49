"""
Plate Generator

Random 3x9 plates for testing and demo play.

Each column gets three distinct sorted numbers from its range, then four
cells per row are blanked independently. Because the blanks are chosen per
row, a column can end up with anywhere from 0 to 3 numbers instead of the
fixed per-column count printed tickets follow.
"""

import random
from typing import List, Optional

from .plate import Plate

ROWS = 3
COLS = 9
BLANKS_PER_ROW = 4


def column_numbers(col: int) -> range:
    """Numbers a generated plate may use in a column (col 0: 1-10, col 8: 81-90)."""
    start = col * 10 + 1
    end = 90 if col == COLS - 1 else col * 10 + 10
    return range(start, end + 1)


def generate_plate(rng: Optional[random.Random] = None) -> Plate:
    """Generate one random plate."""
    rng = rng or random.Random()
    grid: List[List[Optional[int]]] = [[None] * COLS for _ in range(ROWS)]

    for col in range(COLS):
        nums = sorted(rng.sample(column_numbers(col), ROWS))
        for row in range(ROWS):
            grid[row][col] = nums[row]

    for row in range(ROWS):
        for col in rng.sample(range(COLS), BLANKS_PER_ROW):
            grid[row][col] = None

    return Plate.from_grid(grid)


def generate_plates(count: int = 30, rng: Optional[random.Random] = None) -> List[Plate]:
    """
    Generate random plates.

    Args:
        count: Number of plates
        rng: Random source; pass a seeded Random for reproducible plates
    """
    rng = rng or random.Random()
    return [generate_plate(rng) for _ in range(count)]
