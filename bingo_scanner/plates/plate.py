"""
Plate Module - Immutable record of one scanned or generated ticket.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

Grid = Tuple[Tuple[Optional[int], ...], ...]


@dataclass(frozen=True)
class Plate:
    """
    Immutable ticket plate.

    Attributes:
        id: Unique plate identifier
        cells: Tuple of tuples, each cell an int or None (blank/unresolved)
    """
    cells: Grid
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def from_grid(cls, grid: List[List[Optional[int]]], plate_id: Optional[uuid.UUID] = None) -> 'Plate':
        """
        Create a Plate from a 2D list such as ScanResult.grid.

        Args:
            grid: 2D list of integers or None values
            plate_id: Identifier to keep; a new one is generated if None
        """
        cells = tuple(tuple(row) for row in grid)
        if plate_id is None:
            return cls(cells=cells)
        return cls(cells=cells, id=plate_id)

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def cols(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def numbers(self) -> List[int]:
        """All present values, row by row."""
        return [v for row in self.cells for v in row if v is not None]

    def score_against(self, called: Iterable[int]) -> int:
        """
        Count cells whose value has been called.

        Args:
            called: Numbers called so far

        Returns:
            Number of present cells whose value is in called
        """
        called_set = set(called)
        return sum(1 for v in self.numbers() if v in called_set)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": str(self.id), "cells": [list(row) for row in self.cells]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Plate':
        """
        Rebuild a Plate from to_dict() output.

        Raises:
            KeyError, ValueError: If the record is malformed
        """
        return cls.from_grid(data["cells"], plate_id=uuid.UUID(str(data["id"])))

    def format(self) -> str:
        """Fixed-width text rendering, blanks shown as '.'."""
        return "\n".join(
            " ".join(f"{v:>2}" if v is not None else " ." for v in row)
            for row in self.cells
        )
