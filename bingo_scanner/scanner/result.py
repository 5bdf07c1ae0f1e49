"""
Scan Result Dataclasses

Shared data structures passed between the pipeline stages.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple

import numpy as np


class ThresholdStrategy(Enum):
    """Binarization strategy that produced a mask."""
    GLOBAL = "global"      # Otsu
    ADAPTIVE = "adaptive"  # Gaussian local threshold


class ScanStage(Enum):
    """
    Per-scan state machine.

    Stages only move forward:
        CAPTURING -> NORMALIZING -> BINARIZING -> SEGMENTING -> RECOGNIZING -> DONE
    """
    CAPTURING = auto()
    NORMALIZING = auto()
    BINARIZING = auto()
    SEGMENTING = auto()
    RECOGNIZING = auto()
    DONE = auto()


@dataclass
class NormalizedDocument:
    """Deskewed top-down ticket, or a clone of the input if no border was found."""
    image: np.ndarray                      # BGR pixels
    quad: Optional[np.ndarray] = None      # (4, 2) float32 tl, tr, br, bl
    quad_found: bool = False

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]


@dataclass
class BinaryMask:
    """Single-channel mask with ink = 255 and background = 0."""
    pixels: np.ndarray
    strategy: ThresholdStrategy
    cleaned: bool = False  # True once grid lines were removed

    @property
    def label(self) -> str:
        prefix = "clean" if self.cleaned else "raw"
        return f"{prefix}-{self.strategy.value}"


@dataclass
class MaskSet:
    """The four masks produced for one normalized document."""
    raw_global: BinaryMask
    raw_adaptive: BinaryMask
    cleaned_global: BinaryMask
    cleaned_adaptive: BinaryMask

    def ordered(self) -> List[BinaryMask]:
        """Masks in recognition priority order (most likely to read cleanly first)."""
        return [
            self.cleaned_global,
            self.cleaned_adaptive,
            self.raw_global,
            self.raw_adaptive,
        ]


@dataclass(frozen=True)
class GridSpec:
    """Ticket layout and the axis-aligned cell pitch in mask pixels."""
    rows: int
    cols: int
    cell_width: int
    cell_height: int
    width: int   # mask width
    height: int  # mask height

    @classmethod
    def from_shape(cls, shape: Tuple[int, ...], rows: int, cols: int) -> 'GridSpec':
        """
        Build the grid for an image of the given shape.

        Raises:
            ValueError: If rows/cols are not positive
        """
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid must have positive dimensions, got {rows}x{cols}")
        height, width = shape[:2]
        return cls(
            rows=rows,
            cols=cols,
            cell_width=width // cols,
            cell_height=height // rows,
            width=width,
            height=height,
        )

    @property
    def is_standard_ticket(self) -> bool:
        """True for the canonical 3x9 layout that gets footer/bottom-row tweaks."""
        return self.rows == 3 and self.cols == 9


@dataclass(frozen=True)
class CellRect:
    """Crop rectangle in mask coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def slice(self, pixels: np.ndarray) -> np.ndarray:
        return pixels[self.y:self.y + self.height, self.x:self.x + self.width]


@dataclass
class Cell:
    """One grid position with its emptiness measurement and candidate crops."""
    row: int
    col: int
    base_rect: CellRect
    rects: List[CellRect] = field(default_factory=list)  # base, wide, [tall]
    ink_ratio: float = 0.0
    empty: bool = False


@dataclass
class CellVariant:
    """Upscaled, ink-on-light crop ready for recognition."""
    image: np.ndarray
    mask_label: str
    rect: CellRect


@dataclass
class CellResult:
    """Per-cell scan outcome."""
    row: int
    col: int
    value: Optional[int]      # None for empty or unresolved
    empty: bool
    ink_ratio: float
    attempts: int = 0          # variants sent to the recognizer
    raw_text: str = ""         # text of the accepted (or last) reading


@dataclass
class ScanResult:
    """Complete result for one ticket image."""
    grid: List[List[Optional[int]]]  # [row][col], the scan grid
    cell_results: List[CellResult]
    quad_found: bool
    processing_time_ms: float
    label: str = ""

    @property
    def rows(self) -> int:
        return len(self.grid)

    @property
    def cols(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    @property
    def filled_count(self) -> int:
        return sum(1 for c in self.cell_results if c.value is not None)

    @property
    def empty_count(self) -> int:
        return sum(1 for c in self.cell_results if c.empty)

    @property
    def unresolved_count(self) -> int:
        """Cells with ink that no variant could read into range."""
        return sum(1 for c in self.cell_results if not c.empty and c.value is None)
