"""
Cell Segmenter

Splits the binarized ticket into rows x cols cells, decides which cells are
empty, and produces the candidate crops sent to the recognizer.
"""

import logging
from typing import Iterator, List

import cv2

from .result import Cell, CellRect, CellVariant, GridSpec, MaskSet

logger = logging.getLogger(__name__)

# Padding as a fraction of the cell pitch
PAD_X_RATIO = 0.12
PAD_X_EDGE_RATIO = 0.08       # first/last column: digits sit close to the border
PAD_X_WIDE_RATIO = 0.06
MIN_PAD_X_WIDE = 2
PAD_Y_RATIO_TICKET = 0.12     # 3x9 layout
PAD_Y_RATIO = 0.10            # any other layout

# Bottom row of the 3x9 layout: digits are printed lower
BOTTOM_SHIFT_RATIO = 0.15     # of pad_y
BOTTOM_TALL_RATIO = 0.06      # of cell height

# Below this fraction of ink pixels a cell is considered empty
EMPTY_INK_RATIO = 0.012

# Variant crops are resized to this width
VARIANT_WIDTH = 160
MIN_VARIANT_HEIGHT = 40


def is_empty_ratio(ink_ratio: float) -> bool:
    """Emptiness test; monotonic in ink_ratio."""
    return ink_ratio < EMPTY_INK_RATIO


def ink_ratio(pixels, rect: CellRect) -> float:
    """Fraction of non-zero pixels inside rect."""
    roi = rect.slice(pixels)
    if roi.size == 0:
        return 0.0
    return cv2.countNonZero(roi) / rect.area


def cell_rects(grid: GridSpec, row: int, col: int) -> List[CellRect]:
    """
    Candidate crop rectangles for a cell.

    Returns:
        [base, wide] plus a tall rect for the bottom row of the 3x9 layout.
        The first entry is the base rect used for the emptiness test.
    """
    cw, ch = grid.cell_width, grid.cell_height
    x, y = col * cw, row * ch
    bottom_row = grid.is_standard_ticket and row == grid.rows - 1

    if col == 0 or col == grid.cols - 1:
        pad_x = int(cw * PAD_X_EDGE_RATIO)
    else:
        pad_x = int(cw * PAD_X_RATIO)
    pad_y = int(ch * (PAD_Y_RATIO_TICKET if grid.is_standard_ticket else PAD_Y_RATIO))
    pad_x_wide = max(MIN_PAD_X_WIDE, int(cw * PAD_X_WIDE_RATIO))

    extra_y = -int(pad_y * BOTTOM_SHIFT_RATIO) if bottom_row else 0
    tall_up = int(ch * BOTTOM_TALL_RATIO) if bottom_row else 0

    def rect_for(px: int, dy: int = 0, extra_h: int = 0) -> CellRect:
        rx = max(0, x + px)
        ry = max(0, y + pad_y + extra_y + dy)
        rw = max(1, min(cw - 2 * px, grid.width - rx))
        rh = max(1, min(ch - 2 * pad_y - extra_y - dy + extra_h, grid.height - ry))
        return CellRect(rx, ry, rw, rh)

    rects = [rect_for(pad_x), rect_for(pad_x_wide)]
    if tall_up > 0:
        rects.append(rect_for(pad_x, -tall_up, tall_up * 2))
    return rects


def segment_cells(masks: MaskSet, grid: GridSpec) -> List[List[Cell]]:
    """
    Build the cell grid and classify emptiness on the cleaned global mask.

    Returns:
        cells[row][col]
    """
    probe = masks.cleaned_global.pixels
    cells: List[List[Cell]] = []
    empty = 0

    for row in range(grid.rows):
        row_cells = []
        for col in range(grid.cols):
            rects = cell_rects(grid, row, col)
            ratio = ink_ratio(probe, rects[0])
            cell = Cell(
                row=row,
                col=col,
                base_rect=rects[0],
                rects=rects,
                ink_ratio=ratio,
                empty=is_empty_ratio(ratio),
            )
            empty += cell.empty
            row_cells.append(cell)
        cells.append(row_cells)

    logger.debug(f"Segmented {grid.rows}x{grid.cols} grid, {empty} empty cells")
    return cells


def crop_variant(pixels, rect: CellRect):
    """Crop, upscale to VARIANT_WIDTH and invert to dark ink on light background."""
    roi = rect.slice(pixels)
    height = max(MIN_VARIANT_HEIGHT, int(VARIANT_WIDTH * rect.height / rect.width + 0.5))
    scaled = cv2.resize(roi, (VARIANT_WIDTH, height), interpolation=cv2.INTER_CUBIC)
    return cv2.bitwise_not(scaled)


def iter_variants(cell: Cell, masks: MaskSet) -> Iterator[CellVariant]:
    """
    Lazily yield recognition crops for a filled cell.

    Order is mask (outer) then rectangle (inner) so attempts are reproducible.
    Empty cells yield nothing.
    """
    if cell.empty:
        return

    for mask in masks.ordered():
        for rect in cell.rects:
            yield CellVariant(
                image=crop_variant(mask.pixels, rect),
                mask_label=mask.label,
                rect=rect,
            )
