"""
Scanner Module for Bingo Scanner

Image-to-grid pipeline for photographed bingo tickets.

Usage:
    from bingo_scanner.scanner import create_recognizer, TicketScanner

    # Load the recognizer once and scan
    with TicketScanner(create_recognizer("tesseract")) as scanner:
        result = scanner.scan(image, rows=3, cols=9)

    # Access the grid (2D array of column-valid numbers or None)
    grid = result.grid
"""

# Public API - Result types
from .result import (
    BinaryMask,
    Cell,
    CellRect,
    CellResult,
    CellVariant,
    GridSpec,
    MaskSet,
    NormalizedDocument,
    ScanResult,
    ScanStage,
    ThresholdStrategy,
)

# Public API - Recognizer base class and errors
from .base import (
    DigitRecognizer,
    RecognizerLoadError,
    ScannerError,
    SegmentationMode,
    mode_for_column,
)

# Public API - Factory functions
from .factory import (
    create_recognizer,
    register_recognizer,
    available_recognizers,
)

# Pipeline stages
from .normalizer import normalize_document, order_points, trim_footer
from .binarizer import binarize, remove_grid_lines
from .segmenter import iter_variants, segment_cells, is_empty_ratio, EMPTY_INK_RATIO
from .reconciler import column_range, reconcile

# Pipeline
from .pipeline import TicketScanner, ProgressListener, load_image, summarize

__all__ = [
    # Result types
    "BinaryMask",
    "Cell",
    "CellRect",
    "CellResult",
    "CellVariant",
    "GridSpec",
    "MaskSet",
    "NormalizedDocument",
    "ScanResult",
    "ScanStage",
    "ThresholdStrategy",
    # Recognizer
    "DigitRecognizer",
    "RecognizerLoadError",
    "ScannerError",
    "SegmentationMode",
    "mode_for_column",
    # Factory
    "create_recognizer",
    "register_recognizer",
    "available_recognizers",
    # Stages
    "normalize_document",
    "order_points",
    "trim_footer",
    "binarize",
    "remove_grid_lines",
    "iter_variants",
    "segment_cells",
    "is_empty_ratio",
    "EMPTY_INK_RATIO",
    "column_range",
    "reconcile",
    # Pipeline
    "TicketScanner",
    "ProgressListener",
    "load_image",
    "summarize",
]
