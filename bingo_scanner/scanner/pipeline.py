"""
Ticket Scanner Pipeline

Runs a ticket photo through normalization, binarization, segmentation,
recognition and column reconciliation to produce the number grid.

Usage:
    with TicketScanner(create_recognizer("tesseract")) as scanner:
        result = scanner.scan(image, rows=3, cols=9)
        print(result.grid)
"""

import logging
import time
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from .base import DigitRecognizer, mode_for_column
from .binarizer import binarize
from .normalizer import normalize_document, to_bgr, trim_footer, upscale_to_working_width
from .reconciler import reconcile
from .result import Cell, CellResult, GridSpec, MaskSet, ScanResult, ScanStage
from .segmenter import iter_variants, segment_cells

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, Image.Image, np.ndarray]

DEFAULT_ROWS = 3
DEFAULT_COLS = 9


class ProgressListener(Protocol):
    """Receives batch progress before each image is scanned."""

    def on_progress(self, index: int, total: int, label: str) -> None:
        ...


def load_image(source: ImageSource) -> np.ndarray:
    """
    Load an image source as a BGR array.

    Args:
        source: File path, PIL Image or OpenCV array

    Raises:
        OSError: If a file cannot be opened or decoded
    """
    if isinstance(source, (str, Path)):
        with Image.open(source) as img:
            return to_bgr(img)
    return to_bgr(source)


def _label_for(source: ImageSource, index: int) -> str:
    if isinstance(source, (str, Path)):
        return Path(source).name
    return f"image {index}"


class TicketScanner:
    """
    Scan session owning one recognizer.

    The recognizer is loaded once by open() (or entering the context manager)
    and reused for every cell and every image until close(). Calling scan()
    outside a session opens and closes the recognizer around that one scan.
    """

    def __init__(self, recognizer: DigitRecognizer):
        """
        Initialize the scanner.

        Args:
            recognizer: Digit recognizer, not necessarily loaded yet
        """
        self._recognizer = recognizer
        self._stage = ScanStage.DONE

    @property
    def recognizer(self) -> DigitRecognizer:
        return self._recognizer

    @property
    def stage(self) -> ScanStage:
        """Stage of the current (or last) scan."""
        return self._stage

    @property
    def is_open(self) -> bool:
        return self._recognizer.is_loaded

    def open(self) -> None:
        """
        Load the recognizer.

        Raises:
            RecognizerLoadError: If the engine cannot be initialized
        """
        self._recognizer.load()

    def close(self) -> None:
        """Terminate the recognizer. Never raises."""
        self._recognizer.terminate()

    def __enter__(self) -> 'TicketScanner':
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def scan(self, image: Union[Image.Image, np.ndarray], rows: int = DEFAULT_ROWS,
             cols: int = DEFAULT_COLS, label: str = "") -> ScanResult:
        """
        Scan one ticket image.

        Args:
            image: Raw photo (PIL Image or BGR array)
            rows: Ticket rows
            cols: Ticket columns
            label: Name reported in the result and log messages

        Returns:
            ScanResult whose grid holds an in-range int or None per cell

        Raises:
            RecognizerLoadError: If the recognizer cannot be loaded
            ValueError: If rows or cols are not positive
        """
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid must have positive dimensions, got {rows}x{cols}")

        if self.is_open:
            return self._scan(image, rows, cols, label)

        with self:
            return self._scan(image, rows, cols, label)

    def scan_batch(self, images: Sequence[ImageSource], rows: int = DEFAULT_ROWS,
                   cols: int = DEFAULT_COLS,
                   listener: Optional[ProgressListener] = None) -> List[ScanResult]:
        """
        Scan several tickets one after another.

        Items that fail to load or scan are logged and left out of the
        result; the batch always continues. The recognizer is loaded once
        for the whole batch.

        Args:
            images: File paths, PIL Images or BGR arrays
            rows: Ticket rows
            cols: Ticket columns
            listener: Optional progress listener, notified before each item

        Returns:
            Results for the items that scanned successfully, in input order

        Raises:
            RecognizerLoadError: If the recognizer cannot be loaded
            ValueError: If rows or cols are not positive
        """
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid must have positive dimensions, got {rows}x{cols}")

        if self.is_open:
            return self._scan_batch(images, rows, cols, listener)

        with self:
            return self._scan_batch(images, rows, cols, listener)

    def _scan_batch(self, images: Sequence[ImageSource], rows: int, cols: int,
                    listener: Optional[ProgressListener]) -> List[ScanResult]:
        results: List[ScanResult] = []
        total = len(images)

        for index, source in enumerate(images, start=1):
            label = _label_for(source, index)
            self._notify(listener, index, total, label)

            try:
                image = load_image(source)
                results.append(self._scan(image, rows, cols, label))
            except Exception:
                logger.exception(f"Scan failed for {label}, skipping")

        logger.info(f"Batch finished: {len(results)}/{total} tickets scanned")
        return results

    @staticmethod
    def _notify(listener: Optional[ProgressListener], index: int, total: int, label: str) -> None:
        if listener is None:
            return
        try:
            listener.on_progress(index, total, label)
        except Exception as e:
            logger.warning(f"Progress listener failed: {e}")

    def _advance(self, stage: ScanStage) -> None:
        logger.debug(f"Scan stage: {self._stage.name} -> {stage.name}")
        self._stage = stage

    def _scan(self, image: Union[Image.Image, np.ndarray], rows: int, cols: int,
              label: str) -> ScanResult:
        start_time = time.perf_counter()
        self._stage = ScanStage.CAPTURING
        bgr = upscale_to_working_width(to_bgr(image))

        self._advance(ScanStage.NORMALIZING)
        document = trim_footer(normalize_document(bgr), rows, cols)
        grid_spec = GridSpec.from_shape(document.image.shape, rows, cols)

        self._advance(ScanStage.BINARIZING)
        masks = binarize(document, grid_spec)

        self._advance(ScanStage.SEGMENTING)
        cells = segment_cells(masks, grid_spec)

        self._advance(ScanStage.RECOGNIZING)
        grid: List[List[Optional[int]]] = []
        cell_results: List[CellResult] = []
        for row_cells in cells:
            grid_row = []
            for cell in row_cells:
                cell_result = self._resolve_cell(cell, masks)
                grid_row.append(cell_result.value)
                cell_results.append(cell_result)
            grid.append(grid_row)

        self._advance(ScanStage.DONE)
        result = ScanResult(
            grid=grid,
            cell_results=cell_results,
            quad_found=document.quad_found,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
            label=label,
        )
        logger.info(
            f"Scanned {label or 'ticket'}: {result.filled_count} numbers, "
            f"{result.empty_count} empty, {result.unresolved_count} unresolved "
            f"({result.processing_time_ms:.0f}ms)"
        )
        return result

    def _resolve_cell(self, cell: Cell, masks: MaskSet) -> CellResult:
        """Try variants in order until one reconciles into the column's range."""
        result = CellResult(
            row=cell.row,
            col=cell.col,
            value=None,
            empty=cell.empty,
            ink_ratio=cell.ink_ratio,
        )
        if cell.empty:
            return result

        self._recognizer.set_segmentation_mode(mode_for_column(cell.col))
        for variant in iter_variants(cell, masks):
            result.attempts += 1
            text = self._recognizer.recognize(variant.image)
            result.raw_text = text
            value = reconcile(text, cell.col)
            if value is not None:
                result.value = value
                logger.debug(
                    f"Cell ({cell.row},{cell.col}) = {value} from '{text}' "
                    f"[{variant.mask_label}, attempt {result.attempts}]"
                )
                return result

        logger.debug(f"Cell ({cell.row},{cell.col}) unresolved after {result.attempts} attempts")
        return result


def summarize(results: Sequence[ScanResult]) -> Tuple[int, int, int]:
    """Totals of (filled, empty, unresolved) cells over several results."""
    filled = sum(r.filled_count for r in results)
    empty = sum(r.empty_count for r in results)
    unresolved = sum(r.unresolved_count for r in results)
    return filled, empty, unresolved
