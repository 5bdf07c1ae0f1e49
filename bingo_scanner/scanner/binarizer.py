"""
Binarizer

Produces global (Otsu) and adaptive black/white masks of the normalized
ticket and strips the printed grid lines from them.

Line removal runs two passes: long kernels (90% of a cell edge) first, then
shorter ones (70%) on the result. A single short-kernel pass would also eat
the vertical stroke of a "1".
"""

import logging

import cv2
import numpy as np

from .result import BinaryMask, GridSpec, MaskSet, NormalizedDocument, ThresholdStrategy

logger = logging.getLogger(__name__)

MEDIAN_KERNEL = 3

# Adaptive threshold parameters
ADAPTIVE_BLOCK_SIZE = 31
ADAPTIVE_C = 5

# Line kernel lengths as a fraction of cell width/height, applied in order
LINE_KERNEL_RATIOS = (0.90, 0.70)
MIN_LINE_KERNEL = 3


def _denoised_gray(image: np.ndarray) -> np.ndarray:
    gray = image if image.ndim == 2 else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return cv2.medianBlur(gray, MEDIAN_KERNEL)


def threshold_global(gray: np.ndarray) -> np.ndarray:
    """Otsu threshold, inverted so ink is 255."""
    _, mask = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)
    return mask


def threshold_adaptive(gray: np.ndarray) -> np.ndarray:
    """Gaussian local threshold, inverted so ink is 255."""
    return cv2.adaptiveThreshold(
        gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY_INV,
        ADAPTIVE_BLOCK_SIZE, ADAPTIVE_C
    )


def _threshold_or_blank(threshold, gray: np.ndarray, strategy: ThresholdStrategy) -> np.ndarray:
    """Run a threshold; an image OpenCV rejects reads as having no ink."""
    try:
        return threshold(gray)
    except cv2.error as e:
        logger.warning(f"{strategy.value.capitalize()} threshold failed, treating image as blank: {e}")
        return np.zeros(gray.shape[:2], dtype=np.uint8)


def _strip_lines(pixels: np.ndarray, grid: GridSpec, ratio: float) -> np.ndarray:
    """Subtract horizontal and vertical runs at least ratio * cell edge long."""
    h_len = max(MIN_LINE_KERNEL, int(grid.cell_width * ratio))
    v_len = max(MIN_LINE_KERNEL, int(grid.cell_height * ratio))
    h_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (h_len, 1))
    v_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (1, v_len))

    horizontal = cv2.morphologyEx(pixels, cv2.MORPH_OPEN, h_kernel)
    vertical = cv2.morphologyEx(pixels, cv2.MORPH_OPEN, v_kernel)
    lines = cv2.bitwise_or(horizontal, vertical)
    return cv2.subtract(pixels, lines)


def remove_grid_lines(mask: BinaryMask, grid: GridSpec) -> BinaryMask:
    """
    Remove printed grid lines from a mask.

    Returns a new mask; the input is untouched. If OpenCV rejects the
    operation the raw pixels are reused so binarization never aborts a scan.
    """
    try:
        pixels = mask.pixels
        for ratio in LINE_KERNEL_RATIOS:
            pixels = _strip_lines(pixels, grid, ratio)
    except cv2.error as e:
        logger.warning(f"Grid line removal failed for {mask.label} mask: {e}")
        pixels = mask.pixels.copy()

    return BinaryMask(pixels=pixels, strategy=mask.strategy, cleaned=True)


def binarize(document: NormalizedDocument, grid: GridSpec) -> MaskSet:
    """
    Build raw and line-free masks for both threshold strategies.

    Args:
        document: Normalized (footer-trimmed) ticket
        grid: Grid layout for the document's dimensions

    Returns:
        MaskSet with four masks of the document's size. A threshold OpenCV
        rejects yields a blank mask, so binarization never aborts a scan.
    """
    try:
        gray = _denoised_gray(document.image)
    except cv2.error as e:
        logger.warning(f"Grayscale conversion failed, treating image as blank: {e}")
        gray = np.zeros(document.image.shape[:2], dtype=np.uint8)

    raw_global = BinaryMask(
        _threshold_or_blank(threshold_global, gray, ThresholdStrategy.GLOBAL),
        ThresholdStrategy.GLOBAL,
    )
    raw_adaptive = BinaryMask(
        _threshold_or_blank(threshold_adaptive, gray, ThresholdStrategy.ADAPTIVE),
        ThresholdStrategy.ADAPTIVE,
    )

    masks = MaskSet(
        raw_global=raw_global,
        raw_adaptive=raw_adaptive,
        cleaned_global=remove_grid_lines(raw_global, grid),
        cleaned_adaptive=remove_grid_lines(raw_adaptive, grid),
    )
    logger.debug(
        f"Binarized {grid.width}x{grid.height}: "
        f"global ink {cv2.countNonZero(raw_global.pixels)} -> {cv2.countNonZero(masks.cleaned_global.pixels)}px"
    )
    return masks
