"""
Document Normalizer

Finds the ticket's outer border in a photo and warps it to a top-down view.
"""

import logging
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image

from .result import NormalizedDocument

logger = logging.getLogger(__name__)

# Small photos are enlarged to this width before any processing
WORKING_WIDTH = 2200

# Edge detection parameters
BLUR_KERNEL = (5, 5)
CANNY_LOW = 50
CANNY_HIGH = 150

# Polygon approximation tolerance as a fraction of contour perimeter
APPROX_EPSILON = 0.02

# Fraction of height removed from the bottom of 3x9 tickets (serial/copyright footer)
FOOTER_TRIM_RATIO = 0.09


def to_bgr(image: Union[Image.Image, np.ndarray]) -> np.ndarray:
    """
    Convert a raw image to a 3-channel BGR array.

    PIL images are assumed RGB(A)/L; arrays are assumed OpenCV layout
    (BGR, BGRA or single-channel). Arrays deeper than 8 bits (16-bit PNGs,
    float images) are stretched to the 0-255 range. The input is never modified.
    """
    if isinstance(image, Image.Image):
        return cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2BGR)

    if image.dtype != np.uint8:
        logger.debug(f"Converting {image.dtype} image to 8-bit")
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX, dtype=cv2.CV_8U)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image.copy()


def upscale_to_working_width(image: np.ndarray, target_width: int = WORKING_WIDTH) -> np.ndarray:
    """Enlarge images narrower than target_width, preserving aspect ratio."""
    height, width = image.shape[:2]
    if width >= target_width:
        return image

    scale = target_width / width
    new_height = max(1, int(height * scale + 0.5))
    return cv2.resize(image, (target_width, new_height), interpolation=cv2.INTER_CUBIC)


def order_points(points: np.ndarray) -> np.ndarray:
    """
    Order four corner points as top-left, top-right, bottom-right, bottom-left.

    Uses the x+y sum: smallest is top-left, largest is bottom-right, and of the
    remaining two the one with larger x is top-right. Only valid for photos
    rotated less than 45 degrees.

    Args:
        points: Array of shape (4, 2)

    Returns:
        float32 array of shape (4, 2)
    """
    pts = sorted((tuple(p) for p in np.asarray(points, dtype=np.float32).reshape(4, 2)),
                 key=lambda p: p[0] + p[1])
    tl, br = pts[0], pts[3]
    if pts[1][0] > pts[2][0]:
        tr, bl = pts[1], pts[2]
    else:
        tr, bl = pts[2], pts[1]
    return np.array([tl, tr, br, bl], dtype=np.float32)


def find_largest_quad(image: np.ndarray) -> Optional[np.ndarray]:
    """
    Locate the largest 4-vertex contour approximation in the image.

    Returns:
        (4, 2) int array of corner points, or None if no quadrilateral exists
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    blurred = cv2.GaussianBlur(gray, BLUR_KERNEL, 0)
    edges = cv2.Canny(blurred, CANNY_LOW, CANNY_HIGH)
    contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    best = None
    max_area = 0.0
    for cnt in contours:
        perimeter = cv2.arcLength(cnt, True)
        approx = cv2.approxPolyDP(cnt, APPROX_EPSILON * perimeter, True)
        if len(approx) != 4:
            continue
        area = cv2.contourArea(approx)
        if area > max_area:
            max_area = area
            best = approx

    return None if best is None else best.reshape(4, 2)


def warp_quad(image: np.ndarray, quad: np.ndarray) -> Optional[np.ndarray]:
    """
    Perspective-warp the quadrilateral region to a fronto-parallel rectangle.

    Returns:
        Warped image, or None if the quad is degenerate (zero width/height)
    """
    tl, tr, br, bl = order_points(quad)

    width = int(max(np.linalg.norm(br - bl), np.linalg.norm(tr - tl)))
    height = int(max(np.linalg.norm(tr - br), np.linalg.norm(tl - bl)))
    if width < 1 or height < 1:
        return None

    src = np.array([tl, tr, br, bl], dtype=np.float32)
    dst = np.array([[0, 0], [width, 0], [width, height], [0, height]], dtype=np.float32)
    matrix = cv2.getPerspectiveTransform(src, dst)
    return cv2.warpPerspective(
        image, matrix, (width, height),
        flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_CONSTANT, borderValue=0
    )


def normalize_document(image: np.ndarray) -> NormalizedDocument:
    """
    Deskew and crop the ticket out of a BGR photo.

    Falls back to a copy of the input when no border quadrilateral is found,
    so a scan never fails at this stage.
    """
    try:
        quad = find_largest_quad(image)
    except cv2.error as e:
        logger.warning(f"Border detection failed, using whole image: {e}")
        quad = None

    if quad is None:
        logger.debug("No quadrilateral found, using whole image")
        return NormalizedDocument(image=image.copy())

    warped = warp_quad(image, quad)
    if warped is None:
        logger.debug(f"Degenerate quadrilateral {quad.tolist()}, using whole image")
        return NormalizedDocument(image=image.copy())

    logger.debug(f"Ticket border found, warped to {warped.shape[1]}x{warped.shape[0]}")
    return NormalizedDocument(image=warped, quad=order_points(quad), quad_found=True)


def trim_footer(document: NormalizedDocument, rows: int, cols: int) -> NormalizedDocument:
    """Drop the serial-number footer from 3x9 tickets; other layouts are untouched."""
    if not (rows == 3 and cols == 9):
        return document

    height = document.height
    # Half-up rounding
    trim = int(height * FOOTER_TRIM_RATIO + 0.5)
    keep = max(1, height - trim)
    return NormalizedDocument(
        image=document.image[:keep].copy(),
        quad=document.quad,
        quad_found=document.quad_found,
    )
