"""
Column Reconciler

Maps noisy recognized text to a number that is valid for the cell's column.
Ticket columns hold fixed ranges (column 0 -> 1-9, column 1 -> 10-19, ...),
so OCR output like "951" in column 5 can still be resolved to 51.
"""

from typing import List, Optional, Tuple

DIGITS = "0123456789"


def column_range(col: int) -> Tuple[int, int]:
    """
    Valid inclusive range for a column.

    Args:
        col: 0-based column index

    Returns:
        (low, high) bounds
    """
    low = 1 if col == 0 else col * 10
    high = 90 if col == 8 else col * 10 + 9
    return low, high


def _is_digits(text: str) -> bool:
    return bool(text) and all(ch in DIGITS for ch in text)


def candidate_numbers(raw_text: str) -> List[int]:
    """
    All numbers formed by 1- and 2-character digit windows, in first-seen order.

    Example:
        >>> candidate_numbers("953")
        [9, 95, 5, 53, 3]
    """
    seen = {}
    for i in range(len(raw_text)):
        one = raw_text[i]
        if _is_digits(one):
            seen.setdefault(int(one), None)
        two = raw_text[i:i + 2]
        if len(two) == 2 and _is_digits(two):
            seen.setdefault(int(two), None)
    return list(seen)


def reconcile(raw_text: str, col: int) -> Optional[int]:
    """
    Pick the most plausible in-range number from recognized text.

    Args:
        raw_text: Text returned by the recognizer
        col: 0-based column index

    Returns:
        An integer inside column_range(col), or None if nothing fits.
        Never returns an out-of-range value.
    """
    if not raw_text:
        return None

    low, high = column_range(col)
    in_range = [n for n in candidate_numbers(raw_text) if low <= n <= high]

    if in_range:
        # Half-up rounding of the midpoint; min() keeps the first-seen candidate on ties
        center = int((low + high) / 2 + 0.5)
        return min(in_range, key=lambda n: abs(n - center))

    last_two = raw_text[-2:]
    if len(last_two) == 2 and _is_digits(last_two):
        value = int(last_two)
        if low <= value <= high:
            return value

    return None
