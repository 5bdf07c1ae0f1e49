"""
Shared fixtures: synthetic ticket images and a scripted recognizer.
"""

import sys
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import cv2
import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bingo_scanner.scanner import DigitRecognizer, RecognizerLoadError


def draw_grid_ticket(rows: int = 3, cols: int = 9, cell: int = 60,
                     filled: Iterable[Tuple[int, int]] = (), line: int = 3,
                     paper: int = 0, margin: int = 0, background: int = 30) -> np.ndarray:
    """
    Draw a white ticket with black grid lines and a black block in each filled cell.

    paper > 0 adds white paper around a printed outer border; margin > 0 puts
    the ticket on a dark background so its edge can be detected.
    """
    width, height = cols * cell, rows * cell
    grid = np.full((height, width, 3), 255, dtype=np.uint8)

    for r in range(1, rows):
        cv2.line(grid, (0, r * cell), (width - 1, r * cell), (0, 0, 0), line)
    for c in range(1, cols):
        cv2.line(grid, (c * cell, 0), (c * cell, height - 1), (0, 0, 0), line)
    if paper > 0:
        cv2.rectangle(grid, (0, 0), (width - 1, height - 1), (0, 0, 0), line)

    block = int(cell * 0.4)
    for r, c in filled:
        x0 = c * cell + (cell - block) // 2
        y0 = r * cell + (cell - block) // 2
        cv2.rectangle(grid, (x0, y0), (x0 + block, y0 + block), (0, 0, 0), -1)

    ticket = cv2.copyMakeBorder(grid, paper, paper, paper, paper,
                                cv2.BORDER_CONSTANT, value=(255, 255, 255))
    if margin <= 0:
        return ticket

    return cv2.copyMakeBorder(ticket, margin, margin, margin, margin,
                              cv2.BORDER_CONSTANT, value=(background,) * 3)


class ScriptedRecognizer(DigitRecognizer):
    """Recognizer returning queued texts in order, then empty strings."""

    def __init__(self, texts: Iterable[str] = (), fail_load: bool = False, fail_terminate: bool = False):
        super().__init__()
        self._texts = list(texts)
        self.fail_load = fail_load
        self.fail_terminate = fail_terminate
        self.load_calls = 0
        self.terminate_calls = 0
        self.calls: List[Dict] = []
        self.observer = None  # callable invoked on every recognize()

    @property
    def name(self) -> str:
        return "scripted"

    def _load(self) -> None:
        self.load_calls += 1
        if self.fail_load:
            raise RecognizerLoadError("engine unavailable")

    def _terminate(self) -> None:
        self.terminate_calls += 1
        if self.fail_terminate:
            raise RuntimeError("engine hung")

    def recognize(self, image: np.ndarray) -> str:
        if self.observer is not None:
            self.observer()
        self.calls.append({"mode": self.mode, "shape": image.shape})
        return self._texts.pop(0) if self._texts else ""
