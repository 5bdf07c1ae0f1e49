"""
Digit Recognizer Base Interface

Abstract base class defining the recognition engine contract, plus the
scanner's error types.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

logger = logging.getLogger(__name__)


class ScannerError(Exception):
    """Base class for scanner failures surfaced to the caller."""


class RecognizerLoadError(ScannerError):
    """The recognition engine could not be initialized. Fatal to the scan."""


class SegmentationMode(Enum):
    """
    Layout hint for the engine.

    Values are tesseract page segmentation modes.
    """
    SINGLE_LINE = 7   # one horizontal text line
    SINGLE_CHAR = 10  # one narrow glyph, taller than wide


def mode_for_column(col: int) -> SegmentationMode:
    """Column 0 holds single digits; every other column holds a two-digit line."""
    return SegmentationMode.SINGLE_CHAR if col == 0 else SegmentationMode.SINGLE_LINE


class DigitRecognizer(ABC):
    """
    Abstract base class for digit recognition engines.

    Engines are expensive to start, so one instance is loaded once and reused
    for every cell of a scan (or a whole batch), then terminated.

    Example:
        with create_recognizer("tesseract") as recognizer:
            recognizer.set_segmentation_mode(SegmentationMode.SINGLE_LINE)
            text = recognizer.recognize(crop)
    """

    def __init__(self):
        self._loaded = False
        self._mode = SegmentationMode.SINGLE_LINE

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Engine identifier.

        Returns:
            String name identifying this engine type (e.g., "tesseract")
        """
        pass

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def mode(self) -> SegmentationMode:
        return self._mode

    def load(self) -> None:
        """
        Initialize the engine. Safe to call more than once.

        Raises:
            RecognizerLoadError: If the engine is unavailable
        """
        if self._loaded:
            return
        self._load()
        self._loaded = True
        logger.info(f"Recognizer '{self.name}' loaded")

    def _load(self) -> None:
        """Engine-specific startup. Override in subclasses."""
        pass

    def set_segmentation_mode(self, mode: SegmentationMode) -> None:
        self._mode = mode

    @abstractmethod
    def recognize(self, image: np.ndarray) -> str:
        """
        Recognize digits in a crop.

        Args:
            image: Single-channel crop, dark ink on light background

        Returns:
            Recognized text restricted to 0-9; may be empty
        """
        pass

    def terminate(self) -> None:
        """Release the engine. Failures are logged, never raised."""
        if not self._loaded:
            return
        try:
            self._terminate()
        except Exception as e:
            logger.warning(f"Recognizer '{self.name}' did not shut down cleanly: {e}")
        finally:
            self._loaded = False

    def _terminate(self) -> None:
        """Engine-specific shutdown. Override in subclasses."""
        pass

    def configure(self, **kwargs) -> None:
        """
        Configure engine parameters.

        Override in subclasses to support runtime configuration.
        Default implementation does nothing.

        Args:
            **kwargs: Engine-specific configuration options
        """
        pass

    def __enter__(self) -> 'DigitRecognizer':
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()
