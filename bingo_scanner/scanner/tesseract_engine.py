"""
Tesseract Recognizer

Digit recognition through the tesseract binary via pytesseract, configured
with a digit whitelist and numeric mode.
"""

import logging
import re
from typing import Optional

import numpy as np
import pytesseract

from .base import DigitRecognizer, RecognizerLoadError, SegmentationMode

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "eng"
CHAR_WHITELIST = "0123456789"

_NON_DIGIT = re.compile(r"[^0-9]")


def build_config(mode: SegmentationMode, whitelist: str = CHAR_WHITELIST, numeric_mode: bool = True) -> str:
    """Tesseract command-line config for a segmentation mode."""
    config = f"--psm {mode.value} -c tessedit_char_whitelist={whitelist}"
    if numeric_mode:
        config += " -c classify_bln_numeric_mode=1"
    return config


class TesseractRecognizer(DigitRecognizer):
    """
    Recognizer backed by tesseract.

    pytesseract runs one process per call, so "loading" verifies that the
    binary and language data exist and fixes the configuration for the scan.
    """

    def __init__(self, language: str = DEFAULT_LANGUAGE, tesseract_cmd: Optional[str] = None):
        """
        Initialize the tesseract recognizer.

        Args:
            language: Tesseract language code
            tesseract_cmd: Path to the tesseract executable; None uses PATH
        """
        super().__init__()
        self._language = language
        self._tesseract_cmd = tesseract_cmd
        self._whitelist = CHAR_WHITELIST
        self._numeric_mode = True
        self._version = None

    @property
    def name(self) -> str:
        return "tesseract"

    @property
    def language(self) -> str:
        return self._language

    @property
    def version(self):
        return self._version

    @property
    def config(self) -> str:
        """Config string used for the current segmentation mode."""
        return build_config(self.mode, self._whitelist, self._numeric_mode)

    def configure(self, **kwargs) -> None:
        """
        Configure engine parameters.

        Args:
            language: Tesseract language code
            tesseract_cmd: Path to the tesseract executable
            char_whitelist: Characters tesseract may emit
            numeric_mode: Enable classify_bln_numeric_mode
        """
        if 'language' in kwargs:
            self._language = kwargs['language']
        if 'tesseract_cmd' in kwargs:
            self._tesseract_cmd = kwargs['tesseract_cmd']
        if 'char_whitelist' in kwargs:
            self._whitelist = kwargs['char_whitelist']
        if 'numeric_mode' in kwargs:
            self._numeric_mode = bool(kwargs['numeric_mode'])

    def _load(self) -> None:
        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd

        try:
            self._version = pytesseract.get_tesseract_version()
            languages = pytesseract.get_languages(config="")
        except pytesseract.TesseractNotFoundError as e:
            raise RecognizerLoadError(f"Tesseract not found: {e}") from e
        except (pytesseract.TesseractError, OSError) as e:
            raise RecognizerLoadError(f"Tesseract failed to start: {e}") from e

        if languages and self._language not in languages:
            raise RecognizerLoadError(
                f"Tesseract language '{self._language}' not installed. Available: {', '.join(languages)}"
            )
        logger.debug(f"Tesseract {self._version}, config: {self.config}")

    def recognize(self, image: np.ndarray) -> str:
        try:
            text = pytesseract.image_to_string(image, lang=self._language, config=self.config)
        except pytesseract.TesseractError as e:
            logger.warning(f"Tesseract rejected crop: {e}")
            return ""
        return _NON_DIGIT.sub("", text)
