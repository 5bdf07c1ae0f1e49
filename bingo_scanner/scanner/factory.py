"""
Recognizer Factory

Factory for creating digit recognizer instances.
"""

import importlib
from typing import Dict, List, Type, Union

from .base import DigitRecognizer


# Registry of available recognizers: lazily-imported "module.Class" paths or classes
_RECOGNIZER_REGISTRY: Dict[str, Union[str, Type[DigitRecognizer]]] = {
    "tesseract": "tesseract_engine.TesseractRecognizer",
}

# Cache for loaded recognizer classes
_RECOGNIZER_CACHE: Dict[str, Type[DigitRecognizer]] = {}


def _load_recognizer_class(recognizer_type: str) -> Type[DigitRecognizer]:
    """Lazily load a recognizer class by type."""
    if recognizer_type in _RECOGNIZER_CACHE:
        return _RECOGNIZER_CACHE[recognizer_type]

    entry = _RECOGNIZER_REGISTRY[recognizer_type]
    if isinstance(entry, str):
        module_name, class_name = entry.rsplit(".", 1)
        module = importlib.import_module(f".{module_name}", package=__package__)
        recognizer_class = getattr(module, class_name)
    else:
        recognizer_class = entry

    _RECOGNIZER_CACHE[recognizer_type] = recognizer_class
    return recognizer_class


def create_recognizer(recognizer_type: str = "tesseract", **config) -> DigitRecognizer:
    """
    Create a digit recognizer by type.

    Args:
        recognizer_type: Recognizer type identifier. Available types:
            - "tesseract" (default): tesseract via pytesseract
        **config: Recognizer-specific configuration options:
            For "tesseract":
                - language: tesseract language code
                - tesseract_cmd: path to the tesseract executable

    Returns:
        Configured, not yet loaded, DigitRecognizer instance

    Raises:
        ValueError: If recognizer_type is not recognized

    Example:
        recognizer = create_recognizer("tesseract", tesseract_cmd="/usr/bin/tesseract")
        scanner = TicketScanner(recognizer)
    """
    if recognizer_type not in _RECOGNIZER_REGISTRY:
        available = ", ".join(_RECOGNIZER_REGISTRY.keys())
        raise ValueError(f"Unknown recognizer type: {recognizer_type}. Available: {available}")

    recognizer = _load_recognizer_class(recognizer_type)()

    # Drop unset options so engine defaults apply
    config = {k: v for k, v in config.items() if v is not None}
    if config:
        recognizer.configure(**config)

    return recognizer


def register_recognizer(name: str, recognizer_class: type) -> None:
    """
    Register a custom recognizer type.

    Args:
        name: Recognizer type identifier
        recognizer_class: DigitRecognizer subclass

    Raises:
        TypeError: If recognizer_class is not a DigitRecognizer subclass
    """
    if not (isinstance(recognizer_class, type) and issubclass(recognizer_class, DigitRecognizer)):
        raise TypeError(f"{recognizer_class} must be a subclass of DigitRecognizer")
    _RECOGNIZER_REGISTRY[name] = recognizer_class
    _RECOGNIZER_CACHE.pop(name, None)


def available_recognizers() -> List[str]:
    """
    List available recognizer types.

    Returns:
        List of registered recognizer type names
    """
    return list(_RECOGNIZER_REGISTRY.keys())
