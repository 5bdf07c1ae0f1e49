"""
Plate Storage

Persists plates as a single JSON blob stored under a fixed key.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Union

from .plate import Plate

logger = logging.getLogger(__name__)

DEFAULT_PLATES_FILE = Path("plates.json")
PLATES_KEY = "plates"


class PlateStore:
    """
    Key/value JSON file holding an ordered list of plate records.

    Example:
        store = PlateStore("plates.json")
        store.add([Plate.from_grid(result.grid)])
        plates = store.load()
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_PLATES_FILE, key: str = PLATES_KEY):
        self.path = Path(path)
        self.key = key

    def _read_blob(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                text = f.read()
            if not text.strip():
                return {}
            data = json.loads(text)
            return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read plate store {self.path}: {e}")
            return {}

    def load(self) -> List[Plate]:
        """
        Load stored plates.

        Returns:
            Plates in saved order; empty list if nothing is stored or the blob is invalid
        """
        records = self._read_blob().get(self.key)
        if not records:
            return []

        try:
            plates = [Plate.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Invalid plate records under '{self.key}': {e}")
            return []

        logger.debug(f"Loaded {len(plates)} plates from {self.path}")
        return plates

    def save(self, plates: Iterable[Plate]) -> None:
        """
        Replace the stored plates.

        Raises:
            OSError: If the file cannot be written
        """
        blob = self._read_blob()
        blob[self.key] = [plate.to_dict() for plate in plates]

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(blob, f, indent=2)
        logger.debug(f"Saved {len(blob[self.key])} plates to {self.path}")

    def add(self, plates: Iterable[Plate]) -> List[Plate]:
        """Append plates to the stored list and return the new full list."""
        combined = self.load() + list(plates)
        self.save(combined)
        return combined
