"""
Plates Package - Storage, scoring and generation of ticket plates.

Public API:
    - Plate: Immutable plate record with scoring
    - PlateStore: JSON blob persistence
    - generate_plates(): Random plate generator

Usage:
    from bingo_scanner.plates import Plate, PlateStore

    store = PlateStore("plates.json")
    store.add([Plate.from_grid(result.grid)])

    for plate in store.load():
        print(plate.score_against({5, 17, 42}))
"""

from .plate import Plate
from .storage import PlateStore, PLATES_KEY, DEFAULT_PLATES_FILE
from .generator import generate_plate, generate_plates, column_numbers

__all__ = [
    "Plate",
    "PlateStore",
    "PLATES_KEY",
    "DEFAULT_PLATES_FILE",
    "generate_plate",
    "generate_plates",
    "column_numbers",
]
