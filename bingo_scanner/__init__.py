"""
Bingo Scanner - digitizes photographed bingo tickets into number grids.

Subpackages:
    - scanner: image-to-grid pipeline
    - plates: plate storage, scoring and generation
"""

__version__ = "0.1.0"
