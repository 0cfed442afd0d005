"""
Shared test fixtures for spmkit.

Maps to: N/A (shared test fixtures)
"""

from .engine import BYTE_OFFSET, DEFAULT_VOCAB, StubEngine

__all__ = [
    "StubEngine",
    "BYTE_OFFSET",
    "DEFAULT_VOCAB",
]
