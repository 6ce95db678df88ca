"""MPEG-DASH manifest editing.

This module handles:
- Parsing single-period MPDs into document models
- Adding and removing audio/subtitle adaptation sets
- Deterministic XML serialization
"""

from .mpd_document import MPDDocument
from .mpd_serializer import serialize_mpd

__all__ = [
    "MPDDocument",
    "serialize_mpd",
]
