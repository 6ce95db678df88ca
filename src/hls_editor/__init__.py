"""HLS master playlist editing.

This module handles:
- Parsing master playlists (renditions, variants, I-frame streams)
- Adding and removing renditions and video variants
- Deterministic playlist serialization
"""

from .m3u8_document import M3U8Document
from .m3u8_parser import parse_master_playlist
from .m3u8_serializer import serialize_master_playlist

__all__ = [
    "M3U8Document",
    "parse_master_playlist",
    "serialize_master_playlist",
]
