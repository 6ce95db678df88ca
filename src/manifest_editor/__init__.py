"""Manifest edit requests for MPEG-DASH and HLS manifests in S3.

This module handles:
- Manifest format detection
- Dispatching edit operations onto documents
- Lambda handler for edit requests
"""

from .operations import (
    apply_operations,
    detect_format,
    open_manifest,
    serialize_manifest,
)

__all__ = [
    "apply_operations",
    "detect_format",
    "open_manifest",
    "serialize_manifest",
]
