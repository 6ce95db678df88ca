"""Shared utilities for the manifest editor."""

from .config import Settings, get_settings
from .exceptions import (
    ManifestEditorError,
    ManifestConstructionError,
    AttributeParseError,
    BandwidthCalculationError,
    UnsupportedOperationError,
    OperationParameterError,
    RoundTripError,
    RetryableError,
)
from .models import (
    ContentType,
    MediaType,
    ManifestFormat,
    Representation,
    AdaptationSet,
    Period,
    Resolution,
    Media,
    VariantStream,
    IFrameStream,
    MasterPlaylist,
    MediaUris,
    EditOperation,
    EditRequest,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ManifestEditorError",
    "ManifestConstructionError",
    "AttributeParseError",
    "BandwidthCalculationError",
    "UnsupportedOperationError",
    "OperationParameterError",
    "RoundTripError",
    "RetryableError",
    # Models
    "ContentType",
    "MediaType",
    "ManifestFormat",
    "Representation",
    "AdaptationSet",
    "Period",
    "Resolution",
    "Media",
    "VariantStream",
    "IFrameStream",
    "MasterPlaylist",
    "MediaUris",
    "EditOperation",
    "EditRequest",
]
