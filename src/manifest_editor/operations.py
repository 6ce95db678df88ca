"""Edit operations dispatched onto manifest documents.

An operation is a document method name plus keyword arguments, e.g.
``{"op": "remove_audio_stream", "params": {"lang": "en"}}``. Only the
methods listed for a format can be invoked.
"""

import inspect
from typing import Any, Iterable

from aws_lambda_powertools import Logger

from ..dash_editor.mpd_document import MPDDocument
from ..hls_editor.m3u8_document import M3U8Document
from ..shared.exceptions import (
    ManifestConstructionError,
    OperationParameterError,
    UnsupportedOperationError,
)
from ..shared.models import EditOperation, ManifestFormat

logger = Logger(service="manifest-editor", child=True)

ManifestDocument = MPDDocument | M3U8Document

DASH_OPERATIONS = frozenset({
    "add_audio_stream",
    "add_subtitle_stream",
    "remove_audio_stream",
    "remove_subtitle_stream",
})

HLS_OPERATIONS = frozenset({
    "add_audio_rendition",
    "add_subtitle_rendition",
    "remove_audio_rendition",
    "remove_subtitle_rendition",
    "remove_closed_caption_rendition",
    "remove_video_rendition",
    "remove_iframe_stream",
    "remove_track_by_uri",
})

OPERATIONS_BY_FORMAT = {
    ManifestFormat.DASH: DASH_OPERATIONS,
    ManifestFormat.HLS: HLS_OPERATIONS,
}


def detect_format(content: str, key: str = "") -> ManifestFormat:
    """Work out the manifest format from the object key, then the content.

    Args:
        content: Manifest text
        key: S3 key or file name

    Returns:
        Detected format

    Raises:
        ManifestConstructionError: If neither the key nor the content is recognizable
    """
    suffix = key.lower().rsplit(".", 1)[-1] if "." in key else ""
    if suffix == "mpd":
        return ManifestFormat.DASH
    if suffix in ("m3u8", "m3u"):
        return ManifestFormat.HLS

    head = content.lstrip("\ufeff").lstrip()
    if head.startswith("#EXTM3U"):
        return ManifestFormat.HLS
    if head.startswith("<"):
        return ManifestFormat.DASH

    raise ManifestConstructionError(
        "Unable to detect manifest format",
        {"key": key, "first_characters": head[:20]},
    )


def open_manifest(content: str, manifest_format: ManifestFormat) -> ManifestDocument:
    """Build the document type for a format."""
    if manifest_format == ManifestFormat.DASH:
        return MPDDocument(content)
    return M3U8Document(content)


def format_of(document: ManifestDocument) -> ManifestFormat:
    """Format of an open document."""
    if isinstance(document, MPDDocument):
        return ManifestFormat.DASH
    return ManifestFormat.HLS


def serialize_manifest(document: ManifestDocument) -> str:
    """Serialize a document in its own format."""
    if isinstance(document, MPDDocument):
        return document.to_xml()
    return document.to_m3u8()


def round_trip_report(document: ManifestDocument) -> dict[str, Any]:
    """Stability report for a document's current serialization."""
    if isinstance(document, MPDDocument):
        return MPDDocument.round_trip_report(document.to_xml())
    return document.round_trip_report()


def apply_operations(
    document: ManifestDocument,
    operations: Iterable[EditOperation],
) -> int:
    """Apply operations in order.

    Every operation is checked against the format's operation set and the
    method signature before it runs, so a bad operation fails without
    touching the document. Earlier operations in the list stay applied.

    Args:
        document: Document to edit in place
        operations: Operations to apply

    Returns:
        Number of operations applied

    Raises:
        UnsupportedOperationError: If an operation is unknown for the format
        OperationParameterError: If the parameters do not fit the operation
    """
    manifest_format = format_of(document)
    allowed = OPERATIONS_BY_FORMAT[manifest_format]
    applied = 0

    for operation in operations:
        if operation.op not in allowed:
            raise UnsupportedOperationError(operation.op, manifest_format.value)

        method = getattr(document, operation.op)
        try:
            inspect.signature(method).bind(**operation.params)
        except TypeError as e:
            raise OperationParameterError(operation.op, str(e), operation.params)

        try:
            result = method(**operation.params)
        except ValueError as e:
            # Includes pydantic ValidationError for out-of-range values
            raise OperationParameterError(operation.op, str(e), operation.params)

        applied += 1
        logger.info(
            "Applied edit operation",
            extra={
                "operation": operation.op,
                "params": operation.params,
                "result": result if isinstance(result, (int, str, bool)) else None,
            },
        )

    return applied
