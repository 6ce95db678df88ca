"""Lambda handler for editing manifests stored in S3.

Flow:
1. Parse the edit request
2. Download the manifest
3. Apply the edit operations
4. Check serialization stability (VALIDATE_ROUND_TRIP_ON_WRITE)
5. Upload the edited manifest
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..shared.aws_clients import read_manifest, write_manifest
from ..shared.config import get_settings
from ..shared.exceptions import ManifestEditorError, RoundTripError
from ..shared.models import EditRequest
from .operations import (
    apply_operations,
    detect_format,
    open_manifest,
    round_trip_report,
    serialize_manifest,
)

logger = Logger(service="manifest-editor")
tracer = Tracer(service="manifest-editor")
metrics = Metrics(service="manifest-editor", namespace="ManifestEditing")


@logger.inject_lambda_context(log_event=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Edit a manifest in S3.

    Args:
        event: Edit request
        context: Lambda context

    Returns:
        Location and summary of the written manifest

    Input event structure:
        {
            "bucket": "media-bucket",
            "key": "titles/abc/manifest.mpd",
            "output_key": "titles/abc/manifest_edited.mpd",
            "format": "dash",
            "operations": [
                {"op": "remove_audio_stream", "params": {"lang": "en"}},
                {"op": "add_subtitle_stream",
                 "params": {"lang": "fr", "file_size_bytes": 1000, "duration_seconds": 60}}
            ]
        }

    Output structure:
        {
            "bucket": "media-bucket",
            "key": "titles/abc/manifest_edited.mpd",
            "format": "dash",
            "operations_applied": 2,
            "round_trip_passed": true
        }
    """
    settings = get_settings()

    try:
        request = EditRequest(**event)

        source_bucket = request.bucket or settings.input_bucket
        if not source_bucket:
            raise ManifestEditorError(
                "No source bucket in the request and INPUT_BUCKET is not set",
                "MISSING_BUCKET",
                {"key": request.key},
            )
        output_bucket = request.output_bucket or settings.output_bucket or source_bucket
        output_key = request.output_key or request.key

        logger.info(
            "Starting manifest edit",
            extra={
                "bucket": source_bucket,
                "key": request.key,
                "operations": [op.op for op in request.operations],
            },
        )

        with tracer.provider.in_subsegment("download_manifest"):
            content = read_manifest(source_bucket, request.key)

        manifest_format = request.format or detect_format(content, request.key)

        with tracer.provider.in_subsegment("apply_operations"):
            document = open_manifest(content, manifest_format)
            applied = apply_operations(document, request.operations)
            body = serialize_manifest(document)

        round_trip_passed = None
        if settings.validate_round_trip_on_write:
            round_trip_passed = _check_round_trip(document, request.key)

        with tracer.provider.in_subsegment("upload_manifest"):
            write_manifest(output_bucket, output_key, body, manifest_format.value)

        metrics.add_metric(name="ManifestsEdited", unit=MetricUnit.Count, value=1)
        metrics.add_metric(name="OperationsApplied", unit=MetricUnit.Count, value=applied)
        metrics.add_metadata(key="key", value=request.key)

        logger.info(
            "Manifest edit complete",
            extra={
                "bucket": output_bucket,
                "key": output_key,
                "format": manifest_format.value,
                "operations_applied": applied,
            },
        )

        return {
            "bucket": output_bucket,
            "key": output_key,
            "format": manifest_format.value,
            "operations_applied": applied,
            "round_trip_passed": round_trip_passed,
        }

    except ManifestEditorError as e:
        logger.error("Manifest edit failed", extra=e.to_dict())
        metrics.add_metric(name="ManifestEditErrors", unit=MetricUnit.Count, value=1)
        raise

    except Exception:
        logger.exception("Unexpected error editing manifest")
        metrics.add_metric(name="ManifestEditErrors", unit=MetricUnit.Count, value=1)
        raise


@tracer.capture_method
def _check_round_trip(document: Any, key: str) -> bool:
    """Refuse to write a manifest whose serialization is not stable."""
    report = round_trip_report(document)
    if not report["passed"]:
        raise RoundTripError(
            "Edited manifest does not serialize stably; not writing it",
            {"key": key, "checks": report["checks"]},
        )
    return True
