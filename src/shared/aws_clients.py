"""S3 access for manifest editing, with retry on transient failures."""

import random
import time
from functools import lru_cache
from typing import Any, Callable

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .config import get_settings
from .exceptions import RetryableError

AWS_CONFIG = Config(
    retries={
        "max_attempts": 3,
        "mode": "adaptive",
    },
    connect_timeout=5,
    read_timeout=30,
)

# Error codes that indicate transient failures
RETRYABLE_ERROR_CODES = {
    "SlowDown",
    "ServiceUnavailable",
    "RequestTimeout",
    "InternalError",
    "Throttling",
    "ThrottlingException",
}

# Content-Type written with each manifest format
MANIFEST_CONTENT_TYPES = {
    "dash": "application/dash+xml",
    "hls": "application/vnd.apple.mpegurl",
}


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    """Get cached S3 client."""
    settings = get_settings()
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        config=AWS_CONFIG,
    )


def is_retryable_error(error: ClientError) -> bool:
    """Check if an S3 error is transient."""
    error_code = error.response.get("Error", {}).get("Code", "")
    return error_code in RETRYABLE_ERROR_CODES


def retry_with_backoff(
    func: Callable[..., Any],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
) -> Any:
    """Execute a function with exponential backoff retry.

    Args:
        func: Callable to execute
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay between retries (seconds)
        max_delay: Maximum delay between retries (seconds)

    Returns:
        Result of successful function execution

    Raises:
        RetryableError: If all retries are exhausted
        ClientError: For non-retryable AWS errors
    """
    last_error = None

    for attempt in range(max_retries + 1):
        try:
            return func()
        except ClientError as e:
            if not is_retryable_error(e):
                raise

            last_error = e

            if attempt < max_retries:
                delay = min(base_delay * (2**attempt), max_delay)
                # ±25% jitter
                delay *= 0.75 + random.random() * 0.5
                time.sleep(delay)

    raise RetryableError(
        f"Operation failed after {max_retries + 1} attempts",
        original_error=last_error,
    )


def read_manifest(bucket: str, key: str) -> str:
    """Download a manifest and decode it as UTF-8."""
    settings = get_settings()
    s3 = get_s3_client()

    response = retry_with_backoff(
        lambda: s3.get_object(Bucket=bucket, Key=key),
        max_retries=settings.max_retries,
        base_delay=settings.retry_delay_seconds,
    )
    return response["Body"].read().decode("utf-8")


def write_manifest(bucket: str, key: str, body: str, manifest_format: str) -> None:
    """Upload a manifest with the Content-Type for its format."""
    settings = get_settings()
    s3 = get_s3_client()

    retry_with_backoff(
        lambda: s3.put_object(
            Bucket=bucket,
            Key=key,
            Body=body.encode("utf-8"),
            ContentType=MANIFEST_CONTENT_TYPES[manifest_format],
        ),
        max_retries=settings.max_retries,
        base_delay=settings.retry_delay_seconds,
    )


def clear_client_cache() -> None:
    """Clear the cached S3 client.

    Useful for testing when mocking needs to be reset.
    """
    get_s3_client.cache_clear()
