"""Custom exception hierarchy for the manifest editor.

All editor-specific exceptions inherit from ManifestEditorError,
enabling consistent error handling and structured error responses.

Exception hierarchy:
    ManifestEditorError (base)
    ├── ManifestConstructionError
    ├── AttributeParseError
    ├── BandwidthCalculationError
    ├── UnsupportedOperationError
    ├── OperationParameterError
    ├── RoundTripError
    └── RetryableError
"""

from typing import Any


class ManifestEditorError(Exception):
    """Base exception for all manifest editor errors.

    Provides structured error information suitable for logging,
    CloudWatch metrics, and Lambda error responses.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for metrics/filtering
        details: Additional context as key-value pairs
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize editor error.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (e.g., 'ATTRIBUTE_PARSE_ERROR')
            details: Additional context for debugging
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSON serialization.

        Returns:
            Dictionary with error_code, error_message, and details.
            Uses 'error_message' instead of 'message' because the logging
            module reserves 'message' internally.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.error_code!r}, {self.message!r})"


class ManifestConstructionError(ManifestEditorError):
    """Raised when a manifest string cannot be turned into a document.

    This covers:
    - Input that is not a string, or is empty
    - Malformed XML or an unexpected root element
    - Multi-period MPDs
    - Missing #EXTM3U header or a media (segment) playlist
    - A variant stream tag without its URI line
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "MANIFEST_CONSTRUCTION_ERROR", details)


class AttributeParseError(ManifestEditorError):
    """Raised when an HLS attribute list violates the KEY=VALUE grammar."""

    def __init__(self, message: str, line: str, position: int | None = None) -> None:
        """Initialize attribute parse error.

        Args:
            message: Error description
            line: The attribute list being parsed
            position: Character offset where parsing stopped
        """
        details = {"line": line, "position": position}
        super().__init__(message, "ATTRIBUTE_PARSE_ERROR", details)
        self.line = line
        self.position = position


class BandwidthCalculationError(ManifestEditorError):
    """Raised when a bandwidth cannot be derived from size and duration."""

    def __init__(
        self,
        file_size_bytes: int,
        duration_seconds: float,
        reason: str = "duration must be positive",
    ) -> None:
        details = {
            "file_size_bytes": file_size_bytes,
            "duration_seconds": duration_seconds,
        }
        message = (
            f"Cannot derive bandwidth from {file_size_bytes} bytes over "
            f"{duration_seconds}s: {reason}"
        )
        super().__init__(message, "BANDWIDTH_CALCULATION_ERROR", details)


class UnsupportedOperationError(ManifestEditorError):
    """Raised when an edit operation is unknown for the manifest format."""

    def __init__(self, operation: str, manifest_format: str) -> None:
        details = {"operation": operation, "format": manifest_format}
        message = f"Operation '{operation}' is not supported for {manifest_format} manifests"
        super().__init__(message, "UNSUPPORTED_OPERATION_ERROR", details)


class OperationParameterError(ManifestEditorError):
    """Raised when an edit operation is given parameters it does not accept."""

    def __init__(self, operation: str, reason: str, params: dict[str, Any] | None = None) -> None:
        details = {"operation": operation, "params": sorted(params or {})}
        message = f"Invalid parameters for operation '{operation}': {reason}"
        super().__init__(message, "INVALID_OPERATION_PARAMETERS", details)


class RoundTripError(ManifestEditorError):
    """Raised when an edited manifest does not serialize stably.

    The handler refuses to write such a manifest back to storage.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "ROUND_TRIP_ERROR", details)


class RetryableError(ManifestEditorError):
    """Raised for transient errors that should be retried."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize retryable error.

        Args:
            message: Error description
            original_error: The underlying exception that triggered this
            details: Additional context
        """
        error_details = details or {}
        if original_error:
            error_details["original_error"] = str(original_error)
            error_details["original_error_type"] = type(original_error).__name__

        super().__init__(message, "RETRYABLE_ERROR", error_details)
        self.original_error = original_error
