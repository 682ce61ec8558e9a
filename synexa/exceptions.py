"""
Exceptions for Synexa client operations.

Every failure surfaced by the client is a SynexaError subclass:
- SubmissionFailedError: creating a prediction failed at the transport level
- StatusFetchFailedError: fetching or waiting on a prediction failed
- PredictionFailedError: the server reported status "failed"
- PredictionCancelledError: the caller cancelled while waiting
- NoOutputError: the prediction succeeded without an output payload
- FileFetchError: downloading a file output failed
"""
from __future__ import annotations

from typing import Any, Optional


class SynexaError(Exception):
    """
    Base exception for client operations.
    """

    error_code = "synexa_error"

    def __init__(
        self,
        message: str,
        prediction_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize client error.

        Args:
            message: Human-readable error message
            prediction_id: ID of the prediction involved (if known)
            details: Additional error details
        """
        self.message = message
        self.prediction_id = prediction_id
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.prediction_id:
            result["prediction_id"] = self.prediction_id
        if self.details:
            result["details"] = self.details
        return result


class TransportError(SynexaError):
    """
    A request to the API could not be completed.

    Wraps the underlying httpx (or decoding) failure; the original exception
    is kept as ``original_error`` and chained as ``__cause__``.
    """

    error_code = "transport_error"

    def __init__(
        self,
        message: str,
        prediction_id: Optional[str] = None,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if original_error is not None:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, prediction_id=prediction_id, details=details)
        self.original_error = original_error
        self.status_code = status_code


class SubmissionFailedError(TransportError):
    """Creating a prediction failed."""

    error_code = "submission_failed"


class StatusFetchFailedError(TransportError):
    """Fetching the status of a prediction failed."""

    error_code = "status_fetch_failed"


class PredictionFailedError(SynexaError):
    """
    The server reported the prediction as failed.

    ``error`` holds the server-reported error text, ``prediction`` the
    terminal snapshot.
    """

    error_code = "prediction_failed"

    def __init__(self, prediction: Any):
        self.prediction = prediction
        self.error = prediction.error
        super().__init__(
            f"Prediction failed: {prediction.error}",
            prediction_id=prediction.id,
        )


class PredictionCancelledError(SynexaError):
    """Cancellation was observed while waiting for a prediction."""

    error_code = "prediction_cancelled"

    def __init__(
        self,
        message: str = "Prediction cancelled",
        prediction_id: Optional[str] = None,
    ):
        super().__init__(message, prediction_id=prediction_id)


class NoOutputError(SynexaError):
    """The prediction succeeded but carried no output."""

    error_code = "no_output"

    def __init__(
        self,
        message: str = "No output received from the prediction",
        prediction_id: Optional[str] = None,
    ):
        super().__init__(message, prediction_id=prediction_id)


class FileFetchError(TransportError):
    """Downloading a file output failed."""

    error_code = "file_fetch_failed"

    def __init__(
        self,
        message: str,
        url: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(
            message,
            original_error=original_error,
            status_code=status_code,
            details={"url": url},
        )
        self.url = url
