"""
Pydantic schemas for the prediction API.

Prediction mirrors the server's prediction object. It is a point-in-time
snapshot: the local copy never changes state, a newer snapshot comes from
fetching the prediction again.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


WebhookEvent = Literal["start", "output", "logs", "completed"]
WaitMode = Literal["poll", "block"]


class PredictionStatus(str, Enum):
    """Statuses reported by the server."""
    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Only these end a wait; any other status (including unknown ones) keeps waiting
TERMINAL_STATUSES = frozenset({
    PredictionStatus.SUCCEEDED.value,
    PredictionStatus.FAILED.value,
})


class SynexaRequestModel(BaseModel):
    """Base model for request bodies."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )


class SynexaResponseModel(BaseModel):
    """Base model for server responses. Unknown fields are dropped."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        protected_namespaces=(),
    )


# =============================================================================
# Prediction
# =============================================================================


class Prediction(SynexaResponseModel):
    """
    Snapshot of a prediction as last reported by the server.

    ``status`` is kept as a plain string so that statuses this client does
    not know about still parse; they are treated as non-terminal.
    """

    id: str = Field(..., description="Server-assigned prediction ID")
    model: str = Field(..., description="owner/name of the model")
    version: Optional[str] = Field(None, description="Model version")
    input: dict[str, Any] = Field(default_factory=dict)
    status: str = Field(..., description="Server-reported status")
    output: Optional[list[str]] = Field(
        None,
        description="Outputs, populated once the server produces them"
    )
    error: Optional[str] = Field(None, description="Error text when status is failed")
    logs: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    metrics: Optional[dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == PredictionStatus.SUCCEEDED.value

    @property
    def failed(self) -> bool:
        return self.status == PredictionStatus.FAILED.value


class CreatePredictionRequest(SynexaRequestModel):
    """Body of POST /predictions."""

    model: str = Field(..., min_length=1, description="owner/name of the model")
    input: dict[str, Any] = Field(default_factory=dict)
    webhook: Optional[str] = Field(
        None,
        description="URL the server calls back with prediction updates"
    )
    webhook_events_filter: Optional[list[WebhookEvent]] = Field(
        None,
        description="Subset of events that trigger the webhook"
    )


class BlockingWaitRequest(SynexaRequestModel):
    """Body of POST /predictions/{id}/wait."""

    timeout: int = Field(..., ge=1, description="Seconds the server may hold the request")


# =============================================================================
# Waiting
# =============================================================================


class WaitOptions(SynexaRequestModel):
    """
    How to wait for a prediction to finish.

    - mode: "block" holds one request open server-side; "poll" re-fetches
      the prediction every ``interval`` milliseconds.
    - interval: milliseconds between polls, and between blocking requests
      that came back unfinished; at least 1
    - timeout: seconds the server holds a blocking request (block mode)
    """

    mode: WaitMode = "block"
    interval: int = Field(default=500, ge=1, description="Poll interval in milliseconds")
    timeout: int = Field(default=60, ge=1, description="Blocking wait timeout in seconds")

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000.0


# =============================================================================
# Files
# =============================================================================


class FetchedFile(SynexaResponseModel):
    """Bytes downloaded for a file output."""

    content: bytes
    content_type: Optional[str] = None


# =============================================================================
# Model identifiers
# =============================================================================


class ModelIdentifier(NamedTuple):
    """Parsed ``owner/name[:version]``."""
    owner: str
    name: str
    version: Optional[str] = None

    @property
    def model(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_model_identifier(identifier: str) -> ModelIdentifier:
    """
    Split ``owner/name[:version]`` into its parts.

    Args:
        identifier: Model identifier, e.g. "black-forest-labs/flux-schnell"

    Returns:
        ModelIdentifier

    Raises:
        ValueError: If owner or name is missing
    """
    owner, sep, rest = identifier.partition("/")
    name, _, version = rest.partition(":")
    if not sep or not owner or not name:
        raise ValueError(
            f"Invalid model identifier {identifier!r}, expected 'owner/name[:version]'"
        )
    return ModelIdentifier(owner=owner, name=name, version=version or None)
