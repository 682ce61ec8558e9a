"""
Python client for the Synexa prediction API.

Usage:
    from synexa import Synexa, WaitOptions

    async with Synexa(api_key="...") as client:
        outputs = await client.run(
            "black-forest-labs/flux-schnell",
            {"prompt": "a red fox"},
            wait=WaitOptions(mode="poll", interval=1000),
        )
"""
__version__ = "0.1.0"

from synexa.cancellation import CancellationToken
from synexa.client import Synexa
from synexa.exceptions import (
    FileFetchError,
    NoOutputError,
    PredictionCancelledError,
    PredictionFailedError,
    StatusFetchFailedError,
    SubmissionFailedError,
    SynexaError,
    TransportError,
)
from synexa.file_output import FileOutput
from synexa.schemas import (
    FetchedFile,
    ModelIdentifier,
    Prediction,
    PredictionStatus,
    WaitOptions,
    parse_model_identifier,
)
from synexa.wait import PredictionWaiter

__all__ = [
    "__version__",
    # Client
    "Synexa",
    "PredictionWaiter",
    "CancellationToken",
    "FileOutput",
    # Schemas
    "Prediction",
    "PredictionStatus",
    "WaitOptions",
    "FetchedFile",
    "ModelIdentifier",
    "parse_model_identifier",
    # Exceptions
    "SynexaError",
    "TransportError",
    "SubmissionFailedError",
    "StatusFetchFailedError",
    "PredictionFailedError",
    "PredictionCancelledError",
    "NoOutputError",
    "FileFetchError",
]
