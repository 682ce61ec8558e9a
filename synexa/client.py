"""
Async client for the Synexa prediction API.

Provides:
- create_prediction: POST /predictions
- get_prediction: GET /predictions/{id}
- wait_for_prediction: POST /predictions/{id}/wait (held open server-side)
- wait: block or poll until a prediction finishes (see synexa.wait)
- run: create, wait, and map outputs to strings / FileOutput handles

Errors:
- Transport failures never escape as httpx exceptions. create_prediction
  raises SubmissionFailedError, get_prediction and wait_for_prediction raise
  StatusFetchFailedError, with the original exception chained.
- There are no retries. The only local recovery is the blocking-to-polling
  fallback inside wait().
"""
from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from synexa.cancellation import CancellationToken
from synexa.exceptions import (
    NoOutputError,
    PredictionCancelledError,
    StatusFetchFailedError,
    SubmissionFailedError,
    TransportError,
)
from synexa.file_output import Fetcher, FileOutput, looks_like_url
from synexa.infra.logging import get_logger
from synexa.infra.settings import get_settings
from synexa.schemas import (
    BlockingWaitRequest,
    CreatePredictionRequest,
    Prediction,
    WaitOptions,
    WebhookEvent,
    parse_model_identifier,
)
from synexa.wait import PredictionWaiter, ProgressCallback

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"

Output = Union[str, FileOutput]


class Synexa:
    """
    Client for the prediction API.

    Usage:
        async with Synexa(api_key="...") as client:
            outputs = await client.run(
                "black-forest-labs/flux-schnell",
                {"prompt": "a red fox"},
            )
            data = await outputs[0].read()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        file_fetcher: Optional[Fetcher] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: API key (default: SYNEXA_API_KEY)
            base_url: API base URL (default: SYNEXA_BASE_URL)
            timeout_seconds: Timeout for create/get requests
                (default: SYNEXA_REQUEST_TIMEOUT_SECONDS)
            http_client: Pre-built httpx client; used as-is and not closed
                by this client
            file_fetcher: Downloader used by FileOutput handles from run()

        Raises:
            ValueError: If no API key is configured
        """
        settings = get_settings()

        self.api_key = api_key or settings.get_api_key()
        if not self.api_key:
            raise ValueError(
                "An API key is required: pass api_key or set SYNEXA_API_KEY"
            )

        self.base_url = (base_url or settings.SYNEXA_BASE_URL).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.SYNEXA_REQUEST_TIMEOUT_SECONDS
        self.wait_timeout_margin = settings.SYNEXA_WAIT_TIMEOUT_MARGIN_SECONDS
        self.file_fetcher = file_fetcher

        self._client = http_client
        self._owns_client = http_client is None
        self._waiter = PredictionWaiter(self)

        logger.debug(
            "synexa_client_initialized",
            extra={"base_url": self.base_url, "timeout_seconds": self.timeout_seconds},
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            API_KEY_HEADER: self.api_key,
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client is not None:
            if not self._client.is_closed:
                await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "Synexa":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        error_class: type[TransportError],
        error_prefix: str,
        prediction_id: Optional[str] = None,
        json: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Prediction:
        """
        Send one request and parse a Prediction from the response.

        Raises:
            error_class: On transport failure, non-2xx status or bad payload
        """
        client = self._get_client()
        kwargs: dict[str, Any] = {"headers": self.headers}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout)

        try:
            response = await client.request(method, f"{self.base_url}{path}", **kwargs)
            response.raise_for_status()
            return Prediction.model_validate(response.json())

        except httpx.HTTPStatusError as e:
            logger.error(
                "synexa_http_error",
                extra={"path": path, "status_code": e.response.status_code},
            )
            raise error_class(
                f"{error_prefix}: {e}",
                prediction_id=prediction_id,
                original_error=e,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "synexa_transport_error",
                extra={"path": path, "error": str(e), "error_type": type(e).__name__},
            )
            raise error_class(
                f"{error_prefix}: {e}",
                prediction_id=prediction_id,
                original_error=e,
            ) from e
        except (ValueError, ValidationError) as e:
            # Undecodable JSON or a body that is not a prediction
            logger.error(
                "synexa_invalid_response",
                extra={"path": path, "error": str(e)},
            )
            raise error_class(
                f"{error_prefix}: invalid response body: {e}",
                prediction_id=prediction_id,
                original_error=e,
            ) from e

    # =========================================================================
    # Predictions
    # =========================================================================

    async def create_prediction(
        self,
        model: str,
        input: dict[str, Any],
        webhook: Optional[str] = None,
        webhook_events_filter: Optional[Sequence[WebhookEvent]] = None,
    ) -> Prediction:
        """
        Submit a prediction.

        Args:
            model: "owner/name" of the model
            input: Model inputs
            webhook: URL notified by the server on prediction events
            webhook_events_filter: Events that trigger the webhook

        Returns:
            The newly created prediction (usually "starting")

        Raises:
            SubmissionFailedError: On transport failure
        """
        request = CreatePredictionRequest(
            model=model,
            input=input,
            webhook=webhook,
            webhook_events_filter=(
                list(webhook_events_filter) if webhook_events_filter is not None else None
            ),
        )

        prediction = await self._request(
            "POST",
            "/predictions",
            SubmissionFailedError,
            "Failed to create prediction",
            json=request.model_dump(exclude_none=True),
        )

        logger.info(
            "prediction_created",
            extra={
                "prediction_id": prediction.id,
                "model": prediction.model,
                "status": prediction.status,
            },
        )
        return prediction

    async def get_prediction(self, prediction_id: str) -> Prediction:
        """
        Fetch the current snapshot of a prediction.

        Raises:
            StatusFetchFailedError: On transport failure
        """
        return await self._request(
            "GET",
            f"/predictions/{prediction_id}",
            StatusFetchFailedError,
            "Failed to get prediction",
            prediction_id=prediction_id,
        )

    async def wait_for_prediction(
        self,
        prediction_id: str,
        timeout: int,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Prediction:
        """
        Ask the server to hold the request until the prediction finishes
        or ``timeout`` seconds pass.

        The returned snapshot may still be non-terminal when the server-side
        timeout expired. When ``cancel_token`` fires, the in-flight request is
        cancelled, which closes its connection.

        Raises:
            PredictionCancelledError: If the token fired before or during the request
            StatusFetchFailedError: On transport failure
        """
        if cancel_token is not None and cancel_token.is_cancelled:
            raise PredictionCancelledError(prediction_id=prediction_id)

        request = self._request(
            "POST",
            f"/predictions/{prediction_id}/wait",
            StatusFetchFailedError,
            "Failed to wait for prediction",
            prediction_id=prediction_id,
            json=BlockingWaitRequest(timeout=timeout).model_dump(),
            timeout=timeout + self.wait_timeout_margin,
        )

        if cancel_token is None:
            return await request

        request_task = asyncio.ensure_future(request)
        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait(
                {request_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await request_task

        if request_task.cancelled():
            logger.info("blocking_wait_cancelled", extra={"prediction_id": prediction_id})
            raise PredictionCancelledError(prediction_id=prediction_id)

        return request_task.result()

    async def wait(
        self,
        prediction: Prediction,
        options: Optional[WaitOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Prediction:
        """
        Wait until ``prediction`` succeeds or fails.

        See PredictionWaiter.wait for modes, progress ordering and errors.
        """
        return await self._waiter.wait(
            prediction,
            options=options,
            cancel_token=cancel_token,
            progress=progress,
        )

    async def run(
        self,
        identifier: str,
        input: dict[str, Any],
        wait: Optional[WaitOptions] = None,
        webhook: Optional[str] = None,
        webhook_events_filter: Optional[Sequence[WebhookEvent]] = None,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> list[Output]:
        """
        Run a model and wait for its outputs.

        Args:
            identifier: "owner/name" or "owner/name:version" (version is ignored)
            input: Model inputs
            wait: How to wait (default: block with polling fallback)
            webhook: URL notified by the server on prediction events
            webhook_events_filter: Events that trigger the webhook
            cancel_token: Stops the wait when cancelled
            progress: Called with every observed snapshot

        Returns:
            Outputs in server order; URLs become FileOutput handles, other
            strings are returned unchanged

        Raises:
            ValueError: If the identifier is not "owner/name[:version]"
            SubmissionFailedError: If the prediction could not be created
            PredictionFailedError: If the prediction failed
            PredictionCancelledError: If the wait was cancelled
            NoOutputError: If the prediction succeeded without output
        """
        model = parse_model_identifier(identifier)

        prediction = await self.create_prediction(
            model.model,
            input,
            webhook=webhook,
            webhook_events_filter=webhook_events_filter,
        )

        result = await self.wait(
            prediction,
            options=wait,
            cancel_token=cancel_token,
            progress=progress,
        )

        if result.output is None:
            raise NoOutputError(prediction_id=result.id)

        return [self._to_output(value) for value in result.output]

    def _to_output(self, value: str) -> Output:
        if looks_like_url(value):
            return FileOutput(value, fetcher=self.file_fetcher)
        return value
