"""
Waiting for predictions to reach a terminal status.

Two modes:
- block: ask the server to hold a request open until the prediction finishes
  (or the server-side timeout expires). If the blocking request fails for a
  transport reason the waiter falls back to polling.
- poll: re-fetch the prediction every ``interval`` milliseconds.

Progress ordering:
- ``progress`` is called with the snapshot passed in before any waiting,
  then with every snapshot fetched, in the order fetched, including the
  terminal one. It is never called concurrently with itself.

Terminal statuses are "succeeded" and "failed". Any other status keeps the
waiter going; polling has no client-side deadline.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol

from synexa.cancellation import CancellationToken
from synexa.exceptions import (
    PredictionCancelledError,
    PredictionFailedError,
    TransportError,
)
from synexa.infra.logging import LogContext, get_logger
from synexa.schemas import Prediction, WaitOptions

logger = get_logger(__name__)

ProgressCallback = Callable[[Prediction], None]


class PredictionSource(Protocol):
    """
    Where the waiter gets fresh snapshots from.

    Implemented by the Synexa client.
    """

    async def get_prediction(self, prediction_id: str) -> Prediction:
        """
        Fetch the current snapshot.

        Raises:
            StatusFetchFailedError: On transport failure
        """
        ...

    async def wait_for_prediction(
        self,
        prediction_id: str,
        timeout: int,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Prediction:
        """
        Hold a request open until the prediction finishes or ``timeout``
        seconds pass, then return the snapshot.

        Raises:
            PredictionCancelledError: If the token fires mid-request
            StatusFetchFailedError: On transport failure
        """
        ...


class PredictionWaiter:
    """
    Drives a prediction to a terminal status.

    Usage:
        waiter = PredictionWaiter(client)
        final = await waiter.wait(prediction, WaitOptions(mode="poll"))
    """

    def __init__(self, source: PredictionSource):
        self.source = source

    async def wait(
        self,
        prediction: Prediction,
        options: Optional[WaitOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> Prediction:
        """
        Wait until ``prediction`` succeeds or fails.

        Args:
            prediction: Latest known snapshot
            options: Wait mode, poll interval and blocking timeout
            cancel_token: Checked at every suspension point
            progress: Called with every observed snapshot

        Returns:
            The succeeded snapshot

        Raises:
            PredictionFailedError: If the prediction failed
            PredictionCancelledError: If cancellation was observed
            StatusFetchFailedError: If a status fetch failed while polling
        """
        options = options or WaitOptions()

        if progress is not None:
            progress(prediction)

        with LogContext(prediction_id=prediction.id):
            if options.mode == "block":
                return await self._wait_blocking(prediction, options, cancel_token, progress)
            return await self._wait_polling(prediction, options, cancel_token, progress)

    async def _wait_polling(
        self,
        prediction: Prediction,
        options: WaitOptions,
        cancel_token: Optional[CancellationToken],
        progress: Optional[ProgressCallback],
    ) -> Prediction:
        current = prediction

        while not current.is_terminal:
            if cancel_token is not None:
                if cancel_token.is_cancelled:
                    raise PredictionCancelledError(prediction_id=current.id)
                if await cancel_token.sleep(options.interval_seconds):
                    raise PredictionCancelledError(prediction_id=current.id)
            else:
                await asyncio.sleep(options.interval_seconds)

            current = await self.source.get_prediction(current.id)
            logger.debug(
                "prediction_polled",
                extra={"status": current.status},
            )

            if progress is not None:
                progress(current)

        return _finish(current)

    async def _wait_blocking(
        self,
        prediction: Prediction,
        options: WaitOptions,
        cancel_token: Optional[CancellationToken],
        progress: Optional[ProgressCallback],
    ) -> Prediction:
        current = prediction

        # The server returns early with a non-terminal snapshot once its
        # hold timeout expires; ask again, ``interval`` later, until done.
        while True:
            if cancel_token is not None and cancel_token.is_cancelled:
                raise PredictionCancelledError(prediction_id=current.id)

            try:
                current = await self.source.wait_for_prediction(
                    current.id,
                    timeout=options.timeout,
                    cancel_token=cancel_token,
                )
            except TransportError as e:
                logger.warning(
                    "blocking_wait_fallback",
                    extra={"reason": e.message, "interval_ms": options.interval},
                )
                return await self._wait_polling(current, options, cancel_token, progress)

            logger.debug(
                "blocking_wait_returned",
                extra={"status": current.status},
            )

            if progress is not None:
                progress(current)

            if current.is_terminal:
                return _finish(current)

            # Space re-issues like polls so an early-returning server is not hammered
            if cancel_token is not None:
                if await cancel_token.sleep(options.interval_seconds):
                    raise PredictionCancelledError(prediction_id=current.id)
            else:
                await asyncio.sleep(options.interval_seconds)


def _finish(prediction: Prediction) -> Prediction:
    if prediction.failed:
        logger.info(
            "prediction_failed",
            extra={"error": prediction.error},
        )
        raise PredictionFailedError(prediction)

    logger.info("prediction_succeeded")
    return prediction
