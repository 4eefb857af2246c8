import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import (
    ConfigurationError,
    PredictionFailedError,
    PredictionTimeoutError,
    UnknownPredictionStatusError,
    UpstreamAPIError,
    UpstreamParseError,
    UpstreamRequestError,
)
from ..logger import logger
from ..schemas import PENDING_STATUSES, Prediction, PredictionStatus


def first_output(output: Any) -> Any:
    """Predictions return either a single URL or a list of them."""
    if isinstance(output, list):
        return output[0] if output else None
    return output


def compact_input(model_input: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in model_input.items() if v is not None}


class ReplicateClient:
    """
    Submits predictions to the Replicate HTTP API and polls them to completion.

    One instance per request is fine: without an explicit `transport` every call
    opens its own short-lived httpx.AsyncClient.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.base_url = settings.REPLICATE_API_BASE_URL.rstrip("/")
        self.transport = transport
        self.sleep = sleep

    def _headers(self) -> Dict[str, str]:
        token = self.settings.REPLICATE_API_TOKEN
        if not token:
            raise ConfigurationError()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            ) as client:
                return await client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Request to inference API failed: {e}", extra={"path": path})
            raise UpstreamRequestError(str(e) or type(e).__name__) from e

    @staticmethod
    def _parse_prediction(response: httpx.Response) -> Prediction:
        try:
            return Prediction.model_validate(response.json())
        except ValueError as e:
            # json.JSONDecodeError and pydantic's ValidationError both land here
            detail = e.errors()[0]["msg"] if isinstance(e, ValidationError) else str(e)
            raise UpstreamParseError(detail) from e

    async def submit(self, model_id: str, model_input: Dict[str, Any]) -> str:
        """Create a prediction for `model_id` and return its id."""
        response = await self._request(
            "POST",
            f"/models/{model_id}/predictions",
            json={"input": compact_input(model_input)},
        )
        if response.status_code != 201:
            logger.error(
                f"Prediction submit rejected: {response.status_code}",
                extra={"model_id": model_id, "status_code": response.status_code},
            )
            raise UpstreamAPIError(response.status_code, response.text)

        prediction = self._parse_prediction(response)
        logger.info(f"Prediction queued: {prediction.id}", extra={"model_id": model_id})
        return prediction.id

    async def get_prediction(self, prediction_id: str) -> Prediction:
        response = await self._request("GET", f"/predictions/{prediction_id}")
        if response.status_code >= 400:
            raise UpstreamAPIError(response.status_code, response.text)
        return self._parse_prediction(response)

    async def wait_for_prediction(self, prediction_id: str, long_running: bool = False) -> Any:
        """Poll a prediction on a fixed interval until it settles or the budget runs out"""
        max_attempts = self.settings.max_attempts(long_running)
        interval = self.settings.POLL_INTERVAL_SECONDS
        logger.info(
            f"Waiting for prediction: {prediction_id}",
            extra={"max_attempts": max_attempts, "interval_s": interval},
        )

        for attempt in range(max_attempts):
            prediction = await self.get_prediction(prediction_id)
            status = prediction.status

            if status == PredictionStatus.SUCCEEDED.value:
                logger.info(f"Prediction succeeded: {prediction_id}", extra={"attempts": attempt + 1})
                return first_output(prediction.output)
            if status == PredictionStatus.FAILED.value:
                logger.error(f"Prediction failed: {prediction_id}", extra={"prediction_error": prediction.error})
                raise PredictionFailedError(prediction.error)
            if status not in PENDING_STATUSES:
                raise UnknownPredictionStatusError(status)

            await self.sleep(interval)

        logger.error(f"Prediction timed out: {prediction_id}", extra={"attempts": max_attempts})
        raise PredictionTimeoutError(prediction_id, max_attempts)

    async def run(self, model_id: str, model_input: Dict[str, Any], long_running: bool = False) -> Any:
        prediction_id = await self.submit(model_id, model_input)
        return await self.wait_for_prediction(prediction_id, long_running=long_running)
