"""
Remote Classifier Integrations

Image classification through the Hugging Face Inference API. Each tier of
the invocation chain wraps one HuggingFaceClassifier; tiers differ only in
model id and label format, so classifiers are swapped through configuration.

Request:  POST {api_url}/{model_id} with the raw image bytes as body
Response: [{"label": "...", "score": 0.93}, ...]
"""

import logging
import time
from typing import Any, List, Optional

import httpx

from wildlife_id.core.exceptions import ClassifierError
from wildlife_id.ml.base import ClassifierInterface, RawPrediction
from wildlife_id.models.enums import ModelKind

logger = logging.getLogger(__name__)


DEFAULT_API_URL = "https://api-inference.huggingface.co/models"


class HuggingFaceClassifier(ClassifierInterface):
    """
    Hugging Face hosted image-classification model.

    Raises ClassifierError for non-200 responses and malformed payloads;
    transport errors from httpx propagate unchanged.
    """

    def __init__(
        self,
        model_id: str,
        model_kind: ModelKind = ModelKind.GENERIC,
        client: Optional[httpx.AsyncClient] = None,
        api_url: str = DEFAULT_API_URL,
        api_key: Optional[str] = None,
        timeout: float = 4.0,
    ):
        """
        Args:
            model_id: Hugging Face model repository id
            model_kind: Label format emitted by the model
            client: Shared async HTTP client (one is created per call if omitted)
            api_url: Inference API base URL
            api_key: Hugging Face access token
            timeout: Per-request HTTP timeout in seconds
        """
        self._model_id = model_id
        self._model_kind = model_kind
        self._client = client
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def model_kind(self) -> ModelKind:
        return self._model_kind

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/{self._model_id}"

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/octet-stream"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def classify(self, image_bytes: bytes) -> List[RawPrediction]:
        """Run classification on the remote model."""
        start_time = time.time()

        if self._client is not None:
            response = await self._client.post(
                self.endpoint, content=image_bytes, headers=self._headers(), timeout=self.timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint, content=image_bytes, headers=self._headers()
                )

        processing_time = (time.time() - start_time) * 1000

        if response.status_code == 401:
            raise ClassifierError(self._model_id, "Invalid Hugging Face API key")
        if response.status_code == 429:
            raise ClassifierError(self._model_id, "Hugging Face API rate limit exceeded")
        if response.status_code == 503:
            raise ClassifierError(self._model_id, "Model is loading or unavailable")
        if response.status_code != 200:
            raise ClassifierError(self._model_id, f"Hugging Face API error: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ClassifierError(self._model_id, f"Response is not JSON: {e}")

        predictions = self._parse_payload(payload)
        logger.debug(
            f"{self._model_id} returned {len(predictions)} labels in {processing_time:.0f}ms"
        )
        return predictions

    def _parse_payload(self, payload: Any) -> List[RawPrediction]:
        """Validate the response body and convert it to RawPrediction."""
        if isinstance(payload, dict) and "error" in payload:
            raise ClassifierError(self._model_id, str(payload["error"]))

        if not isinstance(payload, list):
            raise ClassifierError(self._model_id, f"Unexpected payload type: {type(payload).__name__}")

        predictions = []
        for item in payload:
            if not isinstance(item, dict):
                raise ClassifierError(self._model_id, "Prediction entry is not an object")
            label = item.get("label")
            score = item.get("score")
            if not isinstance(label, str) or isinstance(score, bool) or not isinstance(score, (int, float)):
                raise ClassifierError(self._model_id, f"Malformed prediction entry: {item!r}")
            predictions.append(RawPrediction(label=label, score=float(score)))

        return predictions
