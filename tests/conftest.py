"""
Shared fixtures for the identification test suite.

Remote services are simulated with httpx.MockTransport so no test touches
the network.
"""

import asyncio
import base64
import io
from typing import Callable, List, Optional

import httpx
import pytest
from PIL import Image

from wildlife_id.core.config import Settings
from wildlife_id.ml.base import ClassifierInterface, RawPrediction
from wildlife_id.models.enums import ModelKind
from wildlife_id.services.identification_service import IdentificationService


HF_URL = "https://hf.test/models"
REFERENCE_URL = "https://reference.test/api/rest_v1"

PRIMARY_PATH = "/models/google/vit-base-patch16-224"
BACKUP_1_PATH = "/models/microsoft/resnet-50"
BACKUP_2_PATH = "/models/facebook/deit-base-distilled-patch16-224"

PIGEON_DATA_URL = "data:image/jpeg;base64,bird feather pigeon blue-gray gray round head"


def make_settings(**overrides) -> Settings:
    """Settings pointing every remote service at a test host."""
    values = dict(
        huggingface_api_url=HF_URL,
        huggingface_api_key="hf_test_token",
        reference_lookup_url=REFERENCE_URL,
        classifier_timeout_seconds=2.0,
        image_fetch_timeout_seconds=2.0,
        reference_lookup_timeout_seconds=2.0,
        submission_timeout_seconds=5.0,
    )
    values.update(overrides)
    return Settings(**values)


def build_service(handler: Callable[[httpx.Request], httpx.Response], **overrides) -> IdentificationService:
    """IdentificationService whose HTTP traffic goes to ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IdentificationService(client=client, settings=make_settings(**overrides))


def classifier_response(*pairs) -> httpx.Response:
    return httpx.Response(200, json=[{"label": label, "score": score} for label, score in pairs])


class RecordingHandler:
    """
    MockTransport handler routing by URL path.

    Unrouted requests fail with a connection error, like an unreachable host.
    """

    def __init__(self):
        self.routes = {}
        self.requests: List[httpx.Request] = []

    def route(self, path_fragment: str, response):
        self.routes[path_fragment] = response
        return self

    def calls_to(self, path_fragment: str) -> List[httpx.Request]:
        return [r for r in self.requests if path_fragment in r.url.path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for fragment, response in self.routes.items():
            if fragment in request.url.path:
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(request)
                return response
        raise httpx.ConnectError("Connection refused", request=request)


class FakeClassifier(ClassifierInterface):
    """In-process classifier with scripted behaviour."""

    def __init__(
        self,
        model_id: str = "test/model",
        predictions: Optional[List[RawPrediction]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        model_kind: ModelKind = ModelKind.GENERIC,
    ):
        self._model_id = model_id
        self._model_kind = model_kind
        self.predictions = predictions or []
        self.error = error
        self.delay = delay
        self.calls = 0
        self.cancelled = False

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def model_kind(self) -> ModelKind:
        return self._model_kind

    async def classify(self, image_bytes: bytes) -> List[RawPrediction]:
        self.calls += 1
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return list(self.predictions)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def png_bytes():
    """Small gray PNG image."""
    img = Image.new("RGB", (32, 32), color=(128, 128, 140))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
