"""
Application configuration with environment-based settings.

Configuration is centralized here so the classifier tiers, timeouts and
external service endpoints can be swapped per environment without
touching pipeline code.
"""

from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache

from wildlife_id.models.enums import ModelKind


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "Wildlife Species Identification API"
    app_version: str = "0.1.0"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Remote classifiers (Hugging Face Inference API)
    huggingface_api_key: Optional[str] = None
    huggingface_api_url: str = "https://api-inference.huggingface.co/models"

    primary_model: str = "google/vit-base-patch16-224"
    primary_model_kind: ModelKind = ModelKind.GENERIC
    backup_model_1: str = "microsoft/resnet-50"
    backup_model_1_kind: ModelKind = ModelKind.GENERIC
    backup_model_2: str = "facebook/deit-base-distilled-patch16-224"
    backup_model_2_kind: ModelKind = ModelKind.GENERIC

    # Timeouts (seconds)
    # Per remote tier; the three tiers share the identify guard below
    classifier_timeout_seconds: float = 4.0
    image_fetch_timeout_seconds: float = 10.0
    reference_lookup_timeout_seconds: float = 5.0
    identify_timeout_seconds: float = 15.0
    submission_timeout_seconds: float = 25.0

    # Reference text lookup (scientific name enrichment)
    reference_lookup_url: str = "https://en.wikipedia.org/api/rest_v1"

    # Identification behaviour
    max_image_size_mb: float = 10.0
    max_suggestions: int = 5
    auto_fill_confidence_threshold: float = 0.7

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "WILDLIFE_ID_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
