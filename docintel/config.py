"""
Runtime configuration for the document intelligence pipeline.

Values come from the environment (or a ``.env`` file). Services accept an
explicit ``Settings`` instance; ``get_settings`` is only a convenience for
application startup code.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Cloud engines
    azure_computer_vision_endpoint: Optional[str] = None
    azure_computer_vision_api_key: Optional[str] = None
    google_vision_api_key: Optional[str] = None
    google_vision_url: str = "https://vision.googleapis.com/v1/images:annotate"

    # Local engine
    tesseract_cmd: Optional[str] = None

    # Async provider polling
    poll_max_attempts: int = Field(default=30, ge=1, validation_alias="OCR_POLL_MAX_ATTEMPTS")
    poll_interval_seconds: float = Field(default=1.0, ge=0.0, validation_alias="OCR_POLL_INTERVAL_SECONDS")

    # HTTP
    request_timeout_seconds: float = Field(default=60.0, gt=0.0, validation_alias="OCR_REQUEST_TIMEOUT_SECONDS")

    # Orchestration
    batch_concurrency: int = Field(default=3, ge=1, validation_alias="OCR_BATCH_CONCURRENCY")
    line_grouping_threshold: float = Field(default=10.0, gt=0.0, validation_alias="OCR_LINE_GROUPING_THRESHOLD")

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and services embedding the pipeline."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
