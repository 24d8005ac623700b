"""
Factory methods for creating OCR processors.
"""

from typing import Callable, Dict, List, Optional
import logging

from .base import BaseOCRProcessor
from .azure_read_processor import AZURE_ENGINE, AzureReadProcessor
from .google_vision_processor import GOOGLE_VISION_ENGINE, GoogleVisionProcessor
from .tesseract_processor import TESSERACT_ENGINE, TesseractProcessor
from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

# Preference order for Arabic documents: best cloud engine first, local engine last.
ENGINE_PREFERENCE = (AZURE_ENGINE, GOOGLE_VISION_ENGINE, TESSERACT_ENGINE)

_ENGINE_CLASSES: Dict[str, Callable[..., BaseOCRProcessor]] = {
    AZURE_ENGINE: AzureReadProcessor,
    GOOGLE_VISION_ENGINE: GoogleVisionProcessor,
    TESSERACT_ENGINE: TesseractProcessor,
}


def create_ocr_processor(engine: str, settings: Optional[Settings] = None, **kwargs) -> BaseOCRProcessor:
    """
    Create an OCR processor instance.

    Args:
        engine: Engine name ('azure', 'google_vision', 'tesseract')
        settings: Runtime settings, defaults to ``get_settings()``
        **kwargs: Engine-specific constructor arguments (e.g. ``transport``)

    Returns:
        OCR processor instance. It is returned even when not available;
        availability is checked at orchestration time.

    Raises:
        ValueError: If engine is not supported
    """
    engine = engine.lower().strip()
    if engine not in _ENGINE_CLASSES:
        raise ValueError(f"Unsupported OCR engine: {engine}")

    processor = _ENGINE_CLASSES[engine](settings=settings or get_settings(), **kwargs)
    logger.debug(f"Created {engine} OCR processor")
    return processor


def create_default_processors(settings: Optional[Settings] = None) -> List[BaseOCRProcessor]:
    """All supported engines in preference order (Azure, Google Vision, Tesseract)."""
    settings = settings or get_settings()
    return [create_ocr_processor(engine, settings) for engine in ENGINE_PREFERENCE]
