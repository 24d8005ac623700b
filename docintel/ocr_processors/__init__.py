"""
OCR processors: engine implementations, image preprocessing and polling.
"""

from .base import (
    BaseOCRProcessor,
    CloudOCRProcessor,
    ImagePreprocessor,
    detect_languages,
    group_words_into_lines,
    read_image_metadata,
)
from .polling import OperationPoller, PollOutcome, PollPolicy, PollState
from .tesseract_processor import TesseractProcessor, probe_tesseract
from .azure_read_processor import AzureReadProcessor
from .google_vision_processor import GoogleVisionProcessor
from .factory import ENGINE_PREFERENCE, create_default_processors, create_ocr_processor

__all__ = [
    "BaseOCRProcessor",
    "CloudOCRProcessor",
    "ImagePreprocessor",
    "detect_languages",
    "group_words_into_lines",
    "read_image_metadata",
    "OperationPoller",
    "PollOutcome",
    "PollPolicy",
    "PollState",
    "TesseractProcessor",
    "probe_tesseract",
    "AzureReadProcessor",
    "GoogleVisionProcessor",
    "ENGINE_PREFERENCE",
    "create_default_processors",
    "create_ocr_processor",
]
