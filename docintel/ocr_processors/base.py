"""
Base OCR processor interface and image preprocessing utilities.
"""

import io
import time
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

import cv2
import httpx
import numpy as np
from PIL import Image, UnidentifiedImageError

from ..config import Settings, get_settings
from ..exceptions import EngineNotAvailableError
from ..models import (
    DetectedLanguage,
    ImageMetadata,
    OCRLine,
    OCRMetadata,
    OCROptions,
    OCRResult,
    OCRWord,
)
from ..text_enhancers.arabic_utils import calculate_language_distribution, contains_arabic

logger = logging.getLogger(__name__)


class ImagePreprocessor:
    """Image preprocessing applied before local recognition."""

    DEFAULT_STEPS = ['scaling', 'grayscale', 'contrast_enhancement', 'sharpening']

    def __init__(self, steps: Optional[List[str]] = None):
        self.preprocessing_steps: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
            'scaling': self._apply_scaling,
            'grayscale': self._apply_grayscale,
            'contrast_enhancement': self._apply_contrast_enhancement,
            'sharpening': self._apply_sharpening,
        }
        self.steps = steps or list(self.DEFAULT_STEPS)

    def enhance(self, image_bytes: bytes) -> bytes:
        """
        Apply the configured steps and return PNG-encoded bytes.

        Args:
            image_bytes: Encoded source image

        Returns:
            Enhanced image bytes, or the original bytes when the image cannot
            be decoded or re-encoded
        """
        image = cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
        if image is None:
            logger.warning("Image enhancement failed, using original: could not decode image")
            return image_bytes

        for step in self.steps:
            if step not in self.preprocessing_steps:
                logger.warning(f"Unknown preprocessing step: {step}")
                continue
            try:
                image = self.preprocessing_steps[step](image)
                logger.debug(f"Applied preprocessing step: {step}")
            except cv2.error as e:
                logger.warning(f"Failed to apply preprocessing step {step}: {e}")

        ok, encoded = cv2.imencode(".png", image)
        if not ok:
            logger.warning("Image enhancement failed, using original: could not encode image")
            return image_bytes
        return encoded.tobytes()

    def _apply_scaling(self, image: np.ndarray) -> np.ndarray:
        """Upscale small scans and downscale very large ones."""
        height, width = image.shape[:2]

        if width < 1000 or height < 1000:
            scale = max(2.0, 1500 / max(width, height))
            return cv2.resize(image, (int(width * scale), int(height * scale)), interpolation=cv2.INTER_LANCZOS4)
        if width > 4000 or height > 4000:
            scale = 3000 / max(width, height)
            return cv2.resize(image, (int(width * scale), int(height * scale)), interpolation=cv2.INTER_AREA)

        return image

    def _apply_grayscale(self, image: np.ndarray) -> np.ndarray:
        if len(image.shape) == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return image

    def _apply_contrast_enhancement(self, image: np.ndarray) -> np.ndarray:
        """Enhance contrast using CLAHE (Contrast Limited Adaptive Histogram Equalization)."""
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        if len(image.shape) == 3:
            lab = cv2.cvtColor(image, cv2.COLOR_BGR2LAB)
            lab[:, :, 0] = clahe.apply(lab[:, :, 0])
            return cv2.cvtColor(lab, cv2.COLOR_LAB2BGR)
        return clahe.apply(image)

    def _apply_sharpening(self, image: np.ndarray) -> np.ndarray:
        kernel = np.array([[0, -1, 0],
                           [-1, 5, -1],
                           [0, -1, 0]])
        return cv2.filter2D(image, -1, kernel)


def read_image_metadata(image_bytes: bytes) -> ImageMetadata:
    """
    Read width, height, format and DPI of an encoded image.

    Undecodable input yields ``ImageMetadata()`` (0x0, format "unknown").
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            dpi = image.info.get("dpi")
            return ImageMetadata(
                width=image.width,
                height=image.height,
                format=(image.format or "unknown").lower(),
                dpi=int(round(dpi[0])) if dpi else None,
            )
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug(f"Could not read image metadata: {e}")
        return ImageMetadata()


def group_words_into_lines(words: List[OCRWord], threshold: float = 10.0) -> List[OCRLine]:
    """
    Cluster words into lines by the top edge of their boxes.

    Words are visited top to bottom; a word joins the current line while its
    top edge is within ``threshold`` pixels of the line's running mean.
    Words inside a line are ordered right to left when the line holds Arabic.

    Args:
        words: Words without line information
        threshold: Maximum vertical distance in pixels

    Returns:
        Lines in top-to-bottom order, each owning its words
    """
    lines: List[OCRLine] = []
    current: List[OCRWord] = []
    current_y: Optional[float] = None

    for word in sorted(words, key=lambda w: w.bbox.y0):
        if current_y is None or abs(word.bbox.y0 - current_y) <= threshold:
            current.append(word)
            current_y = word.bbox.y0 if current_y is None else (current_y + word.bbox.y0) / 2
        else:
            lines.append(_make_line(current))
            current = [word]
            current_y = word.bbox.y0

    if current:
        lines.append(_make_line(current))
    return lines


def _make_line(words: List[OCRWord]) -> OCRLine:
    rtl = any(contains_arabic(w.text) for w in words)
    ordered = sorted(words, key=lambda w: w.bbox.x0, reverse=rtl)
    return OCRLine.from_words(ordered)


def detect_languages(text: str) -> List[DetectedLanguage]:
    """Arabic/English share of the recognized letters, largest first."""
    arabic, english = calculate_language_distribution(text)
    languages = [
        DetectedLanguage(language="ara", confidence=arabic),
        DetectedLanguage(language="eng", confidence=english),
    ]
    return sorted((lang for lang in languages if lang.confidence > 0), key=lambda lang: lang.confidence, reverse=True)


class BaseOCRProcessor(ABC):
    """Base class for all OCR engines."""

    def __init__(self, engine_name: str, settings: Optional[Settings] = None):
        self.name = engine_name
        self.settings = settings or get_settings()
        self.logger = logging.getLogger(f"{__name__}.{engine_name}")

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the engine is installed or configured. Must not acquire resources."""
        pass

    @abstractmethod
    async def process(self, image_bytes: bytes, options: Optional[OCROptions] = None) -> OCRResult:
        """
        Recognize text in an encoded image.

        Args:
            image_bytes: Encoded image (PNG, JPEG, TIFF, ...)
            options: Recognition options, defaults to ``OCROptions()``

        Returns:
            OCR result with words, lines and blocks

        Raises:
            EngineNotAvailableError: If the engine is not configured
            OCREngineError: If recognition fails
        """
        pass

    def _ensure_available(self) -> None:
        if not self.is_available():
            raise EngineNotAvailableError(self.name)

    def _build_metadata(self, start_time: float, image_bytes: bytes, text: str,
                        languages: Optional[List[DetectedLanguage]] = None) -> OCRMetadata:
        return OCRMetadata(
            engine_used=self.name,
            processing_time=time.perf_counter() - start_time,
            image_metadata=read_image_metadata(image_bytes),
            detected_languages=languages if languages is not None else detect_languages(text),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class CloudOCRProcessor(BaseOCRProcessor):
    """Base class for engines that call a provider over HTTP."""

    def __init__(self,
                 engine_name: str,
                 settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(engine_name=engine_name, settings=settings)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.request_timeout_seconds, transport=self._transport)
