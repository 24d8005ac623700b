"""
Google Cloud Vision processor using DOCUMENT_TEXT_DETECTION.
"""

import base64
import time
import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import CloudOCRProcessor, group_words_into_lines
from ..config import Settings
from ..exceptions import OCREngineError
from ..models import BoundingBox, DetectedLanguage, OCRBlock, OCROptions, OCRResult, OCRWord, clamp_confidence

logger = logging.getLogger(__name__)

GOOGLE_VISION_ENGINE = "google_vision"
LANGUAGE_HINTS = ["ar", "en"]
DEFAULT_WORD_CONFIDENCE = 0.9


def _vertices_box(bounding_poly: Optional[Dict[str, Any]]) -> BoundingBox:
    vertices = (bounding_poly or {}).get("vertices", [])
    if len(vertices) < 4:
        return BoundingBox(x0=0, y0=0, x1=0, y1=0)
    # Vision omits zero coordinates from vertices.
    return BoundingBox.from_points([v.get("x", 0) for v in vertices], [v.get("y", 0) for v in vertices])


class GoogleVisionProcessor(CloudOCRProcessor):
    """
    Google Vision engine.

    The provider returns pages, blocks, paragraphs and words but no lines;
    lines are rebuilt per block with ``group_words_into_lines``.
    """

    def __init__(self,
                 settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(engine_name=GOOGLE_VISION_ENGINE, settings=settings, transport=transport)
        self.api_key = self.settings.google_vision_api_key
        self.url = self.settings.google_vision_url
        self.line_threshold = self.settings.line_grouping_threshold

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def process(self, image_bytes: bytes, options: Optional[OCROptions] = None) -> OCRResult:
        self._ensure_available()
        start_time = time.perf_counter()

        request_body = {
            "requests": [{
                "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                "features": [{"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1}],
                "imageContext": {"languageHints": LANGUAGE_HINTS},
            }]
        }

        try:
            async with self._client() as client:
                response = await client.post(self.url, params={"key": self.api_key}, json=request_body)
            if not response.is_success:
                raise OCREngineError(
                    self.name, f"Google Vision API error: {response.status_code} {response.reason_phrase}"
                )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Google Vision OCR processing failed: {e}")
            raise OCREngineError(self.name, f"Google Vision request failed: {e}") from e

        annotation = (data.get("responses") or [{}])[0]
        if "error" in annotation:
            message = annotation["error"].get("message", "unknown error")
            self.logger.error(f"Google Vision OCR processing failed: {message}")
            raise OCREngineError(self.name, f"Google Vision API error: {message}")

        result = self._convert_results(annotation, image_bytes, start_time)
        self.logger.info(
            f"Google Vision OCR processing completed: confidence {result.confidence:.2f}, "
            f"{len(result.text)} chars in {result.metadata.processing_time:.2f}s"
        )
        return result

    def _convert_results(self, annotation: Dict[str, Any], image_bytes: bytes, start_time: float) -> OCRResult:
        full_text = annotation.get("fullTextAnnotation")
        if not full_text:
            self.logger.warning("Google Vision returned no text annotation")
            return OCRResult(
                text="",
                confidence=0.0,
                metadata=self._build_metadata(start_time, image_bytes, "", languages=[]),
            )

        pages = full_text.get("pages", [])
        blocks = []
        for page in pages:
            for block in page.get("blocks", []):
                words = self._block_words(block)
                if not words:
                    continue
                lines = group_words_into_lines(words, threshold=self.line_threshold)
                built = OCRBlock.from_lines(lines)
                blocks.append(built.model_copy(update={"bbox": _vertices_box(block.get("boundingBox"))}))

        text = full_text.get("text", "")
        languages = self._detected_languages(pages)
        return OCRResult.from_blocks(
            blocks,
            metadata=self._build_metadata(start_time, image_bytes, text, languages=languages or None),
            text=text,
        )

    @staticmethod
    def _block_words(block: Dict[str, Any]) -> List[OCRWord]:
        return [
            OCRWord(
                text="".join(symbol.get("text", "") for symbol in word.get("symbols", [])),
                confidence=clamp_confidence(word.get("confidence", DEFAULT_WORD_CONFIDENCE)),
                bbox=_vertices_box(word.get("boundingBox")),
            )
            for paragraph in block.get("paragraphs", [])
            for word in paragraph.get("words", [])
        ]

    @staticmethod
    def _detected_languages(pages: List[Dict[str, Any]]) -> List[DetectedLanguage]:
        if not pages:
            return []
        detected = pages[0].get("property", {}).get("detectedLanguages", [])
        return [
            DetectedLanguage(
                language=lang.get("languageCode", "und"),
                confidence=clamp_confidence(lang.get("confidence", DEFAULT_WORD_CONFIDENCE)),
            )
            for lang in detected
        ]
