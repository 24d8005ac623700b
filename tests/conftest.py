import asyncio
from typing import List, Optional

import pytest

from docintel.config import Settings
from docintel.models import BoundingBox, OCRBlock, OCRLine, OCRMetadata, OCROptions, OCRResult, OCRWord
from docintel.ocr_processors import BaseOCRProcessor


def build_ocr_result(text: str,
                     confidence: float,
                     word_confidences: Optional[List[float]] = None,
                     engine: str = "stub") -> OCRResult:
    """OCR result whose words are the whitespace tokens of ``text``."""
    tokens = text.split()
    words = []
    for i, token in enumerate(tokens):
        word_confidence = word_confidences[i] if word_confidences else confidence
        words.append(OCRWord(
            text=token,
            confidence=word_confidence,
            bbox=BoundingBox(x0=i * 60, y0=10, x1=i * 60 + 50, y1=30),
        ))
    blocks = [OCRBlock.from_lines([OCRLine.from_words(words)])] if words else []
    return OCRResult.from_blocks(
        blocks,
        metadata=OCRMetadata(engine_used=engine, processing_time=0.01),
        confidence=confidence,
        text=text,
    )


class StubEngine(BaseOCRProcessor):
    """Engine double with a fixed confidence or a fixed error."""

    def __init__(self,
                 name: str,
                 confidence: float = 0.9,
                 text: str = "نص تجريبي",
                 error: Optional[Exception] = None,
                 available: bool = True,
                 delay: float = 0.0,
                 fail_on: Optional[bytes] = None):
        super().__init__(engine_name=name, settings=Settings())
        self.confidence = confidence
        self.text = text
        self.error = error
        self.available = available
        self.delay = delay
        self.fail_on = fail_on
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def is_available(self) -> bool:
        return self.available

    async def process(self, image_bytes: bytes, options: Optional[OCROptions] = None) -> OCRResult:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            if self.fail_on is not None and image_bytes == self.fail_on:
                raise RuntimeError(f"cannot read {image_bytes!r}")
            return build_ocr_result(self.text, self.confidence, engine=self.name)
        finally:
            self.in_flight -= 1


@pytest.fixture
def settings():
    return Settings(
        azure_computer_vision_endpoint="https://azure.test",
        azure_computer_vision_api_key="azure-key",
        google_vision_api_key="google-key",
        poll_max_attempts=3,
        poll_interval_seconds=1.0,
    )


@pytest.fixture
def ocr_result_factory():
    return build_ocr_result


@pytest.fixture
def stub_engine_class():
    return StubEngine
