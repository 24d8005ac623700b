"""
Azure Computer Vision Read API processor.

The Read API is asynchronous: the image is submitted once, then the
operation URL returned in ``Operation-Location`` is polled until the
analysis finishes.
"""

import asyncio
import time
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from .base import CloudOCRProcessor
from .polling import OperationPoller, PollPolicy, PollState
from ..config import Settings
from ..exceptions import OCREngineError, PollingTimeoutError
from ..models import BoundingBox, OCRBlock, OCRLine, OCROptions, OCRResult, OCRWord, clamp_confidence

logger = logging.getLogger(__name__)

AZURE_ENGINE = "azure"
READ_ANALYZE_PATH = "/vision/v3.2/read/analyze"

# The Read API omits word confidence for some scripts.
DEFAULT_WORD_CONFIDENCE = 0.9

_STATUS_STATES = {
    "succeeded": PollState.SUCCEEDED,
    "failed": PollState.FAILED,
}


def _polygon_box(polygon: List[float]) -> BoundingBox:
    """Bounding box of a flat ``[x1, y1, x2, y2, ...]`` polygon."""
    return BoundingBox.from_points(polygon[0::2], polygon[1::2])


class AzureReadProcessor(CloudOCRProcessor):
    """Azure Cognitive Services Read engine."""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 poll_policy: Optional[PollPolicy] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        Initialize Azure Read processor.

        Args:
            settings: Runtime settings holding the endpoint and subscription key
            transport: httpx transport override
            poll_policy: Result polling policy, defaults to the settings' policy
            sleep: Coroutine used to wait between polls
        """
        super().__init__(engine_name=AZURE_ENGINE, settings=settings, transport=transport)
        self.endpoint = (self.settings.azure_computer_vision_endpoint or "").rstrip("/")
        self.api_key = self.settings.azure_computer_vision_api_key
        self.poller = OperationPoller(poll_policy or PollPolicy.from_settings(self.settings), sleep=sleep)

    def is_available(self) -> bool:
        return bool(self.endpoint and self.api_key)

    async def process(self, image_bytes: bytes, options: Optional[OCROptions] = None) -> OCRResult:
        self._ensure_available()
        start_time = time.perf_counter()

        try:
            async with self._client() as client:
                operation_url = await self._submit(client, image_bytes)
                outcome = await self.poller.run(lambda: self._check_status(client, operation_url))
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Azure OCR processing failed: {e}")
            raise OCREngineError(self.name, f"Azure request failed: {e}") from e

        if outcome.state == PollState.FAILED:
            self.logger.error("Azure OCR processing failed: provider reported status 'failed'")
            raise OCREngineError(self.name, "Azure OCR processing failed")
        if outcome.state == PollState.TIMED_OUT:
            self.logger.error(f"Azure OCR processing timed out after {outcome.attempts} polls")
            raise PollingTimeoutError(self.name, outcome.attempts)

        result = self._convert_results(outcome.payload, image_bytes, start_time)
        self.logger.info(
            f"Azure OCR processing completed: confidence {result.confidence:.2f}, "
            f"{len(result.text)} chars in {result.metadata.processing_time:.2f}s"
        )
        return result

    async def _submit(self, client: httpx.AsyncClient, image_bytes: bytes) -> str:
        response = await client.post(
            f"{self.endpoint}{READ_ANALYZE_PATH}",
            headers={
                "Ocp-Apim-Subscription-Key": self.api_key,
                "Content-Type": "application/octet-stream",
            },
            content=image_bytes,
        )
        if not response.is_success:
            raise OCREngineError(self.name, f"Azure API error: {response.status_code} {response.reason_phrase}")

        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise OCREngineError(self.name, "No operation location returned from Azure")
        return operation_url

    async def _check_status(self, client: httpx.AsyncClient, operation_url: str) -> Tuple[PollState, Dict[str, Any]]:
        response = await client.get(operation_url, headers={"Ocp-Apim-Subscription-Key": self.api_key})
        if not response.is_success:
            raise OCREngineError(self.name, f"Azure result API error: {response.status_code}")

        body = response.json()
        # notStarted and running both count as pending
        return _STATUS_STATES.get(body.get("status"), PollState.PENDING), body

    def _convert_results(self, data: Dict[str, Any], image_bytes: bytes, start_time: float) -> OCRResult:
        """Map ``analyzeResult.readResults`` pages onto blocks; one block per page."""
        blocks = []
        for page in data.get("analyzeResult", {}).get("readResults", []):
            lines = [self._convert_line(line) for line in page.get("lines", [])]
            if lines:
                blocks.append(OCRBlock.from_lines(lines))

        lines = [line for block in blocks for line in block.lines]
        confidence = sum(line.confidence for line in lines) / len(lines) if lines else 0.0
        text = "\n".join(line.text for line in lines)

        return OCRResult.from_blocks(
            blocks,
            metadata=self._build_metadata(start_time, image_bytes, text),
            confidence=confidence,
            text=text,
        )

    def _convert_line(self, line: Dict[str, Any]) -> OCRLine:
        words = [
            OCRWord(
                text=word.get("text", ""),
                confidence=clamp_confidence(word.get("confidence", DEFAULT_WORD_CONFIDENCE)),
                bbox=_polygon_box(word.get("boundingBox", [])),
            )
            for word in line.get("words", [])
        ]
        confidence = sum(w.confidence for w in words) / len(words) if words else DEFAULT_WORD_CONFIDENCE
        return OCRLine(
            text=line.get("text", ""),
            confidence=clamp_confidence(confidence),
            bbox=_polygon_box(line.get("boundingBox", [])),
            words=words,
        )
