"""
Tesseract OCR processor implementation.
"""

import io
import asyncio
import time
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

import pytesseract
from PIL import Image

from .base import BaseOCRProcessor, ImagePreprocessor
from ..config import Settings
from ..exceptions import EngineNotAvailableError, OCREngineError
from ..models import BoundingBox, OCRBlock, OCRLine, OCROptions, OCRResult, OCRWord, clamp_confidence

logger = logging.getLogger(__name__)

TESSERACT_ENGINE = "tesseract"


def probe_tesseract() -> bool:
    """
    Check whether the configured Tesseract binary can be executed.

    Only runs ``tesseract --version``; no recognizer is created.
    """
    try:
        version = pytesseract.get_tesseract_version()
    except (pytesseract.TesseractNotFoundError, OSError) as e:
        logger.debug(f"Tesseract not available: {e}")
        return False
    logger.debug(f"Tesseract version: {version}")
    return True


def build_tesseract_config(options: OCROptions) -> str:
    """Tesseract command line flags for the given options."""
    config = (
        f"--oem {options.engine_mode} --psm {options.page_segmentation_mode} "
        f"-c preserve_interword_spaces={1 if options.preserve_layout else 0}"
    )
    if options.dpi:
        config += f" --dpi {options.dpi}"
    return config


class TesseractProcessor(BaseOCRProcessor):
    """Local Tesseract engine tuned for Arabic and English documents."""

    def __init__(self,
                 settings: Optional[Settings] = None,
                 preprocessor: Optional[ImagePreprocessor] = None):
        """
        Initialize Tesseract processor.

        Args:
            settings: Runtime settings; ``tesseract_cmd`` overrides the binary path
            preprocessor: Image enhancement applied when ``options.enhance_image`` is set
        """
        super().__init__(engine_name=TESSERACT_ENGINE, settings=settings)
        self.preprocessor = preprocessor or ImagePreprocessor()
        if self.settings.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.settings.tesseract_cmd

    def is_available(self) -> bool:
        return probe_tesseract()

    async def process(self, image_bytes: bytes, options: Optional[OCROptions] = None) -> OCRResult:
        """
        Extract text from an image using Tesseract OCR.

        Recognition is CPU-bound and runs in the default executor. Availability
        is checked by the caller; a missing binary surfaces here as
        ``EngineNotAvailableError``.
        """
        options = options or OCROptions()
        start_time = time.perf_counter()

        loop = asyncio.get_running_loop()
        try:
            blocks = await loop.run_in_executor(None, self._recognize, image_bytes, options)
        except pytesseract.TesseractNotFoundError as e:
            self.logger.error(f"Tesseract binary not found: {e}")
            raise EngineNotAvailableError(self.name) from e
        except Exception as e:
            self.logger.error(f"Tesseract OCR processing failed after {time.perf_counter() - start_time:.2f}s: {e}")
            raise OCREngineError(self.name, f"Tesseract OCR failed: {e}") from e

        text = "\n\n".join(block.text for block in blocks)
        result = OCRResult.from_blocks(
            blocks,
            metadata=self._build_metadata(start_time, image_bytes, text),
            text=text,
        )

        self.logger.info(
            f"Tesseract OCR processing completed: confidence {result.confidence:.2f}, "
            f"{len(result.text)} chars in {result.metadata.processing_time:.2f}s"
        )
        return result

    def _recognize(self, image_bytes: bytes, options: OCROptions) -> List[OCRBlock]:
        # One session per call: decode, recognize, release.
        source = self.preprocessor.enhance(image_bytes) if options.enhance_image else image_bytes
        with Image.open(io.BytesIO(source)) as image:
            data = pytesseract.image_to_data(
                image,
                lang=options.language,
                config=build_tesseract_config(options),
                output_type=pytesseract.Output.DICT,
            )
        return self._blocks_from_data(data)

    def _blocks_from_data(self, data: Dict[str, list]) -> List[OCRBlock]:
        """Rebuild the block/line/word hierarchy from ``image_to_data`` output."""
        grouped: "OrderedDict[int, OrderedDict[Tuple[int, int], List[OCRWord]]]" = OrderedDict()

        for i, raw_text in enumerate(data['text']):
            text = str(raw_text).strip()
            conf = float(data['conf'][i])
            if not text or conf < 0:
                continue

            x, y = float(data['left'][i]), float(data['top'][i])
            w, h = float(data['width'][i]), float(data['height'][i])
            word = OCRWord(
                text=text,
                confidence=clamp_confidence(conf / 100.0),
                bbox=BoundingBox(x0=x, y0=y, x1=x + max(w, 0.0), y1=y + max(h, 0.0)),
            )

            block_lines = grouped.setdefault(int(data['block_num'][i]), OrderedDict())
            block_lines.setdefault((int(data['par_num'][i]), int(data['line_num'][i])), []).append(word)

        return [
            OCRBlock.from_lines([OCRLine.from_words(words) for words in lines.values()])
            for lines in grouped.values()
        ]
