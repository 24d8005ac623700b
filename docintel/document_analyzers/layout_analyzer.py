"""
Layout analyzer deriving page regions from OCR block geometry.
"""

import re
import logging
from typing import List, Tuple

import numpy as np

from ..models import BoundingBox, LayoutPattern, LayoutPosition, LayoutType, OCRBlock, OCRLine, OCRResult

logger = logging.getLogger(__name__)

SIGNATURE_MARKERS = re.compile(r"signature|signed|توقيع|التوقيع|الموقع", re.IGNORECASE)
SEAL_MARKERS = re.compile(r"\bseal\b|\bstamp\b|ختم|الختم", re.IGNORECASE)
FIELD_LINE = re.compile(r"^[^:\n]{1,40}:")
LIST_LINE = re.compile(r"^\s*(?:\d+[.)]|[•·\-◦▪▫])\s")

_POSITIONS = {
    ("top", "left"): LayoutPosition.TOP_LEFT,
    ("top", "center"): LayoutPosition.TOP,
    ("top", "right"): LayoutPosition.TOP_RIGHT,
    ("center", "left"): LayoutPosition.LEFT,
    ("center", "center"): LayoutPosition.CENTER,
    ("center", "right"): LayoutPosition.RIGHT,
    ("bottom", "left"): LayoutPosition.BOTTOM_LEFT,
    ("bottom", "center"): LayoutPosition.BOTTOM,
    ("bottom", "right"): LayoutPosition.BOTTOM_RIGHT,
}


class LayoutAnalyzer:
    """
    Places each OCR block on a 3x3 page grid and labels it with a region type.

    The output feeds the document classifier's layout score.
    """

    def __init__(self,
                 band_ratio: float = 1 / 3,
                 column_gap_factor: float = 2.0,
                 max_header_lines: int = 2):
        """
        Initialize layout analyzer.

        Args:
            band_ratio: Fraction of the page height/width treated as the top/bottom
                (left/right) band
            column_gap_factor: Horizontal gap between words, in multiples of the
                line height, above which a line is considered columnar
            max_header_lines: Longest block still eligible as a header or footer
        """
        self.band_ratio = band_ratio
        self.column_gap_factor = column_gap_factor
        self.max_header_lines = max_header_lines

    def analyze(self, ocr_result: OCRResult) -> List[LayoutPattern]:
        """
        Detect layout regions in an OCR result.

        Returns:
            One pattern per distinct (type, position) pair, in reading order
        """
        blocks = [b for b in ocr_result.blocks if b.text.strip()]
        if not blocks:
            return []

        page = self._page_extent(ocr_result, blocks)
        if page.width <= 0 or page.height <= 0:
            logger.debug("Page extent is degenerate; skipping layout analysis")
            return []

        patterns: List[LayoutPattern] = []
        seen = set()
        for index, block in enumerate(sorted(blocks, key=lambda b: (b.bbox.y0, b.bbox.x0))):
            position = self._position_of(block.bbox, page)
            region_type = self._region_type(block, position, is_first=index == 0)
            key = (region_type, position)
            if key in seen:
                continue
            seen.add(key)
            patterns.append(LayoutPattern(
                type=region_type,
                position=position,
                characteristics=(f"lines:{len(block.lines)}",),
                weight=round(block.confidence, 3),
            ))

        logger.debug(f"Detected {len(patterns)} layout regions from {len(blocks)} blocks")
        return patterns

    def _page_extent(self, ocr_result: OCRResult, blocks: List[OCRBlock]) -> BoundingBox:
        image = ocr_result.metadata.image_metadata
        if image.width > 0 and image.height > 0:
            return BoundingBox(x0=0, y0=0, x1=image.width, y1=image.height)
        content = BoundingBox.union([b.bbox for b in blocks])
        return BoundingBox(x0=0, y0=0, x1=content.x1, y1=content.y1)

    def _position_of(self, bbox: BoundingBox, page: BoundingBox) -> LayoutPosition:
        cx, cy = bbox.center
        return _POSITIONS[(self._band(cy / page.height, ("top", "center", "bottom")),
                           self._band(cx / page.width, ("left", "center", "right")))]

    def _band(self, ratio: float, names: Tuple[str, str, str]) -> str:
        if ratio < self.band_ratio:
            return names[0]
        if ratio > 1 - self.band_ratio:
            return names[2]
        return names[1]

    def _region_type(self, block: OCRBlock, position: LayoutPosition, is_first: bool) -> LayoutType:
        text = block.text
        lines = block.lines or []
        line_texts = [line.text for line in lines] or text.splitlines()

        if SIGNATURE_MARKERS.search(text):
            return LayoutType.SIGNATURE
        if SEAL_MARKERS.search(text):
            return LayoutType.SEAL
        if self._count_columnar_lines(lines) >= 2:
            return LayoutType.TABLE
        if len(line_texts) >= 2 and sum(1 for t in line_texts if LIST_LINE.match(t)) >= 2:
            return LayoutType.LIST
        if line_texts and sum(1 for t in line_texts if FIELD_LINE.match(t.strip())) >= max(1, len(line_texts) / 2):
            return LayoutType.FORM_FIELD

        short = len(line_texts) <= self.max_header_lines
        if short and position in (LayoutPosition.TOP, LayoutPosition.TOP_LEFT, LayoutPosition.TOP_RIGHT) and is_first:
            return LayoutType.HEADER
        if short and position in (LayoutPosition.BOTTOM, LayoutPosition.BOTTOM_LEFT, LayoutPosition.BOTTOM_RIGHT):
            return LayoutType.FOOTER
        return LayoutType.PARAGRAPH

    def _count_columnar_lines(self, lines: List[OCRLine]) -> int:
        count = 0
        for line in lines:
            if len(line.words) < 3:
                continue
            words = sorted(line.words, key=lambda w: w.bbox.x0)
            gaps = np.array([b.bbox.x0 - a.bbox.x1 for a, b in zip(words, words[1:])])
            height = max(line.bbox.height, 1.0)
            if np.count_nonzero(gaps > self.column_gap_factor * height) >= 2:
                count += 1
        return count

