"""
OCR result models shared by every recognition engine.

Blocks own lines and lines own words. ``OCRResult.words`` and
``OCRResult.lines`` are flattened views of the same hierarchy, built by
``OCRResult.from_blocks`` so that every word belongs to exactly one line.
"""

from typing import List, Optional, Tuple
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


def _check_unit_interval(v: float) -> float:
    if not 0.0 <= v <= 1.0:
        raise ValueError('Confidence must be between 0.0 and 1.0')
    return v


def clamp_confidence(value: float) -> float:
    """Clamp a provider-reported score into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


class BoundingBox(BaseModel):
    """Axis-aligned bounding box in image pixel coordinates."""
    x0: float = Field(..., description="Left coordinate")
    y0: float = Field(..., description="Top coordinate")
    x1: float = Field(..., description="Right coordinate")
    y1: float = Field(..., description="Bottom coordinate")

    @model_validator(mode='after')
    def check_ordering(self) -> "BoundingBox":
        if self.x0 > self.x1:
            raise ValueError('x0 must not be greater than x1')
        if self.y0 > self.y1:
            raise ValueError('y0 must not be greater than y1')
        return self

    @classmethod
    def from_points(cls, xs: List[float], ys: List[float]) -> "BoundingBox":
        """Smallest box containing all given points (e.g. a rotated polygon)."""
        if not xs or not ys:
            return cls(x0=0, y0=0, x1=0, y1=0)
        return cls(x0=min(xs), y0=min(ys), x1=max(xs), y1=max(ys))

    @classmethod
    def union(cls, boxes: List["BoundingBox"]) -> "BoundingBox":
        """Smallest box containing every box in ``boxes``."""
        if not boxes:
            return cls(x0=0, y0=0, x1=0, y1=0)
        return cls(
            x0=min(b.x0 for b in boxes),
            y0=min(b.y0 for b in boxes),
            x1=max(b.x1 for b in boxes),
            y1=max(b.y1 for b in boxes),
        )

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x0 + self.x1) / 2, (self.y0 + self.y1) / 2)


class OCRWord(BaseModel):
    """A single recognized word."""
    text: str
    confidence: float = Field(..., description="Engine confidence (0-1)")
    bbox: BoundingBox

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        return _check_unit_interval(v)


class OCRLine(BaseModel):
    """A line of text owning its words."""
    text: str
    confidence: float
    bbox: BoundingBox
    words: List[OCRWord] = Field(default_factory=list)

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        return _check_unit_interval(v)

    @classmethod
    def from_words(cls, words: List[OCRWord], separator: str = " ") -> "OCRLine":
        return cls(
            text=separator.join(w.text for w in words),
            confidence=_mean([w.confidence for w in words]),
            bbox=BoundingBox.union([w.bbox for w in words]),
            words=words,
        )


class OCRBlock(BaseModel):
    """A block (region/page area) owning its lines."""
    text: str
    confidence: float
    bbox: BoundingBox
    lines: List[OCRLine] = Field(default_factory=list)

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        return _check_unit_interval(v)

    @classmethod
    def from_lines(cls, lines: List[OCRLine]) -> "OCRBlock":
        return cls(
            text="\n".join(line.text for line in lines),
            confidence=_mean([line.confidence for line in lines]),
            bbox=BoundingBox.union([line.bbox for line in lines]),
            lines=lines,
        )


class ImageMetadata(BaseModel):
    """Basic properties of the source image."""
    width: int = 0
    height: int = 0
    format: str = "unknown"
    dpi: Optional[int] = None


class DetectedLanguage(BaseModel):
    language: str
    confidence: float

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        return _check_unit_interval(v)


class OCRMetadata(BaseModel):
    engine_used: str = Field(..., description="Name of the engine that produced the result")
    processing_time: float = Field(..., description="Processing time in seconds")
    image_metadata: ImageMetadata = Field(default_factory=ImageMetadata)
    detected_languages: List[DetectedLanguage] = Field(default_factory=list)


class OCRResult(BaseModel):
    """
    Complete recognition output for one document image.
    """
    text: str = Field(..., description="Full recognized text")
    confidence: float = Field(..., description="Engine-reported overall confidence (0-1)")
    words: List[OCRWord] = Field(default_factory=list)
    lines: List[OCRLine] = Field(default_factory=list)
    blocks: List[OCRBlock] = Field(default_factory=list)
    metadata: OCRMetadata

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        return _check_unit_interval(v)

    @classmethod
    def from_blocks(cls,
                    blocks: List[OCRBlock],
                    metadata: OCRMetadata,
                    confidence: Optional[float] = None,
                    text: Optional[str] = None) -> "OCRResult":
        """
        Build a result whose flat ``lines`` and ``words`` are derived from ``blocks``.

        When ``confidence`` is omitted the mean word confidence is used.
        """
        lines = [line for block in blocks for line in block.lines]
        words = [word for line in lines for word in line.words]
        if confidence is None:
            confidence = _mean([w.confidence for w in words])
        if text is None:
            text = "\n".join(line.text for line in lines)
        return cls(
            text=text,
            confidence=clamp_confidence(confidence),
            words=words,
            lines=lines,
            blocks=blocks,
            metadata=metadata,
        )

    @property
    def engine(self) -> str:
        return self.metadata.engine_used

    @property
    def low_confidence_words(self) -> List[OCRWord]:
        """Words below 0.6 confidence."""
        return [w for w in self.words if w.confidence < 0.6]


def _mean(values: List[float]) -> float:
    return clamp_confidence(sum(values) / len(values)) if values else 0.0


class OCROptions(BaseModel):
    """
    Recognition options.

    Defaults target mixed Arabic/English documents. Override individual
    fields with ``OCROptions(confidence=0.8)`` or ``options.model_copy(update=...)``.
    """
    language: str = Field(default="ara+eng", description="Tesseract-style language codes")
    page_segmentation_mode: int = Field(default=1, ge=0, le=13, description="Tesseract PSM (1 = auto with OSD)")
    engine_mode: int = Field(default=1, ge=0, le=3, description="Tesseract OEM (1 = LSTM only)")
    confidence: float = Field(default=0.5, description="Minimum acceptable result confidence")
    preserve_layout: bool = True
    enhance_image: bool = True
    dpi: int = Field(default=300, gt=0)

    @field_validator('confidence')
    @classmethod
    def validate_confidence(cls, v):
        return _check_unit_interval(v)


class EngineRunResult(BaseModel):
    """Outcome of one engine call in multi-engine mode."""
    engine: str
    result: Optional[OCRResult] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None and self.error is None


class MultiEngineResult(BaseModel):
    results: List[EngineRunResult]
    best_result: OCRResult
    best_engine: str


class BatchDocument(BaseModel):
    id: str
    content: bytes
    filename: Optional[str] = None


class BatchStatus(str, Enum):
    SUCCESS = "success"
    LOW_CONFIDENCE = "low_confidence"
    FAILED = "failed"


class BatchItemResult(BaseModel):
    document_id: str
    status: BatchStatus
    result: Optional[OCRResult] = None
    error: Optional[str] = None
    processing_time: float = 0.0


class BatchSummary(BaseModel):
    total_documents: int
    successful_documents: int
    failed_documents: int
    low_confidence_documents: int = 0
    average_confidence: float = Field(..., description="Mean confidence over successful documents")
    total_processing_time: float = Field(..., description="Wall-clock seconds for the whole batch")


class BatchOCRResult(BaseModel):
    results: List[BatchItemResult]
    summary: BatchSummary
