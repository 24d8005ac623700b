"""
Models for Arabic text enhancement results.
"""

from typing import List
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CorrectionType(str, Enum):
    """Categories of corrections applied by the enhancer."""
    DIACRITIC = "diacritic"
    CHARACTER = "character"
    NUMBER = "number"
    LAYOUT = "layout"
    COMMON_ERROR = "common_error"


class TextDirection(str, Enum):
    RTL = "rtl"
    LTR = "ltr"


class SegmentLanguage(str, Enum):
    ARABIC = "arabic"
    ENGLISH = "english"
    MIXED = "mixed"


class TextCorrection(BaseModel):
    """A single correction. ``position`` indexes into the original text."""
    type: CorrectionType
    original: str
    corrected: str
    position: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0.0, le=1.0)


class RTLSegment(BaseModel):
    """
    A maximal run of text sharing one direction.

    ``start_index`` is inclusive and ``end_index`` exclusive, so
    ``text == enhanced_text[start_index:end_index]``.
    """
    text: str
    start_index: int = Field(..., ge=0)
    end_index: int = Field(..., ge=0)
    direction: TextDirection
    language: SegmentLanguage


class EnhancementMetadata(BaseModel):
    original_length: int
    enhanced_length: int
    correction_count: int
    confidence_score: float = Field(..., ge=0.0, le=1.0)


class TextEnhancementResult(BaseModel):
    original_text: str
    enhanced_text: str
    corrections: List[TextCorrection] = Field(default_factory=list)
    rtl_segments: List[RTLSegment] = Field(default_factory=list)
    metadata: EnhancementMetadata


class EnhancementOptions(BaseModel):
    """
    Flags controlling the enhancement steps.

    Steps always run in the order shaping, common errors, diacritics,
    digits, RTL layout.
    """
    model_config = ConfigDict(frozen=True)

    normalize_diacritics: bool = True
    preserve_diacritics: bool = False
    correct_common_errors: bool = True
    enhance_rtl_layout: bool = True
    fix_character_shaping: bool = True
    normalize_numbers: bool = True
