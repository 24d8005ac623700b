"""
Document type catalog and classification result models.
"""

from typing import List, Optional, Tuple
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .ocr_result import ImageMetadata


class DocumentCategory(str, Enum):
    CONTRACT = "contract"
    CERTIFICATE = "certificate"
    FORM = "form"
    HANDWRITTEN = "handwritten"
    IDENTIFICATION = "identification"
    FINANCIAL = "financial"
    LEGAL = "legal"


class DocumentLanguage(str, Enum):
    ARABIC = "arabic"
    ENGLISH = "english"
    BILINGUAL = "bilingual"


class LayoutType(str, Enum):
    HEADER = "header"
    FOOTER = "footer"
    SIGNATURE = "signature"
    SEAL = "seal"
    TABLE = "table"
    LIST = "list"
    PARAGRAPH = "paragraph"
    FORM_FIELD = "form_field"


class LayoutPosition(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


class StructureType(str, Enum):
    NUMBERED_LIST = "numbered_list"
    BULLET_POINTS = "bullet_points"
    SECTIONS = "sections"
    CLAUSES = "clauses"
    FIELDS = "fields"
    PARAGRAPHS = "paragraphs"
    TABLE = "table"


class LayoutPattern(BaseModel):
    """A page region of a given type at a given position."""
    model_config = ConfigDict(frozen=True)

    type: LayoutType
    position: LayoutPosition
    characteristics: Tuple[str, ...] = ()
    weight: float = Field(default=1.0, ge=0.0, le=1.0)


class StructurePattern(BaseModel):
    """A textual structure (lists, clauses, fields...) and how often it occurs."""
    model_config = ConfigDict(frozen=True)

    type: StructureType
    count: Optional[int] = None
    spacing: Optional[str] = None
    alignment: Optional[str] = None
    weight: float = Field(default=1.0, ge=0.0, le=1.0)


class DocumentPatterns(BaseModel):
    model_config = ConfigDict(frozen=True)

    keywords: Tuple[str, ...] = ()
    keywords_ar: Tuple[str, ...] = ()
    layout: Tuple[LayoutPattern, ...] = ()
    structure: Tuple[StructurePattern, ...] = ()


class DocumentTypeMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_handwritten: bool = False
    language: DocumentLanguage = DocumentLanguage.BILINGUAL
    formality: str = "formal"
    orientation: str = "portrait"


class DocumentType(BaseModel):
    """Immutable catalog entry describing one kind of document."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    name_ar: str
    category: DocumentCategory
    subcategory: Optional[str] = None
    patterns: DocumentPatterns
    metadata: DocumentTypeMetadata = Field(default_factory=DocumentTypeMetadata)


class KeywordMatch(BaseModel):
    word: str
    language: str = Field(..., description="'ar' or 'en'")
    position: int
    confidence: float = Field(..., ge=0.0, le=1.0)


class HandwritingIndicator(BaseModel):
    type: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    description: str


class ExtractedFeatures(BaseModel):
    keywords: List[KeywordMatch] = Field(default_factory=list)
    layout: List[LayoutPattern] = Field(default_factory=list)
    structure: List[StructurePattern] = Field(default_factory=list)
    handwriting_indicators: List[HandwritingIndicator] = Field(default_factory=list)


class AlternativeType(BaseModel):
    type: DocumentType
    confidence: float = Field(..., ge=0.0, le=1.0)


class ClassificationMetadata(BaseModel):
    processing_time: float = Field(..., description="Seconds spent classifying")
    image_orientation: Optional[str] = None
    text_length: int
    arabic_text_percentage: float = Field(..., ge=0.0, le=1.0)
    english_text_percentage: float = Field(..., ge=0.0, le=1.0)
    confidence: float = Field(..., ge=0.0, le=1.0)


class ClassificationResult(BaseModel):
    document_type: DocumentType
    confidence: float = Field(..., ge=0.0, le=1.0)
    alternative_types: List[AlternativeType] = Field(default_factory=list)
    extracted_features: ExtractedFeatures
    metadata: ClassificationMetadata

    @property
    def is_handwritten(self) -> bool:
        return bool(self.extracted_features.handwriting_indicators)


class ClassificationRequest(BaseModel):
    """One document in a batch classification call."""
    id: str
    text: str
    layout_analysis: List[LayoutPattern] = Field(default_factory=list)
    image_metadata: Optional[ImageMetadata] = None


class ClassificationBatchItem(BaseModel):
    document_id: str
    result: Optional[ClassificationResult] = None
    error: Optional[str] = None
