"""
Data models for the document intelligence pipeline.
"""

from .ocr_result import (
    clamp_confidence,
    BoundingBox,
    OCRWord,
    OCRLine,
    OCRBlock,
    ImageMetadata,
    DetectedLanguage,
    OCRMetadata,
    OCRResult,
    OCROptions,
    EngineRunResult,
    MultiEngineResult,
    BatchDocument,
    BatchStatus,
    BatchItemResult,
    BatchSummary,
    BatchOCRResult,
)
from .text_enhancement import (
    CorrectionType,
    TextDirection,
    SegmentLanguage,
    TextCorrection,
    RTLSegment,
    EnhancementMetadata,
    TextEnhancementResult,
    EnhancementOptions,
)
from .classification import (
    DocumentCategory,
    DocumentLanguage,
    LayoutType,
    LayoutPosition,
    StructureType,
    LayoutPattern,
    StructurePattern,
    DocumentPatterns,
    DocumentTypeMetadata,
    DocumentType,
    KeywordMatch,
    HandwritingIndicator,
    ExtractedFeatures,
    AlternativeType,
    ClassificationMetadata,
    ClassificationResult,
    ClassificationRequest,
    ClassificationBatchItem,
)
from .quality_assessment import (
    IssueType,
    Severity,
    QualityGrade,
    QualityMetrics,
    IssueLocation,
    QualityIssue,
    ProcessingMetadata,
    QualityAssessmentResult,
    DifferenceType,
    TextDifference,
    ComparisonResult,
    CommonIssue,
    BatchQualityStatistics,
)

__all__ = [
    "clamp_confidence",
    "BoundingBox",
    "OCRWord",
    "OCRLine",
    "OCRBlock",
    "ImageMetadata",
    "DetectedLanguage",
    "OCRMetadata",
    "OCRResult",
    "OCROptions",
    "EngineRunResult",
    "MultiEngineResult",
    "BatchDocument",
    "BatchStatus",
    "BatchItemResult",
    "BatchSummary",
    "BatchOCRResult",
    "CorrectionType",
    "TextDirection",
    "SegmentLanguage",
    "TextCorrection",
    "RTLSegment",
    "EnhancementMetadata",
    "TextEnhancementResult",
    "EnhancementOptions",
    "DocumentCategory",
    "DocumentLanguage",
    "LayoutType",
    "LayoutPosition",
    "StructureType",
    "LayoutPattern",
    "StructurePattern",
    "DocumentPatterns",
    "DocumentTypeMetadata",
    "DocumentType",
    "KeywordMatch",
    "HandwritingIndicator",
    "ExtractedFeatures",
    "AlternativeType",
    "ClassificationMetadata",
    "ClassificationResult",
    "ClassificationRequest",
    "ClassificationBatchItem",
    "IssueType",
    "Severity",
    "QualityGrade",
    "QualityMetrics",
    "IssueLocation",
    "QualityIssue",
    "ProcessingMetadata",
    "QualityAssessmentResult",
    "DifferenceType",
    "TextDifference",
    "ComparisonResult",
    "CommonIssue",
    "BatchQualityStatistics",
]
