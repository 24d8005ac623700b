"""
Quality assessment models for evaluating recognized document text.
"""

from typing import Dict, List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class IssueType(str, Enum):
    """Types of quality issues that can be detected."""
    LOW_CONFIDENCE = "low_confidence"
    TEXT_FRAGMENTATION = "text_fragmentation"
    MISSING_CONTENT = "missing_content"
    FORMAT_ISSUES = "format_issues"
    LANGUAGE_MIXING = "language_mixing"
    CHARACTER_ERRORS = "character_errors"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def from_rank(cls, score: float) -> "Severity":
        """Map an averaged rank (1-4) back to the nearest severity."""
        if score < 1.5:
            return cls.LOW
        elif score < 2.5:
            return cls.MEDIUM
        elif score < 3.5:
            return cls.HIGH
        return cls.CRITICAL


_SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}


class QualityGrade(str, Enum):
    A = "A"  # >= 0.9
    B = "B"  # >= 0.8
    C = "C"  # >= 0.7
    D = "D"  # >= 0.6
    F = "F"

    @classmethod
    def from_score(cls, score: float) -> "QualityGrade":
        if score >= 0.9:
            return cls.A
        elif score >= 0.8:
            return cls.B
        elif score >= 0.7:
            return cls.C
        elif score >= 0.6:
            return cls.D
        return cls.F


class QualityMetrics(BaseModel):
    """The five quality dimensions and their mean."""
    overall: float
    text_clarity: float
    structural_integrity: float
    language_consistency: float
    content_completeness: float
    confidence: float

    @field_validator('overall', 'text_clarity', 'structural_integrity',
                     'language_consistency', 'content_completeness', 'confidence')
    @classmethod
    def validate_scores(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('Quality scores must be between 0.0 and 1.0')
        return v

    @classmethod
    def from_dimensions(cls,
                        text_clarity: float,
                        structural_integrity: float,
                        language_consistency: float,
                        content_completeness: float,
                        confidence: float) -> "QualityMetrics":
        dims = [text_clarity, structural_integrity, language_consistency, content_completeness, confidence]
        return cls(
            overall=sum(dims) / len(dims),
            text_clarity=text_clarity,
            structural_integrity=structural_integrity,
            language_consistency=language_consistency,
            content_completeness=content_completeness,
            confidence=confidence,
        )


class IssueLocation(BaseModel):
    start: int
    end: int


class QualityIssue(BaseModel):
    type: IssueType
    severity: Severity
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    location: Optional[IssueLocation] = None
    suggested_fix: Optional[str] = None


class ProcessingMetadata(BaseModel):
    assessment_time: float = Field(..., description="Seconds spent assessing")
    checks_performed: List[str] = Field(default_factory=list)
    confidence_score: float = Field(..., ge=0.0, le=1.0)


class QualityAssessmentResult(BaseModel):
    document_id: Optional[str] = None
    overall_quality: QualityMetrics
    issues: List[QualityIssue] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    needs_manual_review: bool
    quality_grade: QualityGrade
    processing_metadata: ProcessingMetadata

    def issues_with_severity(self, severity: Severity) -> List[QualityIssue]:
        return [i for i in self.issues if i.severity == severity]


class DifferenceType(str, Enum):
    ADDITION = "addition"
    DELETION = "deletion"
    MODIFICATION = "modification"


class TextDifference(BaseModel):
    type: DifferenceType
    original: str
    modified: str
    position: int = Field(..., description="Character offset in the original text")
    confidence: float = Field(..., ge=0.0, le=1.0)


class ComparisonResult(BaseModel):
    similarity: float = Field(..., ge=0.0, le=1.0)
    differences: List[TextDifference] = Field(default_factory=list)
    improvement_score: float = Field(..., ge=0.0, le=1.0)
    quality_delta: float


class CommonIssue(BaseModel):
    type: IssueType
    frequency: int
    average_severity: Severity


class BatchQualityStatistics(BaseModel):
    average_quality: QualityMetrics
    grade_distribution: Dict[str, int]
    common_issues: List[CommonIssue]
    recommendations_frequency: Dict[str, int]
