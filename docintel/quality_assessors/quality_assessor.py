"""
Quality assessor for recognized document text.

Scores five quality dimensions, records typed issues, grades the result and
decides whether a human should review it.
"""

import re
import time
import uuid
import statistics
import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence

from ..models import (
    BatchQualityStatistics,
    ClassificationResult,
    CommonIssue,
    ComparisonResult,
    DifferenceType,
    IssueLocation,
    IssueType,
    OCRResult,
    ProcessingMetadata,
    QualityAssessmentResult,
    QualityGrade,
    QualityIssue,
    QualityMetrics,
    SegmentLanguage,
    Severity,
    TextDifference,
    TextEnhancementResult,
)
from ..ocr_processors.base import read_image_metadata
from ..text_enhancers.arabic_utils import ARABIC_RANGES, analyze_rtl_segments

logger = logging.getLogger(__name__)

SPECIAL_CHARS = re.compile(f"[^{ARABIC_RANGES}\\sA-Za-z0-9_.,!?؟،؛]")
ARABIC_BASIC = re.compile(r"[\u0600-\u06FF]")
LATIN = re.compile(r"[A-Za-z]")
MIXED_SCRIPT = re.compile(r"[\u0600-\u06FF][A-Za-z]|[A-Za-z][\u0600-\u06FF]")
SHORT_WORD = re.compile(r"\b\w{1,2}\s", re.ASCII)
SENTENCE_END = re.compile(r"[.!?؟۔]")
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
NATIONAL_ID = re.compile(r"\d{10}")
MONEY_AMOUNT = re.compile(r"\d+[.,]\d{2}")
SINGLE_CHAR_WORD = re.compile(r"(?<!\S)\S(?!\S)")

CONTRACT_ELEMENTS = ("عقد", "راتب", "وظيفة", "contract", "salary", "position")

# Below this on the shortest side, scans usually need upscaling before OCR.
MIN_IMAGE_SIDE = 1000

# Recommendations per weak dimension (score below 0.6).
DIMENSION_RECOMMENDATIONS = (
    ("text_clarity", ("Improve image quality or use image enhancement before OCR",
                      "Consider using a different OCR engine")),
    ("structural_integrity", ("Review document formatting and add proper structure",
                              "Check for missing sections or content")),
    ("language_consistency", ("Review Arabic text direction and formatting",
                              "Separate mixed-language content appropriately")),
    ("content_completeness", ("Verify all document content was captured",
                              "Check for truncated or missing text sections")),
    ("confidence", ("Manual review strongly recommended",
                    "Focus on low-confidence text segments")),
)
DEFAULT_RECOMMENDATION = "Text quality is acceptable for most uses"


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


def _span(matches) -> Optional[IssueLocation]:
    """Location covering the first through the last match, if any."""
    matches = list(matches)
    if not matches:
        return None
    return IssueLocation(start=matches[0].start(), end=matches[-1].end())


class QualityAssessor:
    """
    Scores OCR output on clarity, structure, language, completeness and confidence.

    Pure over its inputs; one instance can assess many documents concurrently.
    """

    def __init__(self, weak_dimension_threshold: float = 0.6):
        self.weak_dimension_threshold = weak_dimension_threshold

    async def assess_quality(self,
                             ocr_result: OCRResult,
                             classification: Optional[ClassificationResult] = None,
                             enhancement_result: Optional[TextEnhancementResult] = None,
                             original_image: Optional[bytes] = None) -> QualityAssessmentResult:
        """
        Perform a full quality assessment.

        Args:
            ocr_result: Recognition output to assess
            classification: Classifier output, enables document-specific checks
            enhancement_result: Enhancer output for the same text
            original_image: Source image bytes, enables the resolution check

        Returns:
            Dimension scores, issues, recommendations, grade and review flag
        """
        return self.assess(ocr_result, classification, enhancement_result, original_image)

    def assess(self,
               ocr_result: OCRResult,
               classification: Optional[ClassificationResult] = None,
               enhancement_result: Optional[TextEnhancementResult] = None,
               original_image: Optional[bytes] = None) -> QualityAssessmentResult:
        """Synchronous form of :meth:`assess_quality`."""
        start_time = time.perf_counter()
        assessment_id = str(uuid.uuid4())
        issues: List[QualityIssue] = []
        checks: List[str] = []

        text_clarity = self._assess_text_clarity(ocr_result, issues)
        checks.append("text_clarity")

        structural = self._assess_structural_integrity(ocr_result, classification, issues)
        checks.append("structural_integrity")

        language = self._assess_language_consistency(ocr_result, issues)
        checks.append("language_consistency")

        completeness = self._assess_content_completeness(ocr_result, issues)
        checks.append("content_completeness")

        confidence = self._assess_confidence_distribution(ocr_result, issues)
        checks.append("confidence_distribution")

        if enhancement_result is not None:
            self._assess_enhancement(enhancement_result, issues)
            checks.append("enhancement_quality")

        if original_image:
            self._assess_source_image(original_image, issues)
            checks.append("source_image")

        metrics = QualityMetrics.from_dimensions(
            text_clarity=text_clarity,
            structural_integrity=structural,
            language_consistency=language,
            content_completeness=completeness,
            confidence=confidence,
        )
        grade = QualityGrade.from_score(metrics.overall)
        needs_review = self._needs_manual_review(issues, metrics)

        result = QualityAssessmentResult(
            document_id=assessment_id,
            overall_quality=metrics,
            issues=issues,
            recommendations=self._generate_recommendations(issues, metrics),
            needs_manual_review=needs_review,
            quality_grade=grade,
            processing_metadata=ProcessingMetadata(
                assessment_time=time.perf_counter() - start_time,
                checks_performed=checks,
                confidence_score=metrics.overall,
            ),
        )

        logger.info(
            f"Quality assessment {assessment_id}: grade {grade.value}, "
            f"overall {metrics.overall:.2f}, {len(issues)} issues, manual review: {needs_review}"
        )
        return result

    def _assess_text_clarity(self, ocr_result: OCRResult, issues: List[QualityIssue]) -> float:
        score = 0.8
        text = ocr_result.text
        words = text.split()

        fragmentation = sum(1 for w in words if len(w) == 1) / len(words) if words else 0.0
        fragment_location = _span(SINGLE_CHAR_WORD.finditer(text)) if fragmentation > 0.1 else None
        if fragmentation > 0.2:
            issues.append(QualityIssue(
                type=IssueType.TEXT_FRAGMENTATION,
                severity=Severity.HIGH,
                description=f"High text fragmentation detected ({round(fragmentation * 100)}% single-character words)",
                confidence=0.9,
                location=fragment_location,
                suggested_fix="Consider re-processing with different OCR settings or image enhancement",
            ))
            score -= 0.3
        elif fragmentation > 0.1:
            issues.append(QualityIssue(
                type=IssueType.TEXT_FRAGMENTATION,
                severity=Severity.MEDIUM,
                description=f"Moderate text fragmentation detected ({round(fragmentation * 100)}% single-character words)",
                confidence=0.8,
                location=fragment_location,
                suggested_fix="Review and correct fragmented text segments",
            ))
            score -= 0.15

        special = list(SPECIAL_CHARS.finditer(text))
        if special and len(special) > len(text) * 0.05:
            issues.append(QualityIssue(
                type=IssueType.CHARACTER_ERRORS,
                severity=Severity.MEDIUM,
                description=f"Excessive special characters or OCR noise detected ({len(special)} instances)",
                confidence=0.7,
                location=_span(special),
                suggested_fix="Clean up special characters and OCR artifacts",
            ))
            score -= 0.2

        if ocr_result.words:
            low_ratio = len(ocr_result.low_confidence_words) / len(ocr_result.words)
            if low_ratio > 0.3:
                issues.append(QualityIssue(
                    type=IssueType.LOW_CONFIDENCE,
                    severity=Severity.HIGH,
                    description=f"Many words have low confidence ({round(low_ratio * 100)}% below 60%)",
                    confidence=0.9,
                    suggested_fix="Consider manual review of low-confidence words",
                ))
                score -= 0.25

        return _clamp(score)

    def _assess_structural_integrity(self,
                                     ocr_result: OCRResult,
                                     classification: Optional[ClassificationResult],
                                     issues: List[QualityIssue]) -> float:
        score = 0.7
        text = ocr_result.text

        paragraphs = [p for p in PARAGRAPH_BREAK.split(text) if p.strip()]
        if len(paragraphs) == 1 and len(text) > 500:
            issues.append(QualityIssue(
                type=IssueType.FORMAT_ISSUES,
                severity=Severity.MEDIUM,
                description="Document appears to be one large paragraph without proper breaks",
                confidence=0.8,
                suggested_fix="Add appropriate paragraph breaks for better readability",
            ))
            score -= 0.2

        lines = text.split("\n")
        short_lines = [line for line in lines if 0 < len(line.strip()) < 10]
        if len(short_lines) > len(lines) * 0.3:
            issues.append(QualityIssue(
                type=IssueType.FORMAT_ISSUES,
                severity=Severity.MEDIUM,
                description="Many very short lines detected, possible formatting issues",
                confidence=0.7,
                suggested_fix="Review line breaks and text flow",
            ))
            score -= 0.15

        if classification is not None:
            score += self._document_specific_checks(text, classification.document_type.id, issues)

        return _clamp(score)

    def _document_specific_checks(self, text: str, type_id: str, issues: List[QualityIssue]) -> float:
        if type_id == "employment_contract":
            lowered = text.lower()
            found = [e for e in CONTRACT_ELEMENTS if e in lowered]
            if len(found) < 3:
                issues.append(QualityIssue(
                    type=IssueType.MISSING_CONTENT,
                    severity=Severity.HIGH,
                    description="Missing essential contract elements",
                    confidence=0.8,
                    suggested_fix="Verify all contract sections are captured",
                ))
                return -0.2

        elif type_id == "saudi_national_id":
            if not NATIONAL_ID.search(text):
                issues.append(QualityIssue(
                    type=IssueType.MISSING_CONTENT,
                    severity=Severity.HIGH,
                    description="National ID number not detected",
                    confidence=0.9,
                    suggested_fix="Ensure ID number is clearly captured",
                ))
                return -0.3

        elif type_id == "bank_statement":
            if not MONEY_AMOUNT.search(text):
                issues.append(QualityIssue(
                    type=IssueType.MISSING_CONTENT,
                    severity=Severity.MEDIUM,
                    description="No monetary amounts detected in bank statement",
                    confidence=0.7,
                    suggested_fix="Verify transaction amounts are captured",
                ))
                return -0.15

        return 0.0

    def _assess_language_consistency(self, ocr_result: OCRResult, issues: List[QualityIssue]) -> float:
        score = 0.8
        text = ocr_result.text

        arabic = len(ARABIC_BASIC.findall(text))
        latin = len(LATIN.findall(text))
        total = arabic + latin

        if total == 0:
            issues.append(QualityIssue(
                type=IssueType.LANGUAGE_MIXING,
                severity=Severity.CRITICAL,
                description="No recognizable Arabic or English text detected",
                confidence=0.9,
                suggested_fix="Re-process with appropriate language settings",
            ))
            return 0.0

        if arabic > 0:
            arabic_segments = [s for s in analyze_rtl_segments(text) if s.language == SegmentLanguage.ARABIC]
            if not arabic_segments and arabic > total * 0.3:
                issues.append(QualityIssue(
                    type=IssueType.LANGUAGE_MIXING,
                    severity=Severity.MEDIUM,
                    description="Arabic text detected but RTL segments not properly identified",
                    confidence=0.7,
                    suggested_fix="Review Arabic text direction and formatting",
                ))
                score -= 0.2

        if len(MIXED_SCRIPT.findall(text)) > 5:
            issues.append(QualityIssue(
                type=IssueType.LANGUAGE_MIXING,
                severity=Severity.MEDIUM,
                description="Frequent Arabic-English character mixing detected",
                confidence=0.8,
                suggested_fix="Review and separate mixed script segments",
            ))
            score -= 0.15

        return _clamp(score)

    def _assess_content_completeness(self, ocr_result: OCRResult, issues: List[QualityIssue]) -> float:
        score = 0.7
        text = ocr_result.text
        length = len(text.strip())

        if length < 50:
            issues.append(QualityIssue(
                type=IssueType.MISSING_CONTENT,
                severity=Severity.CRITICAL,
                description="Very short text content, possible extraction failure",
                confidence=0.9,
                location=IssueLocation(start=0, end=len(text)),
                suggested_fix="Verify entire document was processed",
            ))
            return 0.1

        if length < 200:
            issues.append(QualityIssue(
                type=IssueType.MISSING_CONTENT,
                severity=Severity.MEDIUM,
                description="Short text content, may be incomplete",
                confidence=0.7,
                location=IssueLocation(start=0, end=len(text)),
                suggested_fix="Check if all document sections were captured",
            ))
            score -= 0.2

        if len(SHORT_WORD.findall(text)) > len(text.split()) * 0.2:
            issues.append(QualityIssue(
                type=IssueType.MISSING_CONTENT,
                severity=Severity.MEDIUM,
                description="Many very short words detected, possible incomplete extraction",
                confidence=0.6,
                suggested_fix="Review for missing characters or word parts",
            ))
            score -= 0.15

        sentences = SENTENCE_END.split(text)
        fragments = [s for s in sentences if 0 < len(s.strip()) < 10]
        if len(fragments) > len(sentences) * 0.3:
            issues.append(QualityIssue(
                type=IssueType.MISSING_CONTENT,
                severity=Severity.MEDIUM,
                description="Many incomplete sentences detected",
                confidence=0.7,
                suggested_fix="Review sentence completeness and punctuation",
            ))
            score -= 0.15

        return _clamp(score)

    def _assess_confidence_distribution(self, ocr_result: OCRResult, issues: List[QualityIssue]) -> float:
        score = ocr_result.confidence
        percent = round(ocr_result.confidence * 100)

        if ocr_result.confidence < 0.5:
            issues.append(QualityIssue(
                type=IssueType.LOW_CONFIDENCE,
                severity=Severity.CRITICAL,
                description=f"Very low overall OCR confidence: {percent}%",
                confidence=0.9,
                suggested_fix="Consider re-processing with image enhancement or different OCR engine",
            ))
        elif ocr_result.confidence < 0.7:
            issues.append(QualityIssue(
                type=IssueType.LOW_CONFIDENCE,
                severity=Severity.HIGH,
                description=f"Low overall OCR confidence: {percent}%",
                confidence=0.8,
                suggested_fix="Manual review recommended",
            ))

        if ocr_result.words:
            std_dev = statistics.pstdev(w.confidence for w in ocr_result.words)
            if std_dev > 0.3:
                issues.append(QualityIssue(
                    type=IssueType.LOW_CONFIDENCE,
                    severity=Severity.MEDIUM,
                    description="High variance in word confidence scores",
                    confidence=0.7,
                    suggested_fix="Focus manual review on low-confidence words",
                ))
                score -= 0.1

        return _clamp(score)

    def _assess_enhancement(self, enhancement: TextEnhancementResult, issues: List[QualityIssue]) -> None:
        if enhancement.metadata.confidence_score < 0.5:
            issues.append(QualityIssue(
                type=IssueType.FORMAT_ISSUES,
                severity=Severity.MEDIUM,
                description="Text enhancement did not significantly improve text quality",
                confidence=0.6,
                suggested_fix="Consider manual correction or different enhancement settings",
            ))

        word_count = len(enhancement.original_text.split())
        if word_count and len(enhancement.corrections) / word_count > 0.3:
            issues.append(QualityIssue(
                type=IssueType.CHARACTER_ERRORS,
                severity=Severity.HIGH,
                description="Enhancement made many corrections, original OCR quality may be very poor",
                confidence=0.8,
                suggested_fix="Verify the applied corrections are accurate",
            ))

    def _assess_source_image(self, image_bytes: bytes, issues: List[QualityIssue]) -> None:
        image = read_image_metadata(image_bytes)
        if image.width <= 0 or image.height <= 0:
            return
        if min(image.width, image.height) < MIN_IMAGE_SIDE:
            issues.append(QualityIssue(
                type=IssueType.CHARACTER_ERRORS,
                severity=Severity.LOW,
                description=f"Low source image resolution ({image.width}x{image.height})",
                confidence=0.6,
                suggested_fix="Rescan the document at 300 DPI or higher",
            ))

    def _generate_recommendations(self, issues: List[QualityIssue], metrics: QualityMetrics) -> List[str]:
        recommendations = []

        if any(i.severity == Severity.CRITICAL for i in issues):
            recommendations.append("Address critical issues immediately before using this text")
            recommendations.append("Consider re-processing the document with different settings")

        for dimension, advice in DIMENSION_RECOMMENDATIONS:
            if getattr(metrics, dimension) < self.weak_dimension_threshold:
                recommendations.extend(advice)

        if metrics.overall < 0.7:
            recommendations.append("Consider human validation before using this text")

        return recommendations or [DEFAULT_RECOMMENDATION]

    def _needs_manual_review(self, issues: List[QualityIssue], metrics: QualityMetrics) -> bool:
        if any(i.severity == Severity.CRITICAL for i in issues):
            return True
        if metrics.overall < 0.6:
            return True
        if sum(1 for i in issues if i.severity == Severity.HIGH) >= 2:
            return True
        return metrics.confidence < 0.5

    def compare_text_versions(self, original_text: str, revised_text: str) -> ComparisonResult:
        """
        Compare two versions of a text, e.g. before and after correction.

        Similarity is the Jaccard index of the lower-cased word sets.
        Differences come from a position-aligned walk over both word lists,
        not a minimal edit script.
        """
        differences = self._find_text_differences(original_text, revised_text)

        modifications = [d for d in differences if d.type == DifferenceType.MODIFICATION]
        additions = [d for d in differences if d.type == DifferenceType.ADDITION]

        improvement = 0.5
        if additions:
            improvement += min(0.3, len(additions) * 0.1)
        if modifications:
            ratio = len(modifications) / max(len(original_text.split()), 1)
            improvement += 0.2 if ratio < 0.2 else -0.1

        return ComparisonResult(
            similarity=self._text_similarity(original_text, revised_text),
            differences=differences,
            improvement_score=_clamp(improvement),
            quality_delta=0.1 if len(revised_text) >= len(original_text) else -0.1,
        )

    @staticmethod
    def _text_similarity(text1: str, text2: str) -> float:
        words1 = set(text1.lower().split())
        words2 = set(text2.lower().split())
        union = words1 | words2
        if not union:
            return 1.0
        return len(words1 & words2) / len(union)

    @staticmethod
    def _find_text_differences(original: str, revised: str) -> List[TextDifference]:
        original_words = original.split()
        revised_words = revised.split()
        differences = []
        i = j = 0
        position = 0

        while i < len(original_words) or j < len(revised_words):
            if i < len(original_words) and j < len(revised_words):
                if original_words[i] != revised_words[j]:
                    differences.append(TextDifference(
                        type=DifferenceType.MODIFICATION,
                        original=original_words[i],
                        modified=revised_words[j],
                        position=position,
                        confidence=0.8,
                    ))
                position += len(original_words[i]) + 1
                i += 1
                j += 1
            elif i < len(original_words):
                differences.append(TextDifference(
                    type=DifferenceType.DELETION,
                    original=original_words[i],
                    modified="",
                    position=position,
                    confidence=0.9,
                ))
                position += len(original_words[i]) + 1
                i += 1
            else:
                differences.append(TextDifference(
                    type=DifferenceType.ADDITION,
                    original="",
                    modified=revised_words[j],
                    position=position,
                    confidence=0.9,
                ))
                j += 1

        return differences

    async def get_batch_quality_statistics(self,
                                           assessments: Sequence[QualityAssessmentResult]) -> BatchQualityStatistics:
        """
        Aggregate statistics over many assessments.

        Raises:
            ValueError: If ``assessments`` is empty
        """
        if not assessments:
            raise ValueError("No assessments provided")

        n = len(assessments)
        dimensions = ("text_clarity", "structural_integrity", "language_consistency",
                      "content_completeness", "confidence")
        averages = {
            d: sum(getattr(a.overall_quality, d) for a in assessments) / n for d in dimensions
        }
        average_quality = QualityMetrics(
            overall=sum(a.overall_quality.overall for a in assessments) / n,
            **averages,
        )

        grade_distribution = Counter(a.quality_grade.value for a in assessments)

        severities: Dict[IssueType, List[int]] = defaultdict(list)
        for assessment in assessments:
            for issue in assessment.issues:
                severities[issue.type].append(issue.severity.rank)
        common_issues = sorted(
            (CommonIssue(
                type=issue_type,
                frequency=len(ranks),
                average_severity=Severity.from_rank(sum(ranks) / len(ranks)),
            ) for issue_type, ranks in severities.items()),
            key=lambda c: c.frequency,
            reverse=True,
        )

        recommendations = Counter(r for a in assessments for r in a.recommendations)

        return BatchQualityStatistics(
            average_quality=average_quality,
            grade_distribution=dict(grade_distribution),
            common_issues=common_issues,
            recommendations_frequency=dict(recommendations),
        )
