"""
Document classifier scoring recognized text against the document type catalog.
"""

import re
import time
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models import (
    AlternativeType,
    ClassificationBatchItem,
    ClassificationMetadata,
    ClassificationRequest,
    ClassificationResult,
    DocumentLanguage,
    DocumentType,
    EnhancementOptions,
    ExtractedFeatures,
    HandwritingIndicator,
    ImageMetadata,
    KeywordMatch,
    LayoutPattern,
    StructurePattern,
    StructureType,
    TextEnhancementResult,
)
from ..text_enhancers import ArabicTextEnhancer, calculate_language_distribution
from ..text_enhancers.arabic_utils import ARABIC_RANGES, LRM, RLM
from .document_types import DOCUMENT_TYPES

logger = logging.getLogger(__name__)

# Calibration constants. Kept at their historical values; tune only
# against labeled documents.
KEYWORD_WEIGHT = 0.4
STRUCTURE_WEIGHT = 0.3
LAYOUT_WEIGHT = 0.2
LANGUAGE_WEIGHT = 0.1

NEUTRAL_SCORE = 0.5
ALTERNATIVE_COUNT = 3

NUMBERED_LIST = re.compile(r"^\s*\d+[.)]\s", re.MULTILINE)
BULLET_POINTS = re.compile(r"^\s*[•·-]|\s*[◦▪▫]\s", re.MULTILINE)
CLAUSES = re.compile(r"^(?:المادة|البند|الفقرة|Article|Section|Clause)\s*\d+", re.MULTILINE)
FORM_FIELDS = re.compile(
    r"\b(?:الاسم|Name|التاريخ|Date|الرقم|Number|المبلغ|Amount):\s*[_\-.]{3,}|:\s*_+"
)
SECTION_HEADINGS = re.compile(r"^[^\n:]{2,50}:[ \t]*$", re.MULTILINE)
TABLE_ROW = re.compile(r"^[^\n]*\S(?:\t+|[ \t]{3,}|[ \t]*\|[ \t]*)\S[^\n]*?(?:\t+|[ \t]{3,}|[ \t]*\|[ \t]*)\S", re.MULTILINE)
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

_IRREGULAR_PATTERNS = (
    re.compile(r"[a-zA-Z][0-9][a-zA-Z]"),
    re.compile(r"\s{3,}"),
    re.compile(f"[^\\w\\s{ARABIC_RANGES}]"),
)
_WHITESPACE_RUN = re.compile(r"\s{2,}")
_BIDI_MARKS = re.compile(f"[{RLM}{LRM}]")

_CLASSIFICATION_ENHANCEMENT = EnhancementOptions(enhance_rtl_layout=False)


class DocumentClassifier:
    """
    Multi-factor classifier over a static catalog of document types.

    For each type, confidence is a weighted sum of keyword, structure,
    layout and language scores, clamped to [0, 1]. The catalog is shared
    and immutable; ``extra_types`` are appended for this instance only.
    """

    def __init__(self,
                 extra_types: Iterable[DocumentType] = (),
                 enhancer: Optional[ArabicTextEnhancer] = None):
        self.document_types: Tuple[DocumentType, ...] = DOCUMENT_TYPES + tuple(extra_types)
        self.enhancer = enhancer or ArabicTextEnhancer()
        self._keyword_index = self._build_keyword_index(self.document_types)

    def get_supported_document_types(self) -> List[DocumentType]:
        return list(self.document_types)

    def with_document_type(self, document_type: DocumentType) -> "DocumentClassifier":
        """Return a new classifier that also knows ``document_type``."""
        extra = self.document_types[len(DOCUMENT_TYPES):] + (document_type,)
        logger.info(f"Added custom document type: {document_type.id}")
        return DocumentClassifier(extra_types=extra, enhancer=self.enhancer)

    async def classify_document(self,
                                text: str,
                                layout_analysis: Optional[Sequence[LayoutPattern]] = None,
                                image_metadata: Optional[ImageMetadata] = None,
                                enhancement_result: Optional[TextEnhancementResult] = None) -> ClassificationResult:
        """
        Classify a document from its recognized text.

        Args:
            text: Recognized (raw or enhanced) text
            layout_analysis: Layout regions detected on the page, if any
            image_metadata: Source image properties, if known
            enhancement_result: Precomputed enhancement of ``text``; when absent
                the text is enhanced here without layout marks

        Returns:
            Best matching type, the next three alternatives and extracted features
        """
        return self.classify(text, layout_analysis, image_metadata, enhancement_result)

    def classify(self,
                 text: str,
                 layout_analysis: Optional[Sequence[LayoutPattern]] = None,
                 image_metadata: Optional[ImageMetadata] = None,
                 enhancement_result: Optional[TextEnhancementResult] = None) -> ClassificationResult:
        """Synchronous form of :meth:`classify_document`."""
        start_time = time.perf_counter()
        text = text or ""

        if enhancement_result is None:
            enhancement_result = self.enhancer.enhance(text, _CLASSIFICATION_ENHANCEMENT)
        enhanced_text = _BIDI_MARKS.sub("", enhancement_result.enhanced_text)

        layout = list(layout_analysis or [])
        structure = self.analyze_text_structure(enhanced_text)
        keywords = self.extract_keywords(enhanced_text)
        arabic_pct, english_pct = calculate_language_distribution(enhanced_text)

        lowered = enhanced_text.lower()
        scored = sorted(
            ((doc_type, self.calculate_type_confidence(doc_type, lowered, structure, layout,
                                                        arabic_pct, english_pct))
             for doc_type in self.document_types),
            key=lambda item: item[1],
            reverse=True,
        )
        best_type, best_confidence = scored[0]

        result = ClassificationResult(
            document_type=best_type,
            confidence=best_confidence,
            alternative_types=[
                AlternativeType(type=doc_type, confidence=confidence)
                for doc_type, confidence in scored[1:1 + ALTERNATIVE_COUNT]
            ],
            extracted_features=ExtractedFeatures(
                keywords=keywords,
                layout=layout,
                structure=structure,
                handwriting_indicators=self.detect_handwriting_indicators(text),
            ),
            metadata=ClassificationMetadata(
                processing_time=time.perf_counter() - start_time,
                image_orientation=_orientation(image_metadata),
                text_length=len(text),
                arabic_text_percentage=arabic_pct,
                english_text_percentage=english_pct,
                confidence=best_confidence,
            ),
        )

        logger.info(
            f"Classified document as {best_type.id} with confidence {best_confidence:.3f} "
            f"(handwritten: {result.is_handwritten})"
        )
        return result

    async def classify_batch(self, documents: Sequence[ClassificationRequest]) -> List[ClassificationBatchItem]:
        """Classify documents one by one; a failure is recorded, never raised."""
        results = []
        for doc in documents:
            try:
                result = self.classify(doc.text, doc.layout_analysis, doc.image_metadata)
                results.append(ClassificationBatchItem(document_id=doc.id, result=result))
            except Exception as e:
                logger.error(f"Classification failed for document {doc.id}: {e}")
                results.append(ClassificationBatchItem(document_id=doc.id, error=str(e)))
        return results

    def calculate_type_confidence(self,
                                  doc_type: DocumentType,
                                  lowered_text: str,
                                  structure: Sequence[StructurePattern],
                                  layout: Sequence[LayoutPattern],
                                  arabic_pct: float,
                                  english_pct: float) -> float:
        confidence = (
            KEYWORD_WEIGHT * self._keyword_score(doc_type, lowered_text)
            + STRUCTURE_WEIGHT * self._structure_score(doc_type, structure)
            + LAYOUT_WEIGHT * self._layout_score(doc_type, layout)
            + LANGUAGE_WEIGHT * self._language_score(doc_type, arabic_pct, english_pct)
        )
        return max(0.0, min(confidence, 1.0))

    def _keyword_score(self, doc_type: DocumentType, lowered_text: str) -> float:
        doc_keywords = doc_type.patterns.keywords + doc_type.patterns.keywords_ar
        if not doc_keywords:
            return 0.0
        found = sum(1 for keyword in doc_keywords if keyword.lower() in lowered_text)
        return found / len(doc_keywords)

    def _structure_score(self, doc_type: DocumentType, detected: Sequence[StructurePattern]) -> float:
        expected = doc_type.patterns.structure
        if not expected:
            return NEUTRAL_SCORE

        by_type: Dict[StructureType, StructurePattern] = {s.type: s for s in detected}
        total_score = 0.0
        total_weight = 0.0
        for pattern in expected:
            match = by_type.get(pattern.type)
            if match is not None:
                score = 0.7
                if pattern.count and match.count:
                    diff = abs(pattern.count - match.count)
                    score += 0.3 * max(0.0, 1 - diff / max(pattern.count, match.count))
                else:
                    score += 0.15
                total_score += score * pattern.weight
            total_weight += pattern.weight
        return total_score / total_weight if total_weight > 0 else 0.0

    def _layout_score(self, doc_type: DocumentType, detected: Sequence[LayoutPattern]) -> float:
        expected = doc_type.patterns.layout
        if not expected:
            return NEUTRAL_SCORE

        present = {(p.type, p.position) for p in detected}
        total_weight = sum(p.weight for p in expected)
        matched = sum(p.weight for p in expected if (p.type, p.position) in present)
        return matched / total_weight if total_weight > 0 else 0.0

    def _language_score(self, doc_type: DocumentType, arabic_pct: float, english_pct: float) -> float:
        language = doc_type.metadata.language
        if language == DocumentLanguage.ARABIC:
            return arabic_pct
        if language == DocumentLanguage.ENGLISH:
            return english_pct
        if language == DocumentLanguage.BILINGUAL:
            return min(arabic_pct + english_pct, 1.0)
        return NEUTRAL_SCORE

    def extract_keywords(self, text: str) -> List[KeywordMatch]:
        """Every occurrence of every catalog keyword, ordered by position."""
        lowered = text.lower()
        matches = []
        for keyword, language in self._keyword_index.items():
            start = lowered.find(keyword)
            while start != -1:
                matches.append(KeywordMatch(word=keyword, language=language, position=start, confidence=0.8))
                start = lowered.find(keyword, start + len(keyword))
        return sorted(matches, key=lambda m: (m.position, m.word))

    @staticmethod
    def _build_keyword_index(document_types: Sequence[DocumentType]) -> Dict[str, str]:
        index: Dict[str, str] = {}
        for doc_type in document_types:
            for keyword in doc_type.patterns.keywords:
                index[keyword.lower()] = "en"
            for keyword in doc_type.patterns.keywords_ar:
                index[keyword] = "ar"
        return index

    def analyze_text_structure(self, text: str) -> List[StructurePattern]:
        """Run the structural detectors over ``text``."""
        patterns = []
        spacing = _detect_spacing(text)

        numbered = len(NUMBERED_LIST.findall(text))
        if numbered >= 3:
            patterns.append(StructurePattern(type=StructureType.NUMBERED_LIST, count=numbered,
                                             spacing=spacing, weight=0.7))

        bullets = len(BULLET_POINTS.findall(text))
        if bullets >= 2:
            patterns.append(StructurePattern(type=StructureType.BULLET_POINTS, count=bullets,
                                             spacing=spacing, weight=0.6))

        clauses = len(CLAUSES.findall(text))
        if clauses >= 2:
            patterns.append(StructurePattern(type=StructureType.CLAUSES, count=clauses,
                                             spacing="normal", weight=0.8))

        sections = len(SECTION_HEADINGS.findall(text))
        if sections >= 2:
            patterns.append(StructurePattern(type=StructureType.SECTIONS, count=sections,
                                             spacing=spacing, weight=0.6))

        fields = len(FORM_FIELDS.findall(text))
        if fields >= 3:
            patterns.append(StructurePattern(type=StructureType.FIELDS, count=fields,
                                             spacing="tight", weight=0.7))

        rows = len(TABLE_ROW.findall(text))
        if rows >= 3:
            patterns.append(StructurePattern(type=StructureType.TABLE, count=rows,
                                             spacing="tight", weight=0.9))

        paragraphs = [p for p in PARAGRAPH_BREAK.split(text) if len(p.strip()) > 20]
        if len(paragraphs) >= 2:
            patterns.append(StructurePattern(type=StructureType.PARAGRAPHS, count=len(paragraphs),
                                             spacing=spacing, alignment=_detect_alignment(text),
                                             weight=0.5))

        return patterns

    def detect_handwriting_indicators(self, text: str) -> List[HandwritingIndicator]:
        """
        Heuristic signs of handwritten source material.

        These are reported alongside the classification and never change its
        confidence.
        """
        indicators = []

        if any(len(pattern.findall(text)) > 5 for pattern in _IRREGULAR_PATTERNS):
            indicators.append(HandwritingIndicator(
                type="irregular_recognition",
                confidence=0.6,
                description="Text contains irregular character recognition patterns common in handwritten documents",
            ))

        tokens = text.split()
        short_words = [w for w in tokens if len(w) <= 2]
        if tokens and len(short_words) > len(tokens) * 0.3:
            indicators.append(HandwritingIndicator(
                type="fragmented_text",
                confidence=0.7,
                description="High proportion of short words suggests handwriting recognition challenges",
            ))

        if len(_WHITESPACE_RUN.findall(text)) > 10:
            indicators.append(HandwritingIndicator(
                type="inconsistent_spacing",
                confidence=0.5,
                description="Inconsistent spacing patterns typical of handwritten text",
            ))

        return indicators


def _detect_spacing(text: str) -> str:
    lines = text.split("\n")
    empty_ratio = sum(1 for line in lines if not line.strip()) / len(lines)
    if empty_ratio > 0.3:
        return "loose"
    if empty_ratio > 0.1:
        return "normal"
    return "tight"


def _detect_alignment(text: str) -> str:
    arabic_pct, _ = calculate_language_distribution(text)
    return "right" if arabic_pct > 0.5 else "left"


def _orientation(image_metadata: Optional[ImageMetadata]) -> Optional[str]:
    if image_metadata is None or image_metadata.width <= 0 or image_metadata.height <= 0:
        return None
    return "landscape" if image_metadata.width > image_metadata.height else "portrait"
