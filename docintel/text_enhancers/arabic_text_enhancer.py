"""
Arabic text enhancer for post-processing raw OCR output.

Applies a fixed sequence of repair steps (presentation-form shaping,
common misrecognition fixes, diacritic handling, digit normalization and
bidirectional layout marks) and records every change it makes.
"""

import re
import time
import logging
import unicodedata
from types import MappingProxyType
from typing import Callable, List, Optional, Union

from ..models import (
    CorrectionType,
    EnhancementMetadata,
    EnhancementOptions,
    TextCorrection,
    TextDirection,
    SegmentLanguage,
    TextEnhancementResult,
)
from .arabic_utils import RLM, analyze_rtl_segments

logger = logging.getLogger(__name__)


LAM_ALIF_LIGATURES = MappingProxyType({
    "\uFEF5": "لآ",  # isolated, madda
    "\uFEF6": "لآ",
    "\uFEF7": "لأ",  # hamza above
    "\uFEF8": "لأ",
    "\uFEF9": "لإ",  # hamza below
    "\uFEFA": "لإ",
    "\uFEFB": "لا",
    "\uFEFC": "لا",
})

# Whole-word misrecognitions seen in scanned Saudi documents.
COMMON_WORD_CORRECTIONS = MappingProxyType({
    "اللة": "الله",
    "اللہ": "الله",
    "مجمد": "محمد",
    "عليکم": "عليكم",
    "السلاة عليكم": "السلام عليكم",
    "يسم الله": "بسم الله",
    "الرحمز": "الرحمن",
    "الرخيم": "الرحيم",
    "المملكه": "المملكة",
    "العربيه": "العربية",
    "السعوديه": "السعودية",
    "الرياص": "الرياض",
    "چدة": "جدة",
    "مكه": "مكة",
    "المدينه": "المدينة",
})

# (pattern, replacement, confidence): prepositions commonly misread as
# visually similar letter pairs.
CONTEXTUAL_CORRECTIONS = (
    (re.compile(r"(?<!\w)قي(?=\s)"), "في", 0.7),
    (re.compile(r"(?<!\w)مز(?=\s)"), "من", 0.7),
    (re.compile(r"(?<!\w)إلي(?!\w)"), "إلى", 0.8),
    (re.compile(r"(?<!\w)علي(?=\s(?![A-Za-z]))"), "على", 0.6),
)

CORRECTION_WEIGHTS = MappingProxyType({
    CorrectionType.DIACRITIC: 0.1,
    CorrectionType.CHARACTER: 0.3,
    CorrectionType.NUMBER: 0.05,
    CorrectionType.LAYOUT: 0.1,
    CorrectionType.COMMON_ERROR: 0.5,
})
DEFAULT_CORRECTION_WEIGHT = 0.3

_LIGATURE_PATTERN = re.compile(r"[\uFEF5-\uFEFC]")
_PRESENTATION_FORM_PATTERN = re.compile(r"[\uFB50-\uFDFF\uFE80-\uFEF4]")
_COMMON_WORD_PATTERN = re.compile(
    r"(?<!\w)(?:" + "|".join(
        re.escape(k) for k in sorted(COMMON_WORD_CORRECTIONS, key=len, reverse=True)
    ) + r")(?!\w)"
)
_STRIP_DIACRITICS_PATTERN = re.compile(r"[\u064B-\u065F\u0670\u06D6-\u06ED\uFE70-\uFE7F]")
_SPACING_DIACRITICS_PATTERN = re.compile(r"[\uFE70-\uFE7F]")
_REPEATED_DIACRITIC_PATTERN = re.compile(r"([\u064B-\u065F\u0670])\1+")
_DIGIT_PATTERN = re.compile(r"[\u0660-\u0669\u06F0-\u06F9]")
_RLM_RUN_PATTERN = re.compile(RLM + "{2,}")

Replacement = Union[str, Callable[["re.Match"], Optional[str]]]


class _TrackedText:
    """
    Text plus, for each character, the index in the original input it came from.

    Lets every step report correction positions against the original text
    even after earlier steps changed its length.
    """

    def __init__(self, text: str):
        self.text = text
        self.origin = list(range(len(text)))

    def substitute(self,
                   pattern: "re.Pattern",
                   replacement: Replacement,
                   correction_type: CorrectionType,
                   confidence: float) -> List[TextCorrection]:
        corrections = []
        pieces = []
        origin = []
        last = 0

        for match in pattern.finditer(self.text):
            found = match.group(0)
            new = replacement(match) if callable(replacement) else match.expand(replacement)
            if new is None or new == found:
                continue
            start, end = match.span()
            position = self.origin[start]
            pieces.append(self.text[last:start])
            origin.extend(self.origin[last:start])
            pieces.append(new)
            origin.extend([position] * len(new))
            corrections.append(TextCorrection(
                type=correction_type,
                original=found,
                corrected=new,
                position=position,
                confidence=confidence,
            ))
            last = end

        if corrections:
            pieces.append(self.text[last:])
            origin.extend(self.origin[last:])
            self.text = "".join(pieces)
            self.origin = origin
        return corrections


class ArabicTextEnhancer:
    """
    Post-processor for Arabic and mixed Arabic/English OCR text.

    Stateless: a single instance can serve concurrent requests.
    """

    def __init__(self, default_options: Optional[EnhancementOptions] = None):
        self.default_options = default_options or EnhancementOptions()

    async def enhance_text(self,
                           text: str,
                           options: Optional[EnhancementOptions] = None) -> TextEnhancementResult:
        """
        Enhance recognized text.

        Args:
            text: Raw OCR text
            options: Step flags; defaults to the instance defaults

        Returns:
            Enhancement result with the corrected text, every correction
            (positions index into ``text``) and its direction segments
        """
        return self.enhance(text, options)

    async def enhance_handwritten_text(self, text: str) -> TextEnhancementResult:
        """Enhance handwriting output, keeping diacritics intact."""
        return self.enhance(text, EnhancementOptions(normalize_diacritics=False, preserve_diacritics=True))

    def enhance(self, text: str, options: Optional[EnhancementOptions] = None) -> TextEnhancementResult:
        """Synchronous form of :meth:`enhance_text`."""
        options = options or self.default_options
        text = text or ""
        start_time = time.perf_counter()
        logger.debug(f"Enhancing {len(text)} characters with {options.model_dump()}")

        tracked = _TrackedText(text)
        corrections: List[TextCorrection] = []

        if options.fix_character_shaping:
            corrections.extend(self._fix_character_shaping(tracked))

        if options.correct_common_errors:
            corrections.extend(self._correct_common_errors(tracked))

        if options.normalize_diacritics:
            corrections.extend(self._handle_diacritics(tracked, options.preserve_diacritics))

        if options.normalize_numbers:
            corrections.extend(tracked.substitute(
                _DIGIT_PATTERN,
                lambda m: str(unicodedata.digit(m.group(0))),
                CorrectionType.NUMBER,
                0.99,
            ))

        enhanced_text = tracked.text
        if options.enhance_rtl_layout:
            enhanced_text = self._apply_rtl_marks(enhanced_text)

        rtl_segments = analyze_rtl_segments(enhanced_text)
        confidence_score = self.calculate_confidence_score(corrections)

        logger.info(
            f"Text enhancement completed: {len(corrections)} corrections, "
            f"confidence {confidence_score:.2f}, "
            f"{time.perf_counter() - start_time:.3f}s"
        )

        return TextEnhancementResult(
            original_text=text,
            enhanced_text=enhanced_text,
            corrections=corrections,
            rtl_segments=rtl_segments,
            metadata=EnhancementMetadata(
                original_length=len(text),
                enhanced_length=len(enhanced_text),
                correction_count=len(corrections),
                confidence_score=confidence_score,
            ),
        )

    def _fix_character_shaping(self, tracked: _TrackedText) -> List[TextCorrection]:
        corrections = tracked.substitute(
            _LIGATURE_PATTERN,
            lambda m: LAM_ALIF_LIGATURES[m.group(0)],
            CorrectionType.CHARACTER,
            0.9,
        )
        corrections.extend(tracked.substitute(
            _PRESENTATION_FORM_PATTERN,
            self._base_letter,
            CorrectionType.CHARACTER,
            0.8,
        ))
        return sorted(corrections, key=lambda c: c.position)

    @staticmethod
    def _base_letter(match: "re.Match") -> Optional[str]:
        folded = unicodedata.normalize("NFKC", match.group(0))
        # Honorific phrase ligatures expand to whole words; leave them.
        if " " in folded:
            return None
        return folded

    def _correct_common_errors(self, tracked: _TrackedText) -> List[TextCorrection]:
        corrections = tracked.substitute(
            _COMMON_WORD_PATTERN,
            lambda m: COMMON_WORD_CORRECTIONS[m.group(0)],
            CorrectionType.COMMON_ERROR,
            0.9,
        )
        for pattern, replacement, confidence in CONTEXTUAL_CORRECTIONS:
            corrections.extend(tracked.substitute(
                pattern, replacement, CorrectionType.COMMON_ERROR, confidence
            ))
        return corrections

    def _handle_diacritics(self, tracked: _TrackedText, preserve: bool) -> List[TextCorrection]:
        if not preserve:
            return tracked.substitute(_STRIP_DIACRITICS_PATTERN, "", CorrectionType.DIACRITIC, 0.9)

        corrections = tracked.substitute(
            _SPACING_DIACRITICS_PATTERN,
            lambda m: unicodedata.normalize("NFKC", m.group(0)).replace(" ", "") or None,
            CorrectionType.DIACRITIC,
            0.95,
        )
        corrections.extend(tracked.substitute(
            _REPEATED_DIACRITIC_PATTERN, r"\1", CorrectionType.DIACRITIC, 0.95
        ))
        return corrections

    def _apply_rtl_marks(self, text: str) -> str:
        """Wrap Arabic runs in right-to-left marks, never doubling a mark."""
        pieces = []
        for segment in analyze_rtl_segments(text):
            if segment.direction != TextDirection.RTL or segment.language != SegmentLanguage.ARABIC:
                pieces.append(segment.text)
                continue
            core = segment.text.strip()
            if not core:
                pieces.append(segment.text)
                continue
            lead = segment.text[:len(segment.text) - len(segment.text.lstrip())]
            trail = segment.text[len(segment.text.rstrip()):]
            pieces.append(f"{lead}{RLM}{core}{RLM}{trail}")
        return _RLM_RUN_PATTERN.sub(RLM, "".join(pieces))

    @staticmethod
    def calculate_confidence_score(corrections: List[TextCorrection]) -> float:
        """Weighted mean of correction confidences; 1.0 when nothing changed."""
        if not corrections:
            return 1.0
        total_weight = 0.0
        weighted = 0.0
        for correction in corrections:
            weight = CORRECTION_WEIGHTS.get(correction.type, DEFAULT_CORRECTION_WEIGHT)
            total_weight += weight
            weighted += correction.confidence * weight
        return min(weighted / total_weight, 1.0) if total_weight > 0 else 0.8
