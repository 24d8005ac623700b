"""
Arabic script helpers shared by the enhancer, classifier and quality assessor.
"""

import re
import unicodedata
from typing import List, Optional, Tuple

from ..models import RTLSegment, SegmentLanguage, TextDirection

ARABIC_RANGES = "\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF"
ARABIC_CHAR = re.compile(f"[{ARABIC_RANGES}]")
LATIN_CHAR = re.compile(r"[A-Za-z]")
DIACRITICS = re.compile(r"[\u064B-\u065F\u0670\u06D6-\u06ED]")
WORD_SEPARATORS = re.compile(r"[\s\u060C\u061B\u061F\u06D4.]+")

RLM = "\u200F"
LRM = "\u200E"

_ALIF_VARIANTS = re.compile(r"[إأآا]")
_YAA_VARIANTS = re.compile(r"[ىي]")

_OTHER = "other"


def contains_arabic(text: str) -> bool:
    return ARABIC_CHAR.search(text) is not None


def get_text_direction(text: str) -> str:
    """Return 'rtl', 'ltr' or 'mixed' based on the scripts present."""
    has_arabic = contains_arabic(text)
    has_latin = LATIN_CHAR.search(text) is not None
    if has_arabic and has_latin:
        return "mixed"
    if has_arabic:
        return "rtl"
    return "ltr"


def remove_diacritics(text: str) -> str:
    return DIACRITICS.sub("", text)


def normalize_arabic_text(text: str) -> str:
    """
    Fold Alif, Yaa and Taa Marbuta variants and strip diacritics.

    Lossy; meant for search and comparison, never for display.
    """
    text = _ALIF_VARIANTS.sub("ا", text)
    text = _YAA_VARIANTS.sub("ي", text)
    text = text.replace("ة", "ه")
    return remove_diacritics(text).strip()


def split_arabic_words(text: str) -> List[str]:
    """Split on whitespace and Arabic/Latin punctuation."""
    return [w for w in WORD_SEPARATORS.split(text) if w]


def is_arabic_word(word: str) -> bool:
    """True when more than half of the word's characters are Arabic."""
    if not word:
        return False
    return len(ARABIC_CHAR.findall(word)) / len(word) > 0.5


def calculate_language_distribution(text: str) -> Tuple[float, float]:
    """
    Share of Arabic and Latin letters among all Arabic+Latin letters.

    Returns ``(0.0, 0.0)`` when the text contains neither script.
    """
    arabic = len(ARABIC_CHAR.findall(text))
    english = len(LATIN_CHAR.findall(text))
    total = arabic + english
    if total == 0:
        return 0.0, 0.0
    return arabic / total, english / total


def _classify_char(ch: str) -> Tuple[Optional[TextDirection], Optional[str]]:
    # Marks are strong for direction but carry no language.
    if ch == RLM:
        return TextDirection.RTL, None
    if ch == LRM:
        return TextDirection.LTR, None
    if ARABIC_CHAR.match(ch):
        return TextDirection.RTL, SegmentLanguage.ARABIC.value
    if LATIN_CHAR.match(ch):
        return TextDirection.LTR, SegmentLanguage.ENGLISH.value
    if ch.isalpha():
        bidi = unicodedata.bidirectional(ch)
        direction = TextDirection.RTL if bidi in ("R", "AL") else TextDirection.LTR
        return direction, _OTHER
    return None, None


def _segment_language(languages: set) -> SegmentLanguage:
    if languages == {SegmentLanguage.ARABIC.value}:
        return SegmentLanguage.ARABIC
    if languages <= {SegmentLanguage.ENGLISH.value}:
        return SegmentLanguage.ENGLISH
    return SegmentLanguage.MIXED


def analyze_rtl_segments(text: str) -> List[RTLSegment]:
    """
    Partition ``text`` into maximal same-direction runs.

    Punctuation, digits and whitespace inherit the direction of the run they
    are in; leading neutral characters take the direction of the first
    strong character. Concatenating the segment texts reproduces ``text``.
    """
    if not text:
        return []

    current = TextDirection.LTR
    for ch in text:
        direction, _ = _classify_char(ch)
        if direction is not None:
            current = direction
            break

    segments: List[RTLSegment] = []
    start = 0
    languages: set = set()

    for i, ch in enumerate(text):
        direction, language = _classify_char(ch)
        if direction is not None and direction != current:
            segments.append(RTLSegment(
                text=text[start:i],
                start_index=start,
                end_index=i,
                direction=current,
                language=_segment_language(languages),
            ))
            start = i
            current = direction
            languages = set()
        if language is not None:
            languages.add(language)

    segments.append(RTLSegment(
        text=text[start:],
        start_index=start,
        end_index=len(text),
        direction=current,
        language=_segment_language(languages),
    ))
    return segments


def get_reading_order(text: str) -> List[Tuple[str, TextDirection]]:
    """Segments as ``(text, direction)`` pairs in logical order."""
    return [(s.text, s.direction) for s in analyze_rtl_segments(text)]
