"""
Arabic text enhancement for OCR output.
"""

from .arabic_text_enhancer import ArabicTextEnhancer
from .arabic_utils import (
    analyze_rtl_segments,
    calculate_language_distribution,
    contains_arabic,
    get_reading_order,
    get_text_direction,
    is_arabic_word,
    normalize_arabic_text,
    remove_diacritics,
    split_arabic_words,
)

__all__ = [
    "ArabicTextEnhancer",
    "analyze_rtl_segments",
    "calculate_language_distribution",
    "contains_arabic",
    "get_reading_order",
    "get_text_direction",
    "is_arabic_word",
    "normalize_arabic_text",
    "remove_diacritics",
    "split_arabic_words",
]
