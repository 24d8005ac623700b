"""
Document analysis: layout regions, document type catalog and classification.
"""

from .layout_analyzer import LayoutAnalyzer
from .document_types import DOCUMENT_TYPES, get_document_type
from .document_classifier import DocumentClassifier

__all__ = [
    "LayoutAnalyzer",
    "DOCUMENT_TYPES",
    "get_document_type",
    "DocumentClassifier",
]
