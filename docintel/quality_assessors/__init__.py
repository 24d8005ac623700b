"""
Quality assessment of recognized text.
"""

from .quality_assessor import QualityAssessor

__all__ = [
    "QualityAssessor",
]
