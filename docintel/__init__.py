"""
docintel - Arabic-aware document intelligence pipeline.

Turns scanned document images into classified, quality-scored text using
multiple OCR engines, Arabic text enhancement, document classification and
quality assessment.
"""

from .config import Settings, configure_logging, get_settings

from .exceptions import (
    DocIntelError,
    OCREngineError,
    EngineNotAvailableError,
    PollingTimeoutError,
    AllEnginesFailedError,
    NoEnginesAvailableError,
)

from .models import (
    OCRResult,
    OCROptions,
    BatchDocument,
    BatchOCRResult,
    MultiEngineResult,
    EnhancementOptions,
    TextEnhancementResult,
    ClassificationResult,
    QualityAssessmentResult,
    ComparisonResult,
)

from .ocr_processors import (
    create_ocr_processor,
    create_default_processors,
    TesseractProcessor,
    AzureReadProcessor,
    GoogleVisionProcessor,
)

from .orchestrator import MultiEngineOCRProcessor

from .text_enhancers import ArabicTextEnhancer

from .document_analyzers import (
    DocumentClassifier,
    LayoutAnalyzer,
)

from .quality_assessors import QualityAssessor

from .pipeline import DocumentIntelligencePipeline, PipelineResult

__version__ = "1.0.0"

__all__ = [
    # Configuration
    "Settings",
    "configure_logging",
    "get_settings",

    # Errors
    "DocIntelError",
    "OCREngineError",
    "EngineNotAvailableError",
    "PollingTimeoutError",
    "AllEnginesFailedError",
    "NoEnginesAvailableError",

    # Core models
    "OCRResult",
    "OCROptions",
    "BatchDocument",
    "BatchOCRResult",
    "MultiEngineResult",
    "EnhancementOptions",
    "TextEnhancementResult",
    "ClassificationResult",
    "QualityAssessmentResult",
    "ComparisonResult",

    # OCR engines
    "create_ocr_processor",
    "create_default_processors",
    "TesseractProcessor",
    "AzureReadProcessor",
    "GoogleVisionProcessor",

    # Orchestration
    "MultiEngineOCRProcessor",
    "DocumentIntelligencePipeline",
    "PipelineResult",

    # Text and document analysis
    "ArabicTextEnhancer",
    "DocumentClassifier",
    "LayoutAnalyzer",
    "QualityAssessor",
]
