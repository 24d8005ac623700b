"""
End-to-end document intelligence pipeline.

bytes -> OCRResult -> enhanced text -> ClassificationResult -> QualityAssessmentResult
"""

import time
import logging
from typing import Optional

from pydantic import BaseModel, Field

from .config import Settings, get_settings
from .document_analyzers import DocumentClassifier, LayoutAnalyzer
from .models import (
    ClassificationResult,
    EnhancementOptions,
    OCROptions,
    OCRResult,
    QualityAssessmentResult,
    TextEnhancementResult,
)
from .orchestrator import MultiEngineOCRProcessor
from .quality_assessors import QualityAssessor
from .text_enhancers import ArabicTextEnhancer

logger = logging.getLogger(__name__)


class PipelineResult(BaseModel):
    """Everything produced for one document."""
    ocr_result: OCRResult
    enhancement: TextEnhancementResult
    classification: ClassificationResult
    quality: QualityAssessmentResult
    processing_time: float = Field(..., description="Wall-clock seconds for the whole pipeline")


class DocumentIntelligencePipeline:
    """
    Runs OCR, enhancement, classification and quality assessment for a document.

    All collaborators are injected; use :meth:`from_settings` to build the
    default set.
    """

    def __init__(self,
                 ocr_processor: MultiEngineOCRProcessor,
                 enhancer: ArabicTextEnhancer,
                 classifier: DocumentClassifier,
                 layout_analyzer: LayoutAnalyzer,
                 assessor: QualityAssessor):
        self.ocr_processor = ocr_processor
        self.enhancer = enhancer
        self.classifier = classifier
        self.layout_analyzer = layout_analyzer
        self.assessor = assessor

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "DocumentIntelligencePipeline":
        settings = settings or get_settings()
        enhancer = ArabicTextEnhancer()
        return cls(
            ocr_processor=MultiEngineOCRProcessor(settings=settings),
            enhancer=enhancer,
            classifier=DocumentClassifier(enhancer=enhancer),
            layout_analyzer=LayoutAnalyzer(),
            assessor=QualityAssessor(),
        )

    async def process(self,
                      image_bytes: bytes,
                      ocr_options: Optional[OCROptions] = None,
                      enhancement_options: Optional[EnhancementOptions] = None) -> PipelineResult:
        """
        Process one document image.

        Args:
            image_bytes: Encoded document image
            ocr_options: Recognition options
            enhancement_options: Enhancer step flags

        Returns:
            OCR, enhancement, classification and quality results

        Raises:
            AllEnginesFailedError: If no engine produced an acceptable result
        """
        start_time = time.perf_counter()

        ocr_result = await self.ocr_processor.process_with_best_engine(image_bytes, ocr_options)
        enhancement = await self.enhancer.enhance_text(ocr_result.text, enhancement_options)

        layout = self.layout_analyzer.analyze(ocr_result)
        classification = await self.classifier.classify_document(
            ocr_result.text,
            layout_analysis=layout,
            image_metadata=ocr_result.metadata.image_metadata,
            enhancement_result=enhancement,
        )

        quality = await self.assessor.assess_quality(
            ocr_result,
            classification=classification,
            enhancement_result=enhancement,
            original_image=image_bytes,
        )

        processing_time = time.perf_counter() - start_time
        logger.info(
            f"Pipeline completed with {ocr_result.engine}: type {classification.document_type.id}, "
            f"grade {quality.quality_grade.value}, {processing_time:.2f}s"
        )
        return PipelineResult(
            ocr_result=ocr_result,
            enhancement=enhancement,
            classification=classification,
            quality=quality,
            processing_time=processing_time,
        )
