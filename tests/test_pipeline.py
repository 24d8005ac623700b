"""
End-to-end pipeline tests with stubbed OCR engines.
"""

import pytest

from docintel.document_analyzers import DocumentClassifier, LayoutAnalyzer
from docintel.exceptions import AllEnginesFailedError
from docintel.models import OCROptions
from docintel.orchestrator import MultiEngineOCRProcessor
from docintel.pipeline import DocumentIntelligencePipeline
from docintel.quality_assessors import QualityAssessor
from docintel.text_enhancers import ArabicTextEnhancer

CONTRACT_TEXT = "عقد عمل Employment contract يحدد راتب الموظف salary ومهام الوظيفة position في مكه"


def _pipeline(settings, *engines):
    enhancer = ArabicTextEnhancer()
    return DocumentIntelligencePipeline(
        ocr_processor=MultiEngineOCRProcessor(list(engines), settings=settings),
        enhancer=enhancer,
        classifier=DocumentClassifier(enhancer=enhancer),
        layout_analyzer=LayoutAnalyzer(),
        assessor=QualityAssessor(),
    )


class TestDocumentIntelligencePipeline:
    @pytest.mark.asyncio
    async def test_runs_every_stage(self, settings, stub_engine_class):
        pipeline = _pipeline(settings, stub_engine_class("azure", confidence=0.92, text=CONTRACT_TEXT))

        result = await pipeline.process(b"image")

        assert result.ocr_result.engine == "azure"
        assert result.enhancement.original_text == CONTRACT_TEXT
        assert "مكة" in result.enhancement.enhanced_text
        assert result.classification.document_type.id == "employment_contract"
        assert result.quality.overall_quality.confidence == pytest.approx(0.92)
        assert "enhancement_quality" in result.quality.processing_metadata.checks_performed
        assert "source_image" in result.quality.processing_metadata.checks_performed
        assert result.processing_time >= 0.0

    @pytest.mark.asyncio
    async def test_uses_fallback_engine(self, settings, stub_engine_class):
        pipeline = _pipeline(
            settings,
            stub_engine_class("azure", error=RuntimeError("quota exceeded")),
            stub_engine_class("tesseract", confidence=0.7, text=CONTRACT_TEXT),
        )

        result = await pipeline.process(b"image", OCROptions(confidence=0.6))

        assert result.ocr_result.engine == "tesseract"

    @pytest.mark.asyncio
    async def test_ocr_failure_propagates(self, settings, stub_engine_class):
        pipeline = _pipeline(settings, stub_engine_class("tesseract", confidence=0.2))

        with pytest.raises(AllEnginesFailedError):
            await pipeline.process(b"image", OCROptions(confidence=0.5))

    def test_from_settings_wires_default_engines(self, settings):
        pipeline = DocumentIntelligencePipeline.from_settings(settings)

        assert [p.name for p in pipeline.ocr_processor.processors] == ["azure", "google_vision", "tesseract"]
        assert pipeline.classifier.enhancer is pipeline.enhancer
