"""
Tests for the multi-engine OCR orchestrator.
"""

import pytest

from docintel.exceptions import AllEnginesFailedError, NoEnginesAvailableError, OCREngineError
from docintel.models import BatchDocument, BatchStatus, OCROptions
from docintel.orchestrator import MultiEngineOCRProcessor


def _documents(*contents):
    return [BatchDocument(id=f"doc-{i}", content=content) for i, content in enumerate(contents)]


class TestBestEngine:
    @pytest.mark.asyncio
    async def test_engines_tried_in_preference_order(self, settings, stub_engine_class):
        tesseract = stub_engine_class("tesseract")
        azure = stub_engine_class("azure")
        orchestrator = MultiEngineOCRProcessor([tesseract, azure], settings=settings)

        result = await orchestrator.process_with_best_engine(b"image")

        assert result.engine == "azure"
        assert tesseract.calls == 0

    @pytest.mark.asyncio
    async def test_falls_back_when_engine_raises(self, settings, stub_engine_class):
        azure = stub_engine_class("azure", error=OCREngineError("azure", "Azure API error: 500"))
        google = stub_engine_class("google_vision", confidence=0.8)
        orchestrator = MultiEngineOCRProcessor([azure, google], settings=settings)

        result = await orchestrator.process_with_best_engine(b"image")

        assert result.engine == "google_vision"
        assert azure.calls == 1

    @pytest.mark.asyncio
    async def test_falls_back_when_below_threshold(self, settings, stub_engine_class):
        azure = stub_engine_class("azure", confidence=0.3)
        google = stub_engine_class("google_vision", confidence=0.8)
        tesseract = stub_engine_class("tesseract")
        orchestrator = MultiEngineOCRProcessor([azure, google, tesseract], settings=settings)

        result = await orchestrator.process_with_best_engine(b"image", OCROptions(confidence=0.5))

        assert result.engine == "google_vision"
        assert tesseract.calls == 0

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor([stub_engine_class("azure", confidence=0.7)], settings=settings)
        result = await orchestrator.process_with_best_engine(b"image", OCROptions(confidence=0.7))
        assert result.engine == "azure"

    @pytest.mark.asyncio
    async def test_all_below_threshold_keeps_best_result(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor(
            [stub_engine_class("azure", confidence=0.3), stub_engine_class("google_vision", confidence=0.4)],
            settings=settings,
        )

        with pytest.raises(AllEnginesFailedError) as exc_info:
            await orchestrator.process_with_best_engine(b"image", OCROptions(confidence=0.9))

        error = exc_info.value
        assert error.best_result is not None
        assert error.best_result.engine == "google_vision"
        assert [name for name, _ in error.failures] == ["azure", "google_vision"]
        assert "below threshold" in str(error)

    @pytest.mark.asyncio
    async def test_all_engines_raise(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor(
            [stub_engine_class("azure", error=RuntimeError("boom")),
             stub_engine_class("tesseract", error=RuntimeError("tesseract crashed"))],
            settings=settings,
        )

        with pytest.raises(AllEnginesFailedError) as exc_info:
            await orchestrator.process_with_best_engine(b"image")

        assert exc_info.value.best_result is None
        assert exc_info.value.last_error == "tesseract crashed"

    @pytest.mark.asyncio
    async def test_unavailable_engines_are_skipped(self, settings, stub_engine_class):
        azure = stub_engine_class("azure", available=False)
        tesseract = stub_engine_class("tesseract")
        orchestrator = MultiEngineOCRProcessor([azure, tesseract], settings=settings)

        result = await orchestrator.process_with_best_engine(b"image")

        assert result.engine == "tesseract"
        assert azure.calls == 0

    @pytest.mark.asyncio
    async def test_no_engines_available(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor([stub_engine_class("azure", available=False)], settings=settings)

        with pytest.raises(NoEnginesAvailableError):
            await orchestrator.process_with_best_engine(b"image")

    def test_engine_status(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor(
            [stub_engine_class("tesseract"), stub_engine_class("azure", available=False)],
            settings=settings,
        )

        assert orchestrator.get_engine_status() == {"tesseract": True, "azure": False}
        assert [e.name for e in orchestrator.get_available_engines()] == ["tesseract"]

    def test_invalid_batch_concurrency(self, settings, stub_engine_class):
        with pytest.raises(ValueError):
            MultiEngineOCRProcessor([stub_engine_class("azure")], settings=settings, batch_concurrency=-1)


class TestMultipleEngines:
    @pytest.mark.asyncio
    async def test_best_of_concurrent_runs(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor(
            [stub_engine_class("azure", confidence=0.9),
             stub_engine_class("google_vision", error=OCREngineError("google_vision", "rejected")),
             stub_engine_class("tesseract", confidence=0.6)],
            settings=settings,
        )

        multi = await orchestrator.process_with_multiple_engines(b"image")

        assert multi.best_engine == "azure"
        assert multi.best_result.confidence == 0.9
        assert len(multi.results) == 3
        failed = [run for run in multi.results if not run.succeeded]
        assert [run.engine for run in failed] == ["google_vision"]
        assert "rejected" in failed[0].error

    @pytest.mark.asyncio
    async def test_every_engine_fails(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor(
            [stub_engine_class("azure", error=RuntimeError("down")),
             stub_engine_class("tesseract", error=RuntimeError("missing binary"))],
            settings=settings,
        )

        with pytest.raises(AllEnginesFailedError) as exc_info:
            await orchestrator.process_with_multiple_engines(b"image")
        assert len(exc_info.value.failures) == 2


class TestBatch:
    @pytest.mark.asyncio
    async def test_concurrency_ceiling(self, settings, stub_engine_class):
        engine = stub_engine_class("tesseract", delay=0.01)
        orchestrator = MultiEngineOCRProcessor([engine], settings=settings, batch_concurrency=3)

        batch = await orchestrator.process_batch(_documents(*[b"page"] * 5))

        assert engine.calls == 5
        assert engine.max_in_flight == 3
        assert batch.summary.total_documents == 5
        assert batch.summary.successful_documents == 5

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, settings, stub_engine_class):
        engine = stub_engine_class("tesseract", confidence=0.8, fail_on=b"bad")
        orchestrator = MultiEngineOCRProcessor([engine], settings=settings)

        batch = await orchestrator.process_batch(_documents(b"ok-1", b"bad", b"ok-2"))

        assert [r.document_id for r in batch.results] == ["doc-0", "doc-1", "doc-2"]
        assert [r.status for r in batch.results] == [BatchStatus.SUCCESS, BatchStatus.FAILED, BatchStatus.SUCCESS]
        assert "cannot read" in batch.results[1].error
        assert batch.results[1].result is None
        assert batch.summary.failed_documents == 1
        assert batch.summary.total_documents == batch.summary.successful_documents + batch.summary.failed_documents
        assert batch.summary.average_confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_low_confidence_documents(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor([stub_engine_class("tesseract", confidence=0.3)], settings=settings)

        batch = await orchestrator.process_batch(_documents(b"faded"), OCROptions(confidence=0.5))

        item = batch.results[0]
        assert item.status == BatchStatus.LOW_CONFIDENCE
        assert item.result is not None and item.result.confidence == 0.3
        assert batch.summary.low_confidence_documents == 1
        assert batch.summary.successful_documents == 0
        assert batch.summary.average_confidence == 0.0

    @pytest.mark.asyncio
    async def test_empty_batch(self, settings, stub_engine_class):
        orchestrator = MultiEngineOCRProcessor([stub_engine_class("tesseract")], settings=settings)

        batch = await orchestrator.process_batch([])

        assert batch.results == []
        assert batch.summary.total_documents == 0
