"""
Multi-engine OCR orchestrator.

Selects, races or batches OCR engines: best engine with fallback, all
engines in parallel, and chunked batch processing with a concurrency ceiling.
"""

import asyncio
import time
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .config import Settings, get_settings
from .exceptions import AllEnginesFailedError, NoEnginesAvailableError
from .models import (
    BatchDocument,
    BatchItemResult,
    BatchOCRResult,
    BatchStatus,
    BatchSummary,
    EngineRunResult,
    MultiEngineResult,
    OCROptions,
    OCRResult,
)
from .ocr_processors import ENGINE_PREFERENCE, BaseOCRProcessor, create_default_processors

logger = logging.getLogger(__name__)


def _preference_rank(engine: BaseOCRProcessor) -> int:
    # Unknown engines keep their relative order after the known ones.
    try:
        return ENGINE_PREFERENCE.index(engine.name)
    except ValueError:
        return len(ENGINE_PREFERENCE)


class MultiEngineOCRProcessor:
    """
    Coordinates several OCR engines for one document or a batch of documents.

    Engines are probed for availability at the start of every operation, so a
    newly configured credential takes effect without rebuilding the orchestrator.
    """

    def __init__(self,
                 processors: Optional[Sequence[BaseOCRProcessor]] = None,
                 settings: Optional[Settings] = None,
                 batch_concurrency: Optional[int] = None):
        """
        Initialize the orchestrator.

        Args:
            processors: Engines to orchestrate, defaults to Azure, Google Vision and Tesseract
            settings: Runtime settings, defaults to ``get_settings()``
            batch_concurrency: Documents processed at once in ``process_batch``
        """
        self.settings = settings or get_settings()
        self.processors = list(processors) if processors is not None else create_default_processors(self.settings)
        self.batch_concurrency = batch_concurrency or self.settings.batch_concurrency
        if self.batch_concurrency < 1:
            raise ValueError("batch_concurrency must be at least 1")

        logger.info(
            f"OCR orchestrator initialized with engines: {[p.name for p in self.processors]}, "
            f"batch concurrency {self.batch_concurrency}"
        )

    def get_available_engines(self) -> List[BaseOCRProcessor]:
        """Engines whose availability check passes, in preference order."""
        available = []
        for processor in self.processors:
            try:
                if processor.is_available():
                    available.append(processor)
            except Exception as e:
                logger.warning(f"Availability check failed for {processor.name}: {e}")
        return sorted(available, key=_preference_rank)

    def get_engine_status(self) -> Dict[str, bool]:
        """Availability of every configured engine."""
        available = {p.name for p in self.get_available_engines()}
        return {p.name: p.name in available for p in self.processors}

    async def process_with_best_engine(self, image_bytes: bytes, options: Optional[OCROptions] = None) -> OCRResult:
        """
        Run engines in preference order until one is confident enough.

        Args:
            image_bytes: Encoded image
            options: Recognition options; ``options.confidence`` is the acceptance threshold

        Returns:
            The first result whose confidence reaches the threshold

        Raises:
            NoEnginesAvailableError: If no engine is available
            AllEnginesFailedError: If every engine failed or fell below the threshold
        """
        options = options or OCROptions()
        engines = self.get_available_engines()
        if not engines:
            raise NoEnginesAvailableError()

        failures: List[Tuple[str, str]] = []
        last_error: Optional[str] = None
        best_below: Optional[OCRResult] = None

        for engine in engines:
            logger.info(f"Attempting OCR with {engine.name}")
            try:
                result = await engine.process(image_bytes, options)
            except Exception as e:
                last_error = str(e)
                failures.append((engine.name, last_error))
                logger.warning(f"OCR failed with {engine.name}: {e}")
                continue

            if result.confidence >= options.confidence:
                logger.info(
                    f"OCR successful with {engine.name}: confidence {result.confidence:.2f}, "
                    f"{len(result.text)} chars"
                )
                return result

            last_error = (
                f"{engine.name} confidence {result.confidence:.2f} below threshold {options.confidence:.2f}"
            )
            failures.append((engine.name, last_error))
            logger.warning(f"OCR result below confidence threshold with {last_error}")
            if best_below is None or result.confidence > best_below.confidence:
                best_below = result

        raise AllEnginesFailedError(last_error, failures, best_result=best_below)

    async def process_with_multiple_engines(self,
                                            image_bytes: bytes,
                                            options: Optional[OCROptions] = None) -> MultiEngineResult:
        """
        Run every available engine concurrently and keep the most confident result.

        Raises:
            NoEnginesAvailableError: If no engine is available
            AllEnginesFailedError: If every engine raised
        """
        options = options or OCROptions()
        engines = self.get_available_engines()
        if not engines:
            raise NoEnginesAvailableError()

        runs = list(await asyncio.gather(*[self._run_engine(e, image_bytes, options) for e in engines]))
        successful = [run for run in runs if run.succeeded]

        if not successful:
            failures = [(run.engine, run.error or "unknown error") for run in runs]
            raise AllEnginesFailedError(failures[-1][1], failures)

        best = max(successful, key=lambda run: run.result.confidence)
        logger.info(
            f"Multi-engine OCR processing completed: {len(successful)}/{len(runs)} engines succeeded, "
            f"best engine {best.engine} with confidence {best.result.confidence:.2f}"
        )
        return MultiEngineResult(results=runs, best_result=best.result, best_engine=best.engine)

    async def _run_engine(self, engine: BaseOCRProcessor, image_bytes: bytes, options: OCROptions) -> EngineRunResult:
        try:
            result = await engine.process(image_bytes, options)
        except Exception as e:
            logger.warning(f"OCR failed with {engine.name}: {e}")
            return EngineRunResult(engine=engine.name, error=str(e))
        return EngineRunResult(engine=engine.name, result=result)

    async def process_batch(self,
                            documents: Sequence[BatchDocument],
                            options: Optional[OCROptions] = None) -> BatchOCRResult:
        """
        Process documents in chunks of ``batch_concurrency``.

        Documents within a chunk run concurrently; chunks run one after
        another. A failing document is recorded, never raised.

        Args:
            documents: Documents to recognize
            options: Recognition options shared by every document

        Returns:
            Per-document results in input order plus an aggregate summary
        """
        options = options or OCROptions()
        start_time = time.perf_counter()
        results: List[BatchItemResult] = []

        logger.info(f"Starting batch OCR of {len(documents)} documents, {self.batch_concurrency} at a time")

        for offset in range(0, len(documents), self.batch_concurrency):
            chunk = documents[offset:offset + self.batch_concurrency]
            outcomes = await asyncio.gather(
                *[self._process_batch_document(doc, options) for doc in chunk],
                return_exceptions=True,
            )
            for doc, outcome in zip(chunk, outcomes):
                if isinstance(outcome, Exception):
                    logger.error(f"Document {doc.id} failed: {outcome}")
                    outcome = BatchItemResult(document_id=doc.id, status=BatchStatus.FAILED, error=str(outcome))
                results.append(outcome)

        successful = [r for r in results if r.status == BatchStatus.SUCCESS]
        summary = BatchSummary(
            total_documents=len(documents),
            successful_documents=len(successful),
            failed_documents=sum(1 for r in results if r.status == BatchStatus.FAILED),
            low_confidence_documents=sum(1 for r in results if r.status == BatchStatus.LOW_CONFIDENCE),
            average_confidence=(
                sum(r.result.confidence for r in successful) / len(successful) if successful else 0.0
            ),
            total_processing_time=time.perf_counter() - start_time,
        )

        logger.info(
            f"Batch OCR processing completed: {summary.successful_documents} succeeded, "
            f"{summary.low_confidence_documents} low confidence, {summary.failed_documents} failed "
            f"in {summary.total_processing_time:.2f}s"
        )
        return BatchOCRResult(results=results, summary=summary)

    async def _process_batch_document(self, document: BatchDocument, options: OCROptions) -> BatchItemResult:
        start_time = time.perf_counter()
        try:
            result = await self.process_with_best_engine(document.content, options)
        except AllEnginesFailedError as e:
            status = BatchStatus.LOW_CONFIDENCE if e.best_result is not None else BatchStatus.FAILED
            logger.warning(f"Document {document.id} finished with status {status.value}: {e}")
            return BatchItemResult(
                document_id=document.id,
                status=status,
                result=e.best_result,
                error=str(e),
                processing_time=time.perf_counter() - start_time,
            )

        return BatchItemResult(
            document_id=document.id,
            status=BatchStatus.SUCCESS,
            result=result,
            processing_time=time.perf_counter() - start_time,
        )
