"""
Exception hierarchy for the document intelligence pipeline.

Only the OCR layer raises these. Enhancement, classification and quality
assessment degrade to low scores instead of failing.
"""

from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .models import OCRResult


class DocIntelError(Exception):
    """Base class for all pipeline errors."""


class OCREngineError(DocIntelError):
    """A single OCR engine failed to produce a result."""

    def __init__(self, engine_name: str, message: str):
        super().__init__(f"[{engine_name}] {message}")
        self.engine_name = engine_name
        self.message = message


class EngineNotAvailableError(OCREngineError):
    """An engine was asked to process while unconfigured or unreachable."""

    def __init__(self, engine_name: str):
        super().__init__(engine_name, "engine is not available")


class PollingTimeoutError(OCREngineError):
    """An asynchronous provider operation did not finish within the poll budget."""

    def __init__(self, engine_name: str, attempts: int):
        super().__init__(engine_name, f"operation did not complete after {attempts} polls")
        self.attempts = attempts


class AllEnginesFailedError(DocIntelError, RuntimeError):
    """
    Terminal orchestration failure.

    Raised when every candidate engine either errored or produced a result
    below the requested confidence threshold. In the latter case
    ``best_result`` holds the most confident below-threshold result.
    """

    def __init__(self,
                 last_error: Optional[str],
                 failures: Optional[List[Tuple[str, str]]] = None,
                 best_result: Optional["OCRResult"] = None):
        self.last_error = last_error
        self.failures = failures or []
        self.best_result = best_result
        super().__init__(f"All OCR engines failed. Last error: {last_error or 'unknown'}")


class NoEnginesAvailableError(AllEnginesFailedError):
    """No engine passed its availability check."""

    def __init__(self):
        super().__init__("No OCR engines are available")
