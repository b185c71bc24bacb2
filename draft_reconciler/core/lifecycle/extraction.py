"""
Extraction oracle port and a callable-backed adapter.
"""

from typing import Any, Callable, Protocol

from pydantic import ValidationError as PydanticValidationError

from ..errors import OracleFailure
from ..models import ExtractionResult


class ExtractionOracle(Protocol):
    """Opaque text extractor: raw booking text in, first-pass guess out."""

    def extract(self, raw_text: str) -> ExtractionResult:
        """
        Raises:
            OracleFailure: When the extraction call fails or times out
        """
        ...


class CallableExtractor:
    """
    Adapts a plain callable into an ExtractionOracle.

    The callable may return an ExtractionResult, or a mapping shaped like
    one ({"fields": {...}, "confidence": 0.8, "notes": "..."}), or a bare
    field mapping. Any exception it raises, and any output that cannot be
    read as an ExtractionResult, becomes OracleFailure.
    """

    def __init__(self, func: Callable[[str], Any], name: str = "extractor"):
        self.func = func
        self.name = name

    def extract(self, raw_text: str) -> ExtractionResult:
        try:
            output = self.func(raw_text)
        except Exception as e:
            raise OracleFailure(f"{self.name} failed", cause=e) from e

        if isinstance(output, ExtractionResult):
            return output
        if not isinstance(output, dict):
            raise OracleFailure(f"{self.name} returned {type(output).__name__}, expected a mapping")

        payload = output if "fields" in output else {"fields": output}
        try:
            return ExtractionResult(**payload)
        except PydanticValidationError as e:
            raise OracleFailure(f"{self.name} returned an unreadable result", cause=e) from e
