"""
Domain package for the report pipeline.

This package defines the data model, error kinds and engine interfaces
shared by the document processing stages and the service layer.
"""

from wordswap.app.domain.exceptions import (
    WordSwapError,
    DocumentParseError,
    DocumentWriteError,
)
from wordswap.app.domain.interfaces import DocumentExtractor, DocumentAugmenter
from wordswap.app.domain.models import (
    SearchPair,
    SearchPairList,
    MatchOptions,
    PageText,
    MatchTally,
    ReportLine,
    TextInstruction,
    ReportPage,
    PipelineState,
    ProcessingResult,
)

# Export classes
__all__ = [
    "WordSwapError",
    "DocumentParseError",
    "DocumentWriteError",
    "DocumentExtractor",
    "DocumentAugmenter",
    "SearchPair",
    "SearchPairList",
    "MatchOptions",
    "PageText",
    "MatchTally",
    "ReportLine",
    "TextInstruction",
    "ReportPage",
    "PipelineState",
    "ProcessingResult",
]
