"""
Core domain interfaces for the report pipeline.

The pipeline depends on two engine capabilities: reading per-page text out of a document and
writing an augmented copy of it. Concrete implementations live in document_processing.
"""
from abc import ABC, abstractmethod
from typing import List

from wordswap.app.domain.models import PageText, ReportPage


class DocumentExtractor(ABC):
    """Interface for extracting per-page text from a document."""

    @abstractmethod
    def extract_pages(self) -> List[PageText]:
        """
        Extract the text of every page.

        Returns:
            One PageText per page, numbered 1..N with no gaps.

        Raises:
            DocumentParseError: If the document cannot be read.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the document and free resources."""
        pass


class DocumentAugmenter(ABC):
    """Interface for producing an augmented copy of a document."""

    @abstractmethod
    def augment(self, report_page: ReportPage, total_matches: int, source_name: str) -> bytes:
        """
        Set descriptive metadata, append the report page and serialize the document.

        Args:
            report_page: Layout of the page to append.
            total_matches: Grand total recorded in the metadata subject.
            source_name: Display name of the source document.

        Returns:
            The serialized document.

        Raises:
            DocumentWriteError: If the document cannot be written.
        """
        pass

    def close(self) -> None:
        """Close the document and free resources."""
        pass
