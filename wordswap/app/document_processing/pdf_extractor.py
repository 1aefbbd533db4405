"""
PDF Page Text Extraction Module

This module turns raw PDF bytes into the ordered per-page text consumed by the match counter.
It supports:
- Flexible input (raw bytes, file-like objects or file paths)
- One PageText per page, numbered 1..N, empty pages included so numbering has no gaps
- Serialized engine access through the process-wide PyMuPDF lock
- Conversion of every open or read failure into DocumentParseError

Text fragments are PyMuPDF text lines in the engine's own order. That order is not guaranteed to
match the visual reading order for multi-column or overlapping layouts.
"""

import io
import os
import time
from typing import List, Union, BinaryIO, Optional

import pymupdf

from wordswap.app.domain.exceptions import DocumentParseError
from wordswap.app.domain.interfaces import DocumentExtractor
from wordswap.app.domain.models import PageText
from wordswap.app.utils.logging.logger import log_info, log_warning
from wordswap.app.utils.logging.secure_logging import log_sensitive_operation
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from wordswap.app.utils.system_utils.synchronization_utils import pdf_engine_lock


class PDFTextExtractor(DocumentExtractor):
    """
    PDFTextExtractor reads the text of every page of a PDF document.

    The document is opened in the constructor and must be released with close(). All PyMuPDF
    calls run while holding the shared engine lock.
    """

    def __init__(self, pdf_input: Union[bytes, BinaryIO, str], operation_id: Optional[str] = None):
        """
        Open a PDF document for extraction.

        Args:
            pdf_input: PDF input which can be:
                - PDF content as bytes
                - A file-like object with PDF content
                - A file path to a PDF (str)
            operation_id: Identifier used in log lines for this call.

        Raises:
            DocumentParseError: If the input is not a readable PDF or requires a password.
        """
        self.operation_id = operation_id or "memory_document"
        self.file_path = None
        self.pdf_document = None

        with pdf_engine_lock.acquire_timeout() as acquired:
            if not acquired:
                raise DocumentParseError("Timed out waiting for the PDF engine", self.operation_id)
            try:
                self.pdf_document = self._open(pdf_input)
            except DocumentParseError:
                raise
            except Exception as e:
                SecurityAwareErrorHandler.log_processing_error(e, "pdf_extractor_open", self.file_path or "")
                raise DocumentParseError(f"Unable to read PDF document: {e}", self.operation_id) from e

            try:
                self._check_readable()
            except DocumentParseError:
                self._close_document()
                raise

    def _open(self, pdf_input: Union[bytes, BinaryIO, str]) -> pymupdf.Document:
        """Open the PDF from whichever input form was supplied."""
        if isinstance(pdf_input, (bytes, bytearray)):
            if not pdf_input:
                raise DocumentParseError("Unable to read PDF document: the file is empty", self.operation_id)
            self.file_path = "memory_buffer"
            return pymupdf.open(stream=io.BytesIO(bytes(pdf_input)), filetype="pdf")
        if isinstance(pdf_input, str):
            self.file_path = pdf_input
            return pymupdf.open(pdf_input, filetype="pdf")
        if hasattr(pdf_input, "read") and callable(pdf_input.read):
            self.file_path = getattr(pdf_input, "name", "file_object")
            return pymupdf.open(stream=pdf_input.read(), filetype="pdf")
        raise DocumentParseError(
            "Invalid input! Expected PDF bytes, a file-like object or a file path.", self.operation_id
        )

    def _check_readable(self) -> None:
        """Reject documents that need a password or have no pages."""
        if self.pdf_document.needs_pass:
            raise DocumentParseError(
                "Unable to read PDF document: the file is password protected", self.operation_id
            )
        if self.pdf_document.page_count < 1:
            raise DocumentParseError("Unable to read PDF document: the file has no pages", self.operation_id)

    @property
    def page_count(self) -> int:
        return self.pdf_document.page_count if self.pdf_document is not None else 0

    def extract_pages(self) -> List[PageText]:
        """
        Extract the text fragments of every page in document order.

        Returns:
            One PageText per page, numbered from 1.

        Raises:
            DocumentParseError: If the engine lock cannot be acquired or a page cannot be read.
        """
        if self.pdf_document is None:
            raise DocumentParseError("Unable to read PDF document: the document is closed", self.operation_id)

        start_time = time.time()
        pages: List[PageText] = []
        empty_pages: List[int] = []

        with pdf_engine_lock.acquire_timeout() as acquired:
            if not acquired:
                raise DocumentParseError("Timed out waiting for the PDF engine", self.operation_id)

            log_info(f"[OK] Processing PDF extraction (operation_id: {self.operation_id})")
            for page_index in range(self.pdf_document.page_count):
                try:
                    fragments = self._extract_page_fragments(self.pdf_document[page_index])
                except Exception as e:
                    SecurityAwareErrorHandler.log_processing_error(
                        e, "pdf_page_text_extraction", f"page_{page_index + 1}"
                    )
                    raise DocumentParseError(
                        f"Unable to read text of page {page_index + 1}: {e}", self.operation_id
                    ) from e
                if not fragments:
                    empty_pages.append(page_index + 1)
                pages.append(PageText(page_number=page_index + 1, fragments=fragments))

        if empty_pages:
            log_warning(f"[WARNING] {len(empty_pages)} page(s) without extractable text: {empty_pages}")

        log_sensitive_operation(
            "PDF Text Extraction",
            0,
            time.time() - start_time,
            total_pages=len(pages),
            empty_pages=len(empty_pages),
            operation_id=self.operation_id,
        )
        return pages

    @staticmethod
    def _extract_page_fragments(page: pymupdf.Page) -> List[str]:
        """
        Extract the text lines of a page in the engine's order.

        The spans of each line are concatenated as-is, so whitespace inside a line (repeated
        spaces, tabs) is preserved. Lines holding only whitespace are skipped.

        Args:
            page: A PyMuPDF Page object.

        Returns:
            One fragment per non-blank text line.
        """
        fragments = []
        page_dict = page.get_text("dict", flags=pymupdf.TEXTFLAGS_TEXT)
        for block in page_dict.get("blocks", []):
            # Image blocks carry no lines.
            for line in block.get("lines", []):
                text = "".join(span.get("text", "") for span in line.get("spans", []))
                if text.strip():
                    fragments.append(text)
        return fragments

    def _close_document(self) -> None:
        if self.pdf_document is not None:
            self.pdf_document.close()
            self.pdf_document = None

    def close(self) -> None:
        """
        Close the PDF document and release associated resources.
        """
        try:
            with pdf_engine_lock.acquire_timeout():
                self._close_document()
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(
                e, "pdf_document_close", os.path.basename(self.file_path or "")
            )
