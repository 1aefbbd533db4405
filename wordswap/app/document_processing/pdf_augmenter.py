"""
PDF Augmentation Module

This module produces the processed copy of a source PDF. The copy keeps every original page
untouched, carries descriptive metadata naming the tool, the source and the match total, and
ends with one appended report page drawn from a ReportPage layout.

The source bytes are never modified in place: the document is opened from an in-memory copy and
serialized to a new buffer. All PyMuPDF calls run while holding the shared engine lock.
"""

import io
import time
from typing import Dict, Optional

import pymupdf

from wordswap.app.configs.config_singleton import get_config
from wordswap.app.domain.exceptions import DocumentWriteError
from wordswap.app.domain.interfaces import DocumentAugmenter
from wordswap.app.domain.models import ReportPage
from wordswap.app.utils.constant.constant import (
    EDITABLE_METADATA_KEYS,
    REPORT_FONT_UNICODE,
    REPORT_UNICODE_FONT_SOURCE,
)
from wordswap.app.utils.logging.logger import log_info
from wordswap.app.utils.logging.secure_logging import log_sensitive_operation
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from wordswap.app.utils.system_utils.synchronization_utils import pdf_engine_lock


class PDFAugmenter(DocumentAugmenter):
    """
    PDFAugmenter writes the metadata and report page into a copy of a PDF document.

    One instance serves one processing call. The document is opened lazily by augment() and
    closed on every exit path.
    """

    def __init__(self, pdf_bytes: bytes, operation_id: Optional[str] = None):
        """
        Initialize the augmenter with the source document.

        Args:
            pdf_bytes: The original PDF content. A private copy is kept.
            operation_id: Identifier used in log lines for this call.
        """
        # Keep a private copy so the caller's buffer is never touched.
        self._source = bytes(pdf_bytes)
        # Store the operation identifier for logging.
        self.operation_id = operation_id or "memory_document"
        # No document is open until augment() runs.
        self.doc = None

    @staticmethod
    def build_metadata(existing: Dict[str, Optional[str]], source_name: str, total_matches: int,
                       tool_name: Optional[str] = None, author: Optional[str] = None) -> Dict[str, str]:
        """
        Build the metadata dictionary written to the processed document.

        Existing editable fields are carried over; title, subject and author are replaced.

        Args:
            existing: The document's current metadata as reported by PyMuPDF.
            source_name: Display name of the source document.
            total_matches: Grand total of matches.
            tool_name: Tool name used in title and subject. Defaults to the configured name.
            author: Author field value. Defaults to the configured report author.

        Returns:
            A dictionary accepted by Document.set_metadata.
        """
        # Resolve branding from configuration where not given explicitly.
        tool_name = tool_name or get_config("tool_name", "WordSwap")
        author = author or get_config("report_author", "WordSwap Professional")

        # Keep only keys that set_metadata accepts, dropping empty values.
        metadata = {
            key: value for key, value in (existing or {}).items()
            if key in EDITABLE_METADATA_KEYS and value is not None
        }
        # Replace the descriptive fields.
        metadata["title"] = f"{tool_name}: {source_name}"
        metadata["subject"] = f"Processed by {tool_name}. Found {total_matches} matches."
        metadata["author"] = author
        return metadata

    def _open(self) -> pymupdf.Document:
        """Open the source bytes as a PyMuPDF document."""
        return pymupdf.open(stream=io.BytesIO(self._source), filetype="pdf")

    @staticmethod
    def _draw_report_page(doc: pymupdf.Document, report_page: ReportPage) -> None:
        """
        Append a new last page and draw every text instruction on it.

        Instructions positioned past the page bottom are still written to the content stream.
        """
        # Create the page at the end of the document.
        page = doc.new_page(-1, width=report_page.width, height=report_page.height)
        # Embed the Unicode font once if any run needs it.
        if any(instruction.font_name == REPORT_FONT_UNICODE for instruction in report_page.instructions):
            page.insert_font(
                fontname=REPORT_FONT_UNICODE,
                fontbuffer=pymupdf.Font(REPORT_UNICODE_FONT_SOURCE).buffer,
            )
        # Draw the text runs in layout order.
        for instruction in report_page.instructions:
            page.insert_text(
                (instruction.x, instruction.y),
                instruction.text,
                fontname=instruction.font_name,
                fontsize=instruction.font_size,
                color=instruction.color,
            )

    def augment(self, report_page: ReportPage, total_matches: int, source_name: str) -> bytes:
        """
        Set metadata, append the report page and serialize the document.

        Args:
            report_page: Layout of the page to append.
            total_matches: Grand total recorded in the subject field.
            source_name: Display name of the source document.

        Returns:
            The serialized processed PDF.

        Raises:
            DocumentWriteError: If the document cannot be opened, modified or serialized.
        """
        # Start timing for the audit log.
        start_time = time.time()

        # Serialize access to the PDF engine.
        with pdf_engine_lock.acquire_timeout() as acquired:
            if not acquired:
                raise DocumentWriteError("Timed out waiting for the PDF engine", self.operation_id)
            try:
                # Open a fresh document from the private copy.
                self.doc = self._open()
                original_page_count = self.doc.page_count
                if original_page_count < 1 or self.doc.needs_pass:
                    raise DocumentWriteError("Unable to write the processed PDF: the source is not a readable PDF",
                                             self.operation_id)

                # Write title, subject and author.
                self.doc.set_metadata(
                    self.build_metadata(self.doc.metadata, source_name, total_matches)
                )
                # Append the report page.
                self._draw_report_page(self.doc, report_page)

                # Serialize into a new buffer.
                buffer = io.BytesIO()
                self.doc.save(buffer)
                output = buffer.getvalue()
            except DocumentWriteError:
                raise
            except Exception as e:
                # Record the failure without leaking document content.
                SecurityAwareErrorHandler.log_processing_error(e, "pdf_augmentation", self.operation_id)
                raise DocumentWriteError(f"Unable to write the processed PDF: {e}", self.operation_id) from e
            finally:
                # Release the document on every exit path.
                self._close_document()

        log_info(f"[OK] Appended report page after {original_page_count} page(s) (operation_id: {self.operation_id})")
        log_sensitive_operation(
            "PDF Augmentation",
            total_matches,
            time.time() - start_time,
            original_pages=original_page_count,
            output_size=len(output),
            operation_id=self.operation_id,
        )
        return output

    def _close_document(self) -> None:
        if self.doc is not None:
            self.doc.close()
            self.doc = None

    def close(self) -> None:
        """
        Close the document if it is still open.
        """
        with pdf_engine_lock.acquire_timeout():
            self._close_document()
