from contextlib import nullcontext
from unittest.mock import patch, MagicMock

import pymupdf
import pytest

from wordswap.app.document_processing.pdf_augmenter import PDFAugmenter
from wordswap.app.document_processing.report_synthesizer import ReportSynthesizer
from wordswap.app.domain.exceptions import DocumentWriteError
from wordswap.app.domain.models import ReportLine


@pytest.fixture
def source_pdf_bytes():
    """Generate a 2-page PDF with existing metadata."""
    doc = pymupdf.open()
    doc.set_metadata({"title": "Original", "author": "Someone", "keywords": "alpha, beta"})
    for text in ["The cat sat on the mat", "concatenate this"]:
        page = doc.new_page()
        page.insert_text((72, 100), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def report_page():
    report_lines = [ReportLine(pair_id="1", find_text="cat", replace_text="dog", count=1)]
    return ReportSynthesizer.synthesize("source.pdf", 1, report_lines, tool_name="WordSwap")


def open_pdf(data):
    return pymupdf.open(stream=data, filetype="pdf")


class TestPDFAugmenter:

    # Test a single page is appended
    def test_page_count_plus_one(self, source_pdf_bytes, report_page):
        output = PDFAugmenter(source_pdf_bytes).augment(report_page, 1, "source.pdf")

        with open_pdf(output) as doc:
            assert doc.page_count == 3

    # Test original page text is unchanged
    def test_original_pages_untouched(self, source_pdf_bytes, report_page):
        output = PDFAugmenter(source_pdf_bytes).augment(report_page, 1, "source.pdf")

        with open_pdf(source_pdf_bytes) as original, open_pdf(output) as processed:
            for index in range(original.page_count):
                assert processed[index].get_text() == original[index].get_text()

    # Test the report page is last and carries the summary
    def test_report_page_content(self, source_pdf_bytes, report_page):
        output = PDFAugmenter(source_pdf_bytes).augment(report_page, 1, "source.pdf")

        with open_pdf(output) as doc:
            text = doc[-1].get_text()

        assert "WordSwap Processing Report" in text
        assert "Source: source.pdf" in text
        assert "Total Matches: 1" in text
        assert "cat -> dog: 1 occurrences" in text

    # Test title, subject and author metadata
    def test_metadata(self, source_pdf_bytes, report_page):
        output = PDFAugmenter(source_pdf_bytes).augment(report_page, 4, "source.pdf")

        with open_pdf(output) as doc:
            metadata = doc.metadata

        assert metadata["title"] == "WordSwap: source.pdf"
        assert metadata["subject"] == "Processed by WordSwap. Found 4 matches."
        assert metadata["author"] == "WordSwap Professional"
        assert metadata["keywords"] == "alpha, beta"

    # Test the caller's buffer is not modified
    def test_source_bytes_unchanged(self, source_pdf_bytes, report_page):
        snapshot = bytes(source_pdf_bytes)

        PDFAugmenter(source_pdf_bytes).augment(report_page, 1, "source.pdf")

        assert source_pdf_bytes == snapshot

    # Test overflowing report lines are still written
    def test_overflowing_report(self, source_pdf_bytes):
        report_lines = [
            ReportLine(pair_id=str(i), find_text=f"w{i}", replace_text="x", count=0) for i in range(80)
        ]
        page = ReportSynthesizer.synthesize("source.pdf", 0, report_lines)

        output = PDFAugmenter(source_pdf_bytes).augment(page, 0, "source.pdf")

        with open_pdf(output) as doc:
            assert doc.page_count == 3

    # Test build_metadata drops keys set_metadata does not accept
    def test_build_metadata_filters_keys(self):
        metadata = PDFAugmenter.build_metadata(
            {"format": "PDF 1.7", "encryption": None, "creator": "Writer", "producer": None},
            "a.pdf", 2, tool_name="Tool", author="Someone",
        )

        assert metadata == {
            "creator": "Writer",
            "title": "Tool: a.pdf",
            "subject": "Processed by Tool. Found 2 matches.",
            "author": "Someone",
        }

    # Test unreadable input becomes a write error
    def test_corrupted_input(self, report_page):
        with pytest.raises(DocumentWriteError):
            PDFAugmenter(b"corrupted data").augment(report_page, 0, "broken.pdf")

    # Test serialization failure becomes a write error and closes the document
    def test_save_failure(self, source_pdf_bytes, report_page):
        augmenter = PDFAugmenter(source_pdf_bytes, operation_id="op-save")

        with patch.object(pymupdf.Document, "save", side_effect=RuntimeError("disk full")):
            with pytest.raises(DocumentWriteError) as exc_info:
                augmenter.augment(report_page, 1, "source.pdf")

        assert exc_info.value.operation_id == "op-save"
        assert augmenter.doc is None

    # Test lock timeout becomes a write error
    def test_lock_timeout(self, source_pdf_bytes, report_page):
        busy_lock = MagicMock()
        busy_lock.acquire_timeout.return_value = nullcontext(False)

        with patch("wordswap.app.document_processing.pdf_augmenter.pdf_engine_lock", busy_lock):
            with pytest.raises(DocumentWriteError) as exc_info:
                PDFAugmenter(source_pdf_bytes).augment(report_page, 1, "source.pdf")

        assert "Timed out" in str(exc_info.value)

    # Test non-Latin pairs and source names are drawn legibly on the report page
    def test_non_latin_report_text(self, source_pdf_bytes):
        report_lines = [ReportLine(pair_id="1", find_text="日本", replace_text="Ω", count=0)]
        page = ReportSynthesizer.synthesize("日本.pdf", 0, report_lines, tool_name="WordSwap")

        output = PDFAugmenter(source_pdf_bytes).augment(page, 0, "日本.pdf")

        with open_pdf(output) as doc:
            text = doc[-1].get_text()

        assert "Source: 日本.pdf" in text
        assert "日本 -> Ω: 0 occurrences" in text
        assert "WordSwap Processing Report" in text
