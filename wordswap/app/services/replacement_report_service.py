"""
This module provides the ReplacementReportService class, which runs the full report pipeline for one
PDF document: page text extraction, match counting for each search pair, report page layout and
augmentation of a copy of the document with metadata and the report page.

The pipeline is sequential (each stage consumes the whole output of the previous one), while the
per-page match counting inside the matching stage fans out across worker threads. Blocking PyMuPDF
work runs in a worker thread so the caller's event loop stays responsive.

Errors never escape process(): DocumentParseError, DocumentWriteError and any unexpected exception are
converted into the failure variant of ProcessingResult. The pipeline only counts occurrences and records
the intended replacements in the report; it never edits the document's text.
"""

import asyncio
import os
import time
import uuid
from typing import Iterable, List, Optional, Union

from wordswap.app.document_processing.match_counter import MatchCounter
from wordswap.app.document_processing.pattern_compiler import PatternCompiler
from wordswap.app.document_processing.pdf_augmenter import PDFAugmenter
from wordswap.app.document_processing.pdf_extractor import PDFTextExtractor
from wordswap.app.document_processing.report_synthesizer import ReportSynthesizer
from wordswap.app.domain.exceptions import DocumentParseError, DocumentWriteError
from wordswap.app.domain.models import (
    MatchOptions,
    PageText,
    PipelineState,
    ProcessingResult,
    SearchPair,
    SearchPairList,
)
from wordswap.app.utils.constant.constant import DEFAULT_SOURCE_NAME, OUTPUT_FILENAME_SUFFIX
from wordswap.app.utils.logging.logger import log_info, log_error
from wordswap.app.utils.logging.secure_logging import log_sensitive_operation
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler

# Allowed forward transitions of one pipeline run. Extraction and augmentation fail on bad
# documents; matching and synthesis fail only on unexpected faults such as a counting timeout.
_TRANSITIONS = {
    PipelineState.IDLE: {PipelineState.EXTRACTING},
    PipelineState.EXTRACTING: {PipelineState.MATCHING, PipelineState.FAILED},
    PipelineState.MATCHING: {PipelineState.SYNTHESIZING, PipelineState.FAILED},
    PipelineState.SYNTHESIZING: {PipelineState.AUGMENTING, PipelineState.FAILED},
    PipelineState.AUGMENTING: {PipelineState.SUCCEEDED, PipelineState.FAILED},
    PipelineState.SUCCEEDED: set(),
    PipelineState.FAILED: set(),
}


class PipelineRun:
    """
    Tracks the state of a single processing call.

    A run starts in IDLE, moves forward one stage at a time and ends in SUCCEEDED or FAILED.
    Terminal runs cannot be advanced again.
    """

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]
        self.failed_stage: Optional[PipelineState] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (PipelineState.SUCCEEDED, PipelineState.FAILED)

    def advance(self, new_state: PipelineState) -> None:
        """
        Move to new_state.

        Raises:
            RuntimeError: If the transition is not allowed from the current state.
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid pipeline transition {self.state.value} -> {new_state.value}")
        if new_state == PipelineState.FAILED:
            self.failed_stage = self.state
        self.state = new_state
        self.history.append(new_state)
        log_info(f"[PIPELINE] {self.operation_id}: {new_state.value}")


class ReplacementReportService:
    """
    ReplacementReportService runs the report pipeline for a single document.

    The service is stateless between calls; identical inputs submitted twice are processed twice.
    """

    @staticmethod
    def suggest_output_filename(source_name: Optional[str]) -> str:
        """
        Derive the download name of the processed document.

        The original base name gets an "_updated" suffix and keeps its extension, if any.
        """
        base_name = os.path.basename(source_name or DEFAULT_SOURCE_NAME)
        stem, extension = os.path.splitext(base_name)
        return f"{stem}{OUTPUT_FILENAME_SUFFIX}{extension}"

    @staticmethod
    def _extract(pdf_bytes: bytes, operation_id: str) -> List[PageText]:
        """Open the document and extract all pages, closing the document on every path."""
        extractor = PDFTextExtractor(pdf_bytes, operation_id=operation_id)
        try:
            return extractor.extract_pages()
        finally:
            extractor.close()

    @staticmethod
    def _augment(pdf_bytes: bytes, report_page, total_matches: int, source_name: str,
                 operation_id: str) -> bytes:
        augmenter = PDFAugmenter(pdf_bytes, operation_id=operation_id)
        try:
            return augmenter.augment(report_page, total_matches, source_name)
        finally:
            augmenter.close()

    async def process(
        self,
        pdf_bytes: bytes,
        source_name: Optional[str],
        pairs: Union[SearchPairList, Iterable[SearchPair]],
        options: Optional[MatchOptions] = None,
        max_workers: Optional[int] = None,
    ) -> ProcessingResult:
        """
        Run the pipeline for one document.

        Steps:
          1. Extract the text of every page.
          2. Compile the non-empty search pairs and count their matches on every page.
          3. Lay out the report page.
          4. Write metadata and the report page into a copy of the document.

        Args:
            pdf_bytes: The source document.
            source_name: Display name of the source document, used in the report and the file name.
            pairs: Ordered search pairs. Pairs with an empty find text are skipped.
            options: Matching flags shared by all pairs. Defaults to case-insensitive substring matching.
            max_workers: Upper bound on concurrent page-counting workers.

        Returns:
            A ProcessingResult. The call never raises for document or pipeline errors.
        """
        start_time = time.time()
        operation_id = f"wordswap_{uuid.uuid4().hex[:12]}"
        run = PipelineRun(operation_id)
        options = options or MatchOptions()
        source_name = source_name or DEFAULT_SOURCE_NAME
        pair_list = pairs.to_list() if isinstance(pairs, SearchPairList) else list(pairs)

        log_info(f"[OK] Starting report pipeline (operation_id: {operation_id}, pairs: {len(pair_list)})")

        try:
            # Extraction
            run.advance(PipelineState.EXTRACTING)
            pages = await asyncio.to_thread(self._extract, pdf_bytes, operation_id)

            # Matching
            run.advance(PipelineState.MATCHING)
            matchers = PatternCompiler.compile_pairs(pair_list, options)
            tally, report_lines = await MatchCounter.count_parallel(
                pages, matchers, max_workers=max_workers, operation_id=operation_id
            )

            # Synthesis
            run.advance(PipelineState.SYNTHESIZING)
            report_page = ReportSynthesizer.synthesize(source_name, tally.total, report_lines)

            # Augmentation
            run.advance(PipelineState.AUGMENTING)
            output = await asyncio.to_thread(
                self._augment, pdf_bytes, report_page, tally.total, source_name, operation_id
            )

            run.advance(PipelineState.SUCCEEDED)
        except (DocumentParseError, DocumentWriteError) as e:
            return self._fail(run, e.message, start_time)
        except Exception as e:
            # Unexpected faults still end in a failure result.
            error_info = SecurityAwareErrorHandler.handle_safe_error(
                e, "replacement_report", resource_id=operation_id
            )
            return self._fail(run, error_info["error"], start_time)

        log_sensitive_operation(
            "Replacement Report",
            tally.total,
            time.time() - start_time,
            pages=len(pages),
            pairs=len(report_lines),
            operation_id=operation_id,
        )
        return ProcessingResult.succeeded(
            output=output,
            file_name=self.suggest_output_filename(source_name),
            total_matches=tally.total,
            report_lines=report_lines,
        )

    @staticmethod
    def _fail(run: PipelineRun, message: str, start_time: float) -> ProcessingResult:
        if not run.is_terminal:
            run.advance(PipelineState.FAILED)
        log_error(
            f"[ERROR] Report pipeline failed at stage '{run.failed_stage.value if run.failed_stage else 'unknown'}' "
            f"after {time.time() - start_time:.2f}s (operation_id: {run.operation_id})"
        )
        return ProcessingResult.failed(message, failed_stage=run.failed_stage)
