"""
Match counting over extracted page text.

MatchCounter applies every compiled matcher to every page and reduces the per-page tallies by
addition. Because MatchTally addition is associative and commutative, pages can be counted in
any order (or concurrently) without changing the totals.
"""

import asyncio
import time
from typing import List, Optional, Tuple

from wordswap.app.configs.config_singleton import get_config
from wordswap.app.document_processing.pattern_compiler import CompiledMatcher
from wordswap.app.domain.models import MatchTally, PageText, ReportLine
from wordswap.app.utils.logging.secure_logging import log_sensitive_operation
from wordswap.app.utils.parallel.core import ParallelProcessingCore


class MatchCounter:
    """
    Counts literal matches per search pair across a document's pages.

    The counter holds no state between calls.
    """

    @staticmethod
    def count_page(page: PageText, matchers: List[CompiledMatcher]) -> MatchTally:
        """
        Count every matcher against a single page.

        Args:
            page: Extracted page text.
            matchers: Compiled matchers in pair order.

        Returns:
            A tally keyed by matcher position.
        """
        text = page.text
        return MatchTally(counts={index: matcher.count(text) for index, matcher in enumerate(matchers)})

    @staticmethod
    def build_report_lines(tally: MatchTally, matchers: List[CompiledMatcher]) -> List[ReportLine]:
        """Build one report line per matcher, in pair order."""
        return [
            ReportLine(
                pair_id=matcher.pair.id,
                find_text=matcher.pair.find_text,
                replace_text=matcher.pair.replace_text,
                count=tally.count_for(index),
            )
            for index, matcher in enumerate(matchers)
        ]

    @classmethod
    def _finish(cls, tally: MatchTally, matchers: List[CompiledMatcher], page_count: int,
                start_time: float) -> Tuple[MatchTally, List[ReportLine]]:
        report_lines = cls.build_report_lines(tally, matchers)
        log_sensitive_operation(
            "Match Counting",
            tally.total,
            time.time() - start_time,
            pages=page_count,
            pairs=len(matchers),
        )
        return tally, report_lines

    @classmethod
    def count(cls, pages: List[PageText], matchers: List[CompiledMatcher]) -> Tuple[MatchTally, List[ReportLine]]:
        """
        Count all matchers over all pages sequentially.

        Returns:
            The merged tally and the ordered report lines.
        """
        start_time = time.time()
        tally = MatchTally.empty()
        if matchers:
            for page in pages:
                tally = tally + cls.count_page(page, matchers)
        return cls._finish(tally, matchers, len(pages), start_time)

    @classmethod
    async def count_parallel(
        cls,
        pages: List[PageText],
        matchers: List[CompiledMatcher],
        max_workers: Optional[int] = None,
        operation_id: Optional[str] = None,
    ) -> Tuple[MatchTally, List[ReportLine]]:
        """
        Count all matchers over all pages, one worker task per page.

        Each page is counted in a worker thread and the per-page tallies are merged by addition,
        so the result equals that of count().

        Args:
            pages: Extracted pages.
            matchers: Compiled matchers in pair order.
            max_workers: Upper bound on concurrent page workers. Defaults to the configured value.
            operation_id: Identifier used in log lines.

        Returns:
            The merged tally and the ordered report lines.
        """
        start_time = time.time()
        if not matchers or not pages:
            return cls._finish(MatchTally.empty(), matchers, len(pages), start_time)

        async def count_one(page: PageText) -> MatchTally:
            return await asyncio.to_thread(cls.count_page, page, matchers)

        results = await ParallelProcessingCore.process_in_parallel(
            pages,
            count_one,
            max_workers=max_workers or get_config("match_max_workers", 4),
            operation_id=operation_id,
        )

        tally = MatchTally.empty()
        for _, page_tally in results:
            tally = tally + page_tally
        return cls._finish(tally, matchers, len(pages), start_time)
