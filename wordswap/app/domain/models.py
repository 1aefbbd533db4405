"""
Models for the WordSwap report pipeline.

This module defines the Pydantic models that flow through the pipeline, from the caller's
search pairs down to the final processing result, plus the ordered pair collection used by
callers to build the pair list.

Classes:
    SearchPair: One find/replace specification with a stable identifier.
    SearchPairList: Ordered collection of search pairs keyed by id.
    MatchOptions: Case-sensitivity and whole-word flags applied to every pair.
    PageText: Extracted text of one page.
    MatchTally: Per-matcher counts; merged by addition.
    ReportLine: One report line per counted pair.
    TextInstruction: One positioned text run on the report page.
    ReportPage: Layout of the appended report page.
    PipelineState: Stages of one processing call.
    ProcessingResult: Value returned to the caller.
"""

import uuid
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class SearchPair(BaseModel):
    """
    A single find/replace specification.

    Attributes:
        id (str): Opaque caller-assigned identifier, unique within one pair list.
        find_text (str): Text to look for. Empty means the pair is skipped.
        replace_text (str): Intended replacement. Only recorded in the report, never applied.
    """
    id: str
    find_text: str = ""
    replace_text: str = ""

    class Config:
        frozen = True


class SearchPairList:
    """
    Ordered collection of search pairs keyed by opaque ids.

    Pairs keep their insertion order, which is also the order of the report lines. The list
    always holds at least one pair, mirroring the form the pairs are edited in.
    """

    def __init__(self, pairs: Optional[List[SearchPair]] = None):
        self._pairs: List[SearchPair] = list(pairs or [])

    @classmethod
    def default(cls) -> "SearchPairList":
        """Return the initial state: a single empty pair with id "1"."""
        return cls([SearchPair(id="1")])

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex[:9]

    def add(self, find_text: str = "", replace_text: str = "") -> SearchPair:
        """Append a pair with a fresh id and return it."""
        pair = SearchPair(id=self._new_id(), find_text=find_text, replace_text=replace_text)
        self._pairs.append(pair)
        return pair

    def remove(self, pair_id: str) -> bool:
        """
        Remove a pair by id.

        Returns:
            bool: False if the id is unknown or the pair is the last one left.
        """
        if len(self._pairs) <= 1:
            return False
        for index, pair in enumerate(self._pairs):
            if pair.id == pair_id:
                del self._pairs[index]
                return True
        return False

    def update(self, pair_id: str, find_text: Optional[str] = None,
               replace_text: Optional[str] = None) -> SearchPair:
        """
        Replace the pair with the given id by an updated copy, keeping its position.

        Raises:
            KeyError: If no pair has the given id.
        """
        for index, pair in enumerate(self._pairs):
            if pair.id == pair_id:
                changes = {}
                if find_text is not None:
                    changes["find_text"] = find_text
                if replace_text is not None:
                    changes["replace_text"] = replace_text
                updated = pair.model_copy(update=changes)
                self._pairs[index] = updated
                return updated
        raise KeyError(pair_id)

    def get(self, pair_id: str) -> Optional[SearchPair]:
        return next((pair for pair in self._pairs if pair.id == pair_id), None)

    def has_search_text(self) -> bool:
        """True when at least one pair has a non-empty find text."""
        return any(pair.find_text for pair in self._pairs)

    def to_list(self) -> List[SearchPair]:
        return list(self._pairs)

    def __iter__(self) -> Iterator[SearchPair]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)


class MatchOptions(BaseModel):
    """
    Matching flags applied uniformly to all pairs of one call.

    Attributes:
        case_sensitive (bool): Exact letter case when True; case-insensitive otherwise.
        whole_word (bool): Require word boundaries on both sides of a match.
    """
    case_sensitive: bool = False
    whole_word: bool = False


class PageText(BaseModel):
    """
    Text of one page in extraction order.

    Attributes:
        page_number (int): 1-based page index.
        fragments (List[str]): Text fragments as reported by the extraction engine.
    """
    page_number: int = Field(ge=1)
    fragments: List[str] = Field(default_factory=list)

    @property
    def text(self) -> str:
        # Fragments are joined with single spaces.
        return " ".join(self.fragments)


class MatchTally(BaseModel):
    """
    Match counts keyed by matcher position.

    Tallies form a commutative monoid under ``+`` with the empty tally as identity, so
    per-page tallies can be merged in any order.
    """
    counts: Dict[int, int] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> "MatchTally":
        return cls()

    def count_for(self, index: int) -> int:
        return self.counts.get(index, 0)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def __add__(self, other: "MatchTally") -> "MatchTally":
        merged = dict(self.counts)
        for index, count in other.counts.items():
            merged[index] = merged.get(index, 0) + count
        return MatchTally(counts=merged)


class ReportLine(BaseModel):
    """
    Summary of one counted pair.

    Attributes:
        pair_id (str): Id of the pair the line reports on.
        find_text (str): The pair's find text.
        replace_text (str): The pair's replace text.
        count (int): Matches across all pages.
    """
    pair_id: str
    find_text: str
    replace_text: str
    count: int = 0

    @property
    def text(self) -> str:
        return f"{self.find_text} -> {self.replace_text}: {self.count} occurrences"


class TextInstruction(BaseModel):
    """
    One text run on the report page.

    Coordinates are in points with the origin at the top-left corner; ``y`` is the baseline.
    """
    text: str
    x: float
    y: float
    font_name: str
    font_size: float
    color: Tuple[float, float, float] = (0.0, 0.0, 0.0)


class ReportPage(BaseModel):
    """Layout of the report page appended to the processed document."""
    width: float
    height: float
    instructions: List[TextInstruction] = Field(default_factory=list)

    @property
    def overflows(self) -> bool:
        """True when some text is positioned below the bottom of the page."""
        return any(instruction.y > self.height for instruction in self.instructions)


class PipelineState(str, Enum):
    """Stages of one processing call. SUCCEEDED and FAILED are terminal."""
    IDLE = "idle"
    EXTRACTING = "extracting"
    MATCHING = "matching"
    SYNTHESIZING = "synthesizing"
    AUGMENTING = "augmenting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProcessingResult(BaseModel):
    """
    Value returned to the caller for one processing call.

    Exactly one of ``output`` and ``error`` is set, matching ``success``.

    Attributes:
        success (bool): Whether the processed document was produced.
        total_matches (int): Sum of matches over all pairs and pages.
        output (Optional[bytes]): The processed PDF, on success only.
        file_name (str): Suggested output file name.
        error (Optional[str]): Human-readable error, on failure only.
        report_lines (List[ReportLine]): Per-pair counts in pair order.
        failed_stage (Optional[PipelineState]): Stage that failed, on failure only.
    """
    success: bool
    total_matches: int = 0
    output: Optional[bytes] = None
    file_name: str = ""
    error: Optional[str] = None
    report_lines: List[ReportLine] = Field(default_factory=list)
    failed_stage: Optional[PipelineState] = None

    @model_validator(mode="after")
    def _check_exclusive_payload(self) -> "ProcessingResult":
        if self.success and (self.output is None or self.error is not None):
            raise ValueError("a successful result carries output and no error")
        if not self.success and (self.output is not None or not self.error):
            raise ValueError("a failed result carries an error and no output")
        return self

    @classmethod
    def succeeded(cls, output: bytes, file_name: str, total_matches: int,
                  report_lines: List[ReportLine]) -> "ProcessingResult":
        return cls(success=True, output=output, file_name=file_name,
                   total_matches=total_matches, report_lines=report_lines)

    @classmethod
    def failed(cls, error: str, failed_stage: Optional[PipelineState] = None) -> "ProcessingResult":
        return cls(success=False, error=error or "PDF processing failed", failed_stage=failed_stage)
