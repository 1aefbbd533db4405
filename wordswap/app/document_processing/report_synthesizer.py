"""
Report page layout.

ReportSynthesizer turns the counting results into a ReportPage: a list of positioned text runs
for the page appended to the processed document. The layout is a fixed header block followed by
one line per counted pair at a constant line spacing. Lines that do not fit are still placed
below the page bottom; the report is never split across pages.
"""

from typing import List, Optional

from wordswap.app.configs.config_singleton import get_config
from wordswap.app.domain.models import ReportLine, ReportPage, TextInstruction
from wordswap.app.utils.constant.constant import (
    REPORT_PAGE_WIDTH,
    REPORT_PAGE_HEIGHT,
    REPORT_MARGIN_X,
    REPORT_LINE_INDENT_X,
    REPORT_TITLE_Y,
    REPORT_SOURCE_Y,
    REPORT_TOTAL_Y,
    REPORT_SUMMARY_HEADER_Y,
    REPORT_FIRST_LINE_Y,
    REPORT_LINE_SPACING,
    REPORT_LINE_MARKER,
    REPORT_FONT_REGULAR,
    REPORT_FONT_BOLD,
    REPORT_FONT_UNICODE,
    REPORT_TITLE_FONT_SIZE,
    REPORT_HEADER_FONT_SIZE,
    REPORT_BODY_FONT_SIZE,
    REPORT_TITLE_COLOR,
    REPORT_TEXT_COLOR,
)


class ReportSynthesizer:
    """Builds the report page layout from a source name, a grand total and report lines."""

    @staticmethod
    def report_title(tool_name: Optional[str] = None) -> str:
        return f"{tool_name or get_config('tool_name', 'WordSwap')} Processing Report"

    @staticmethod
    def line_y(position: int) -> float:
        """Baseline of the report line at the given 0-based position."""
        return REPORT_FIRST_LINE_Y + position * REPORT_LINE_SPACING

    @staticmethod
    def font_for(text: str, base_font: str) -> str:
        """Keep the Base-14 font for Latin-1 text, otherwise switch to the embedded Unicode font."""
        if all(ord(ch) < 256 for ch in text):
            return base_font
        return REPORT_FONT_UNICODE

    @classmethod
    def synthesize(
        cls,
        source_name: str,
        total_matches: int,
        report_lines: List[ReportLine],
        tool_name: Optional[str] = None,
    ) -> ReportPage:
        """
        Lay out the report page.

        Args:
            source_name: Display name of the source document.
            total_matches: Grand total of matches over all pairs.
            report_lines: Per-pair lines in pair order.
            tool_name: Name used in the title. Defaults to the configured tool name.

        Returns:
            The page layout. y coordinates grow downwards from the top edge.
        """
        instructions = [
            TextInstruction(
                text=cls.report_title(tool_name),
                x=REPORT_MARGIN_X,
                y=REPORT_TITLE_Y,
                font_name=REPORT_FONT_BOLD,
                font_size=REPORT_TITLE_FONT_SIZE,
                color=REPORT_TITLE_COLOR,
            ),
            TextInstruction(
                text=f"Source: {source_name}",
                x=REPORT_MARGIN_X,
                y=REPORT_SOURCE_Y,
                font_name=REPORT_FONT_REGULAR,
                font_size=REPORT_BODY_FONT_SIZE,
                color=REPORT_TEXT_COLOR,
            ),
            TextInstruction(
                text=f"Total Matches: {total_matches}",
                x=REPORT_MARGIN_X,
                y=REPORT_TOTAL_Y,
                font_name=REPORT_FONT_REGULAR,
                font_size=REPORT_BODY_FONT_SIZE,
                color=REPORT_TEXT_COLOR,
            ),
            TextInstruction(
                text="Replacements Summary:",
                x=REPORT_MARGIN_X,
                y=REPORT_SUMMARY_HEADER_Y,
                font_name=REPORT_FONT_BOLD,
                font_size=REPORT_HEADER_FONT_SIZE,
                color=REPORT_TEXT_COLOR,
            ),
        ]

        for position, line in enumerate(report_lines):
            instructions.append(
                TextInstruction(
                    text=f"{REPORT_LINE_MARKER}{line.text}",
                    x=REPORT_LINE_INDENT_X,
                    y=cls.line_y(position),
                    font_name=REPORT_FONT_REGULAR,
                    font_size=REPORT_BODY_FONT_SIZE,
                    color=REPORT_TEXT_COLOR,
                )
            )

        for instruction in instructions:
            instruction.font_name = cls.font_for(instruction.text, instruction.font_name)

        return ReportPage(width=REPORT_PAGE_WIDTH, height=REPORT_PAGE_HEIGHT, instructions=instructions)
