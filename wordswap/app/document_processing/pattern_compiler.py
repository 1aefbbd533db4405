"""
Literal pattern compilation for search pairs.

Every find text is escaped before any pattern syntax is built around it, so matches are always
literal and compilation cannot fail on user input. Whole-word matching wraps the escaped text in
word-boundary assertions; case-insensitive matching sets re.IGNORECASE.
"""

import re
from typing import List, Optional

from wordswap.app.domain.models import MatchOptions, SearchPair


class CompiledMatcher:
    """
    A compiled literal matcher bound to the pair it was built from.

    Attributes:
        pair: The search pair this matcher counts.
        pattern: The compiled regular expression.
    """

    def __init__(self, pair: SearchPair, pattern: re.Pattern):
        self.pair = pair
        self.pattern = pattern

    def count(self, text: str) -> int:
        """Count the non-overlapping occurrences in text."""
        if not text:
            return 0
        return sum(1 for _ in self.pattern.finditer(text))

    def __repr__(self) -> str:
        return f"CompiledMatcher(pair_id={self.pair.id!r}, pattern={self.pattern.pattern!r})"


class PatternCompiler:
    """Builds CompiledMatcher objects from search pairs and match options."""

    @staticmethod
    def build_pattern(find_text: str, case_sensitive: bool = False, whole_word: bool = False) -> Optional[re.Pattern]:
        """
        Compile a literal pattern for find_text.

        Args:
            find_text: Raw text to look for.
            case_sensitive: Match exact letter case when True.
            whole_word: Require word boundaries on both ends when True.

        Returns:
            The compiled pattern, or None when find_text is empty.
        """
        if not find_text:
            return None

        # Escape first; boundaries are added around the already-literal text.
        source = re.escape(find_text)
        if whole_word:
            source = rf"\b{source}\b"

        flags = 0 if case_sensitive else re.IGNORECASE
        return re.compile(source, flags)

    @classmethod
    def compile(cls, pair: SearchPair, options: MatchOptions) -> Optional[CompiledMatcher]:
        """
        Compile one pair.

        Returns:
            A CompiledMatcher, or None if the pair has an empty find text and must be skipped.
        """
        pattern = cls.build_pattern(pair.find_text, options.case_sensitive, options.whole_word)
        if pattern is None:
            return None
        return CompiledMatcher(pair, pattern)

    @classmethod
    def compile_pairs(cls, pairs: List[SearchPair], options: MatchOptions) -> List[CompiledMatcher]:
        """Compile all non-skipped pairs, preserving pair order."""
        matchers = []
        for pair in pairs:
            matcher = cls.compile(pair, options)
            if matcher is not None:
                matchers.append(matcher)
        return matchers
