import pytest
from pydantic import ValidationError

from wordswap.app.domain.models import (
    MatchTally,
    PageText,
    PipelineState,
    ProcessingResult,
    ReportLine,
    ReportPage,
    SearchPair,
    SearchPairList,
    TextInstruction,
)


class TestSearchPairList:

    # Test the default list holds one empty pair with id "1"
    def test_default(self):
        pairs = SearchPairList.default()

        assert len(pairs) == 1
        assert pairs.to_list() == [SearchPair(id="1", find_text="", replace_text="")]
        assert not pairs.has_search_text()

    # Test add appends with a fresh 9-character id
    def test_add(self):
        pairs = SearchPairList.default()

        first = pairs.add("cat", "dog")
        second = pairs.add()

        assert len(first.id) == 9
        assert first.id != second.id
        assert [pair.id for pair in pairs] == ["1", first.id, second.id]

    # Test remove by id
    def test_remove(self):
        pairs = SearchPairList.default()
        added = pairs.add("cat", "dog")

        assert pairs.remove("1")
        assert [pair.id for pair in pairs] == [added.id]

    # Test the last pair cannot be removed
    def test_remove_last_refused(self):
        pairs = SearchPairList.default()

        assert not pairs.remove("1")
        assert len(pairs) == 1

    # Test removing an unknown id
    def test_remove_unknown(self):
        pairs = SearchPairList.default()
        pairs.add()

        assert not pairs.remove("missing")
        assert len(pairs) == 2

    # Test update keeps position and unchanged fields
    def test_update(self):
        pairs = SearchPairList.default()
        added = pairs.add("cat", "dog")

        updated = pairs.update("1", find_text="mat")
        pairs.update(added.id, replace_text="lion")

        assert updated == SearchPair(id="1", find_text="mat", replace_text="")
        assert pairs.get(added.id).find_text == "cat"
        assert pairs.get(added.id).replace_text == "lion"
        assert [pair.id for pair in pairs] == ["1", added.id]
        assert pairs.has_search_text()

    # Test update with an unknown id
    def test_update_unknown(self):
        with pytest.raises(KeyError):
            SearchPairList.default().update("missing", find_text="x")

    # Test pairs are immutable
    def test_pair_frozen(self):
        pair = SearchPair(id="1", find_text="cat")

        with pytest.raises(ValidationError):
            pair.find_text = "dog"


class TestMatchTally:

    # Test the empty tally is the identity
    def test_identity(self):
        tally = MatchTally(counts={0: 2, 1: 3})

        assert tally + MatchTally.empty() == tally
        assert MatchTally.empty() + tally == tally

    # Test addition is commutative and associative
    def test_commutative_associative(self):
        a = MatchTally(counts={0: 1})
        b = MatchTally(counts={0: 2, 1: 5})
        c = MatchTally(counts={1: 1, 2: 7})

        assert a + b == b + a
        assert (a + b) + c == a + (b + c)
        assert (a + b + c).counts == {0: 3, 1: 6, 2: 7}

    # Test totals and lookups
    def test_total_and_count_for(self):
        tally = MatchTally(counts={0: 4, 2: 1})

        assert tally.total == 5
        assert tally.count_for(1) == 0
        assert MatchTally.empty().total == 0


class TestValueModels:

    # Test page text joins fragments with single spaces
    def test_page_text(self):
        assert PageText(page_number=1, fragments=["a", "b", "c"]).text == "a b c"
        assert PageText(page_number=2).text == ""

    # Test page numbers start at 1
    def test_page_number_positive(self):
        with pytest.raises(ValidationError):
            PageText(page_number=0)

    # Test report line text
    def test_report_line_text(self):
        line = ReportLine(pair_id="1", find_text="cat", replace_text="dog", count=1)

        assert line.text == "cat -> dog: 1 occurrences"

    # Test report page overflow detection
    def test_report_page_overflow(self):
        inside = TextInstruction(text="a", x=50, y=800, font_name="helv", font_size=10)
        outside = TextInstruction(text="b", x=50, y=900, font_name="helv", font_size=10)

        assert not ReportPage(width=595, height=842, instructions=[inside]).overflows
        assert ReportPage(width=595, height=842, instructions=[inside, outside]).overflows


class TestProcessingResult:

    # Test the success variant
    def test_succeeded(self):
        result = ProcessingResult.succeeded(b"%PDF", "a_updated.pdf", 3, [])

        assert result.success
        assert result.output == b"%PDF"
        assert result.error is None

    # Test the failure variant
    def test_failed(self):
        result = ProcessingResult.failed("broken", PipelineState.EXTRACTING)

        assert not result.success
        assert result.output is None
        assert result.error == "broken"
        assert result.failed_stage == PipelineState.EXTRACTING

    # Test a failure always has a message
    def test_failed_default_message(self):
        assert ProcessingResult.failed("").error == "PDF processing failed"

    # Test output and error are exclusive
    def test_exclusive_payload(self):
        with pytest.raises(ValidationError):
            ProcessingResult(success=True, output=b"x", error="also broken")
        with pytest.raises(ValidationError):
            ProcessingResult(success=False, output=b"x", error="broken")
        with pytest.raises(ValidationError):
            ProcessingResult(success=True)
