"""
測試 FuzzyWindowMatcher 與空白正規化

驗證：
1. 相似度計算
2. 長度守門與拒絕原因
3. 位置對照 (正規化 -> 原文)
4. 頭尾空白延伸
5. 同分時的挑選順序
"""

import pytest

from patchfix.config import ReplacerConfig
from patchfix.core.types import MatchCandidate
from patchfix.matching import ExactMatcher, FuzzyWindowMatcher
from patchfix.matching.normalize import (
    collapse_whitespace,
    leading_whitespace,
    normalize_with_map,
    trailing_whitespace,
)


class TestNormalize:
    """測試空白正規化"""

    def test_collapse_whitespace(self):
        """測試連續空白壓縮並去頭尾"""
        assert collapse_whitespace("  a \t b\r\n\r\nc  ") == "a b c"

    def test_normalize_keeps_edges(self):
        """測試文件正規化保留頭尾 (壓成一格)"""
        doc = normalize_with_map("  a\r\n  b ")

        assert doc.text == " a b "
        assert doc.positions == (0, 2, 3, 7, 8)
        assert doc.source_length == 9

    def test_to_source_span(self):
        """測試正規化區間換回原文區間"""
        original = "key:\r\n    value"
        doc = normalize_with_map(original)

        start = doc.text.index("key")
        end = doc.text.index("value") + len("value")

        assert doc.to_source_span(start, end) == (0, len(original))

    def test_empty_span_rejected(self):
        """測試空區間"""
        doc = normalize_with_map("abc")

        with pytest.raises(ValueError, match="Empty span"):
            doc.to_source_span(1, 1)

    def test_edge_whitespace_helpers(self):
        """測試頭尾空白擷取"""
        assert leading_whitespace("\n  x y \n") == "\n  "
        assert trailing_whitespace("\n  x y \n") == " \n"
        assert leading_whitespace("x") == ""


class TestSimilarity:
    """測試相似度"""

    def test_identical(self):
        assert FuzzyWindowMatcher.similarity("abc", "abc") == 1.0

    def test_both_empty(self):
        assert FuzzyWindowMatcher.similarity("", "") == 1.0

    def test_one_edit(self):
        """一個替換 / 最大長度"""
        assert FuzzyWindowMatcher.similarity("abcd", "abce") == pytest.approx(0.75)

    def test_disjoint(self):
        assert FuzzyWindowMatcher.similarity("aaaa", "bbbb") == 0.0

    def test_max_distance_within_cutoff_is_exact(self):
        assert FuzzyWindowMatcher.similarity("abcd", "abce", max_distance=1) == pytest.approx(0.75)

    def test_max_distance_exceeded_gives_lower_bound(self):
        """距離超過上限時只回報下界 (max_distance + 1)"""
        assert FuzzyWindowMatcher.similarity("aaaa", "bbbb", max_distance=1) == pytest.approx(0.5)


class TestGuardrail:
    """測試長度守門"""

    def test_short_pattern_rejected(self):
        matcher = FuzzyWindowMatcher()

        result = matcher.search("Hello, world!", "xyz")

        assert result.candidate is None
        assert result.reason == "pattern_too_short"
        assert result.windows_scored == 0

    def test_whitespace_only_pattern_rejected(self):
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=3))

        result = matcher.search("a b c", " \n\t ")

        assert result.reason == "empty_after_normalize"

    def test_document_shorter_than_any_window(self):
        matcher = FuzzyWindowMatcher()

        result = matcher.search("tiny", "x" * 60)

        assert result.candidate is None
        assert result.reason == "no_window"

    def test_find_returns_empty_list_on_decline(self):
        assert FuzzyWindowMatcher().find("Hello", "xyz") == []


class TestSearch:
    """測試模糊搜尋"""

    def test_normalized_identical_scores_one(self):
        """測試只差空白時分數為 1.0"""
        content = "first: 1\nsecond:\n  nested: true\n  other: false\nthird: 3\n"
        pattern = "second:\n    nested: true\n    other: false"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        result = matcher.search(content, pattern)

        assert result.candidate is not None
        assert result.candidate.score == 1.0
        start, end = result.candidate.start, result.candidate.end
        assert content[start:end] == "second:\n  nested: true\n  other: false"

    def test_leading_indent_is_consumed(self):
        """測試 old_text 開頭的縮排會吃掉相同數量的文件縮排"""
        content = "root:\n      child: value-one\n      sibling: value-two\n"
        pattern = "  child:  value-one\n  sibling: value-two"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        cand = matcher.search(content, pattern).candidate

        assert content[cand.start:cand.end] == "  child: value-one\n      sibling: value-two"

    def test_leading_newline_takes_indentation_with_it(self):
        """測試開頭換行連同整段縮排一起吃掉，不留下只有空白的行"""
        content = "root:\n    child:  value-one\n    sibling: value-two"
        pattern = "\nchild: value-one\nsibling: value-two"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        cand = matcher.search(content, pattern).candidate

        assert content[cand.start:cand.end] == "\n    child:  value-one\n    sibling: value-two"

    def test_leading_newline_with_shallower_indent(self):
        """測試 old_text 縮排比文件淺時，換行與剩餘縮排仍一起被吃掉"""
        content = "spec:\n    containers:\n      - name: app\nend: 1\n"
        pattern = "\n  containers:\n    - name: app"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        cand = matcher.search(content, pattern).candidate
        updated = matcher.apply(content, [cand], "\n  containers: []")

        assert updated == "spec:\n  containers: []\nend: 1\n"

    def test_leading_newline_stops_at_inline_text(self):
        """測試換行前若是同一行的文字，不會延伸"""
        content = "key: child: value-one sibling: value-two"
        pattern = "\nchild: value-one\nsibling: value-two"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        cand = matcher.search(content, pattern).candidate

        assert content[cand.start:cand.end] == "child: value-one sibling: value-two"

    def test_trailing_newline_takes_trailing_spaces(self):
        """測試結尾換行會連同行尾空白一起吃掉"""
        content = "root:\n  child: value-one\n  sibling: value-two   \nnext: 1\n"
        pattern = "child:  value-one\n  sibling: value-two\n"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        cand = matcher.search(content, pattern).candidate

        assert content[cand.start:cand.end] == "child: value-one\n  sibling: value-two   \n"

    def test_crlf_counts_as_one_newline(self):
        """測試 CRLF 文件中結尾換行整組被吃掉"""
        content = "a: 1\r\nblock:  one\r\n  two: 2\r\nb: 2\r\n"
        pattern = "block: one\n  two: 2\n"
        matcher = FuzzyWindowMatcher(ReplacerConfig(minimum_fuzzy_pattern_length=10))

        cand = matcher.search(content, pattern).candidate
        updated = matcher.apply(content, [cand], "block: replaced\n")

        assert updated == "a: 1\r\nblock: replaced\nb: 2\r\n"

    def test_equal_scores_prefer_smaller_start(self):
        """測試同分時選擇較小的 start"""
        block = "name: web-frontend\nimage: registry.example.com/web:1.2.3\nreplicas: 3"
        content = block + "\n---\n" + block
        pattern = block.replace("replicas: 3", "replicas: 2")

        cand = FuzzyWindowMatcher().search(content, pattern).candidate

        assert cand.start == 0
        assert cand.end == len(block)

    def test_below_threshold_reports_best_score(self):
        """測試低於門檻時回報最佳分數"""
        content = "lorem ipsum dolor sit amet " * 10
        pattern = "completely unrelated text that should never match anything here"

        result = FuzzyWindowMatcher().search(content, pattern)

        assert result.candidate is None
        assert result.reason == "below_threshold"
        assert 0.0 <= result.best_score < 0.85
        assert result.windows_scored > 0

    def test_only_one_candidate(self):
        """測試 find 最多只回傳一個候選"""
        block = "name: web-frontend\nimage: registry.example.com/web:1.2.3\nreplicas: 3"
        content = "\n\n".join([block] * 3)
        pattern = block.replace("web:1.2.3", "web:1.2.4")

        assert len(FuzzyWindowMatcher().find(content, pattern)) == 1


class TestApply:
    """測試 BaseMatcher.apply"""

    def test_rebuilds_outside_spans(self):
        spans = [MatchCandidate(6, 8, 1.0), MatchCandidate(0, 2, 1.0)]

        assert ExactMatcher().apply("ab-cd-ef", spans, "X") == "X-cd-X"

    def test_adjacent_spans(self):
        """測試相鄰 (不重疊) 的區間"""
        spans = [MatchCandidate(0, 2, 1.0), MatchCandidate(2, 4, 1.0)]

        assert ExactMatcher().apply("abcdef", spans, "X") == "XXef"

    def test_overlapping_spans_rejected(self):
        spans = [MatchCandidate(0, 3, 1.0), MatchCandidate(2, 4, 1.0)]

        with pytest.raises(ValueError, match="Overlapping"):
            ExactMatcher().apply("abcdef", spans, "X")

    def test_candidate_validation(self):
        with pytest.raises(ValueError, match="Invalid span"):
            MatchCandidate(5, 2, 0.5)
        with pytest.raises(ValueError, match="Score must be between 0.0 and 1.0"):
            MatchCandidate(0, 2, 1.5)
