"""
決定的スコアラーのテスト

選択問題・穴埋め・並べ替え・ディクテーションの採点と、
question type から採点器を引くレジストリをテストする。
"""

import pytest

from pte_scoring_core.domain.constants import Section
from pte_scoring_core.scoring.deterministic import (
    DETERMINISTIC_ROUTES,
    find_deterministic_route,
    score_dictation,
    score_fill_in_blanks,
    score_multi_select,
    score_reorder_paragraphs,
    score_single_select,
)


class TestSingleSelect:
    """単一選択のテスト"""

    def test_correct_is_trimmed_and_case_insensitive(self):
        result = score_single_select(" b ", "B")
        assert result.overall == 90
        assert result.subscores == {"correctness": 90}
        assert result.metadata["provider"] == "deterministic"
        assert result.metadata["section"] == "reading"

    def test_case_insensitive(self):
        assert score_single_select("Apple", "apple").overall == 90

    def test_incorrect(self):
        result = score_single_select("A", "B")
        assert result.overall == 0
        assert result.rationale

    def test_empty_correct_never_matches(self):
        assert score_single_select("", "").overall == 0

    def test_listening_section(self):
        result = score_single_select("A", "A", section=Section.LISTENING)
        assert result.overall == 90
        assert result.metadata["section"] == "listening"


class TestMultiSelect:
    """複数選択（誤選択ペナルティ付き）のテスト"""

    def test_over_selection_is_penalized(self):
        """3つ選択・正解2つ: (2-1)/2 = 0.5 -> 45"""
        result = score_multi_select(["A", "B", "C"], ["A", "B"])
        assert result.overall == 45
        assert result.metadata["tp"] == 2
        assert result.metadata["fp"] == 1

    def test_partial_selection(self):
        """2つ選択・正解3つ: 2/3 -> 60"""
        result = score_multi_select(["A", "B"], ["A", "B", "C"])
        assert result.overall == 60
        assert result.metadata["accuracy"] == pytest.approx(0.6667)

    def test_all_correct(self):
        assert score_multi_select(["c", "a"], ["A", "C"]).overall == 90

    def test_more_wrong_than_right_floors_at_zero(self):
        assert score_multi_select(["A", "D", "E"], ["A", "B"]).overall == 0

    def test_disjoint_selection(self):
        assert score_multi_select(["D", "E"], ["A", "B"]).overall == 0

    def test_nothing_selected(self):
        assert score_multi_select([], ["A"]).overall == 0

    def test_empty_correct_set(self):
        result = score_multi_select(["A"], [])
        assert result.overall == 0
        assert result.metadata["correct_count"] == 0

    def test_duplicates_count_once(self):
        assert score_multi_select(["A", "a", "B"], ["A", "B"]).overall == 90


class TestFillInBlanks:
    """穴埋めのテスト"""

    def test_half_correct(self):
        result = score_fill_in_blanks({"1": "Cat.", "2": "dog"}, {1: "cat", "2": "bird"})
        assert result.overall == 45
        assert result.metadata["total"] == 2
        assert result.metadata["correct"] == 1
        assert result.metadata["wrong"] == [{"key": "2", "user": "dog", "expected": "bird"}]

    def test_missing_answer_is_wrong(self):
        result = score_fill_in_blanks({}, {"a": "x"})
        assert result.overall == 0
        assert result.metadata["wrong"][0]["user"] is None

    def test_all_correct(self):
        assert score_fill_in_blanks({"a": " X "}, {"a": "x"}).overall == 90

    def test_whitespace_and_case_normalized(self):
        assert score_fill_in_blanks({"1": "HELLO "}, {"1": "hello"}).overall == 90

    def test_no_blanks(self):
        result = score_fill_in_blanks({"a": "x"}, {})
        assert result.overall == 0
        assert result.metadata["total"] == 0


class TestReorderParagraphs:
    """並べ替え（ペア一致率）のテスト"""

    def test_perfect(self):
        assert score_reorder_paragraphs(["A", "B", "C", "D"], ["A", "B", "C", "D"]).overall == 90

    def test_one_adjacent_swap(self):
        """3要素で隣接1組入れ替え: 2/3 -> 60"""
        result = score_reorder_paragraphs(["A", "C", "B"], ["A", "B", "C"])
        assert result.overall == 60
        assert result.metadata["pairs"] == 3
        assert result.metadata["correct_pairs"] == 2

    def test_reversed(self):
        assert score_reorder_paragraphs(["C", "B", "A"], ["A", "B", "C"]).overall == 0

    def test_unknown_and_duplicate_items_ignored(self):
        assert score_reorder_paragraphs(["A", "X", "A", "B"], ["A", "B"]).overall == 90

    def test_single_paragraph(self):
        assert score_reorder_paragraphs(["A"], ["A"]).overall == 90

    def test_single_known_item_of_many(self):
        assert score_reorder_paragraphs(["A"], ["A", "B"]).overall == 0

    def test_empty(self):
        assert score_reorder_paragraphs([], ["A", "B"]).overall == 0


class TestDictation:
    """ディクテーション（WER + 正答率）のテスト"""

    def test_exact_match_ignores_case_and_punctuation(self):
        result = score_dictation("The cat sat down.", "the cat, sat down")
        assert result.subscores == {"wer": 90, "correctness": 90}
        assert result.overall == 90

    def test_one_substitution(self):
        """4語中1語誤り: wer=75, correctness=68, overall=70"""
        result = score_dictation("the cat sat down", "the dog sat down")
        assert result.subscores == {"wer": 75, "correctness": 68}
        assert result.overall == 70
        assert result.metadata["edits"] == 1
        assert result.metadata["reference_length"] == 4
        assert result.metadata["section"] == "listening"

    def test_unrelated_sentence(self):
        result = score_dictation("the cat sat down", "birds fly very high")
        assert result.subscores == {"wer": 30, "correctness": 0}
        assert result.overall == 9

    def test_empty_answer(self):
        result = score_dictation("the cat sat down", "")
        assert result.subscores["correctness"] == 0
        assert result.overall == 9

    def test_missing_answer_has_no_correctness(self):
        result = score_dictation("the cat sat down", None)
        assert result.subscores == {"wer": 30}
        assert result.overall == 30

    def test_custom_weights(self):
        result = score_dictation("the cat sat down", "the dog sat down", weights={"wer": 1.0})
        assert result.overall == 75


class TestRegistry:
    """question type -> 採点器の解決"""

    @pytest.mark.parametrize("section,question_type,fragment", [
        (Section.READING, "multiple_choice_single", "multiple_choice_single"),
        (Section.READING, "Multiple-Choice-Multiple", "multiple_choice_multiple"),
        (Section.READING, "reading_writing_fill_in_blanks", "fill_in_blanks"),
        (Section.READING, "reorder_paragraphs", "reorder_paragraphs"),
        (Section.LISTENING, "write_from_dictation", "write_from_dictation"),
        (Section.LISTENING, "wfd", "wfd"),
        (Section.LISTENING, "listening_fill_in_blanks", "fill_in_blanks"),
    ])
    def test_resolves(self, section, question_type, fragment):
        route = find_deterministic_route(section, question_type)
        assert route is not None
        assert route.fragment == fragment

    @pytest.mark.parametrize("section,question_type", [
        (Section.SPEAKING, "read_aloud"),
        (Section.WRITING, "write_essay"),
        (Section.LISTENING, "summarize_spoken_text"),
        (Section.READING, "reorder"),
    ])
    def test_unregistered(self, section, question_type):
        assert find_deterministic_route(section, question_type) is None

    def test_every_route_has_required_fields(self):
        for route in DETERMINISTIC_ROUTES:
            assert route.required

    def test_extract_accepts_camel_and_snake_case(self):
        route = find_deterministic_route(Section.READING, "multiple_choice_single")
        camel = route.extract({"selectedOption": "A", "correctOption": "A"}, Section.READING)
        snake = route.extract({"selected_option": "A", "correct_option": "A"}, Section.READING)
        assert camel.overall == snake.overall == 90

    def test_extract_missing_fields_returns_none(self):
        route = find_deterministic_route(Section.LISTENING, "write_from_dictation")
        assert route.extract({"targetText": "hello"}, Section.LISTENING) is None

    def test_reorder_accepts_order_alias(self):
        route = find_deterministic_route(Section.READING, "reorder_paragraphs")
        result = route.extract({"order": ["A", "B"], "correctOrder": ["A", "B"]}, Section.READING)
        assert result.overall == 90
