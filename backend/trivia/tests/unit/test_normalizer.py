import pytest

from trivia.logic.normalizer import clean_text, normalize_answer


class TestNormalizeAnswer:
    @pytest.mark.parametrize(
        ("guess", "answer"),
        [
            ("Paris", "Paris"),
            (" paris ", "Paris"),
            ("PARIS", "paris"),
            ("\tParis\n", " PARIS"),
        ],
    )
    def test_whitespace_and_case_insensitive(self, guess, answer):
        assert normalize_answer(guess) == normalize_answer(answer)

    def test_different_text_does_not_match(self):
        assert normalize_answer("London") != normalize_answer("Paris")

    def test_inner_whitespace_is_significant(self):
        assert normalize_answer("New  York") != normalize_answer("New York")

    def test_casefold_handles_special_cases(self):
        assert normalize_answer("STRASSE") == normalize_answer("straße")

    def test_none_is_empty(self):
        assert normalize_answer(None) == ""


class TestCleanText:
    def test_strips_whitespace(self):
        assert clean_text("  Alice  ", 30) == "Alice"

    def test_truncates_to_max_length(self):
        assert clean_text("x" * 50, 30) == "x" * 30

    def test_truncates_after_stripping(self):
        assert clean_text("   abcdef", 3) == "abc"

    def test_none_becomes_empty(self):
        assert clean_text(None, 30) == ""

    def test_non_string_is_coerced(self):
        assert clean_text(42, 30) == "42"

    def test_whitespace_only_becomes_empty(self):
        assert clean_text("   ", 30) == ""
