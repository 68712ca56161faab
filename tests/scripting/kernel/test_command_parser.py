"""Tests for the command line tokenizer."""

from __future__ import annotations

import pytest

from scripting.kernel.command_parser import parse


class TestPlainWords:
    @pytest.mark.parametrize(
        "line",
        ["ls", "ls -la /tmp", "  leading and trailing  ", "tabs\tand\nnewlines", "a  b   c"],
    )
    def test_splits_on_whitespace(self, line: str) -> None:
        assert parse(line, {}) == line.split()

    def test_empty_line_has_no_arguments(self) -> None:
        assert parse("", {}) == []
        assert parse("   ", {}) == []


class TestQuoting:
    def test_double_quotes_keep_whitespace(self) -> None:
        assert parse('Hello "world out there"', {}) == ["Hello", "world out there"]

    def test_single_quotes_keep_whitespace(self) -> None:
        assert parse("echo 'a  b'", {}) == ["echo", "a  b"]

    def test_closing_quote_ends_the_argument(self) -> None:
        assert parse('"a"b', {}) == ["a", "b"]
        assert parse('a"b"', {}) == ["ab"]
        assert parse("'a'b", {}) == ["a", "b"]

    def test_empty_quotes_give_an_empty_argument(self) -> None:
        assert parse("printf ''", {}) == ["printf", ""]

    def test_quotes_nest_literally(self) -> None:
        assert parse("""echo "it's" 'say "hi"'""", {}) == ["echo", "it's", 'say "hi"']

    def test_unterminated_quote_is_accepted(self) -> None:
        assert parse('echo "abc def', {}) == ["echo", "abc def"]


class TestEscapes:
    def test_escaped_spaces_and_backslash(self) -> None:
        assert parse(r"Hello world\ out\ there \\", {}) == ["Hello", "world out there", "\\"]

    @pytest.mark.parametrize(
        ("escape", "expected"),
        [("\\0", "\0"), ("\\n", "\n"), ("\\r", "\r"), ("\\t", "\t")],
    )
    def test_shorthands(self, escape: str, expected: str) -> None:
        assert parse(f"a{escape}b", {}) == [f"a{expected}b"]

    def test_other_characters_are_taken_literally(self) -> None:
        assert parse(r"\x\"\'", {}) == ["x\"'"]

    def test_trailing_backslash_is_accepted(self) -> None:
        assert parse("echo \\", {}) == ["echo"]


class TestVariables:
    def test_substitution_and_its_suppression(self) -> None:
        line = "$CMD $VAR '$VAR' \\$VAR \"$VAR\" \"\\$VAR\""
        assert parse(line, {"CMD": "cmd", "VAR": "val"}) == [
            "cmd",
            "val",
            "$VAR",
            "$VAR",
            "val",
            "$VAR",
        ]

    def test_missing_variable_expands_to_nothing(self) -> None:
        assert parse("echo $NOPE x", {}) == ["echo", "x"]

    def test_variable_ends_at_first_non_name_character(self) -> None:
        assert parse("pre$VAR.post", {"VAR": "x"}) == ["prex.post"]
        assert parse("$A$B", {"A": "1", "B": "2"}) == ["12"]

    def test_variable_at_end_of_input(self) -> None:
        assert parse("cd $HOME", {"HOME": "/home/me"}) == ["cd", "/home/me"]

    def test_underscores_and_digits_belong_to_the_name(self) -> None:
        assert parse("$MY_VAR_2", {"MY_VAR_2": "ok", "MY": "no"}) == ["ok"]

    def test_no_environment_means_no_values(self) -> None:
        assert parse("echo $HOME") == ["echo"]
