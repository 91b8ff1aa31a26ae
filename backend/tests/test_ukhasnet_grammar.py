# Copyright (c) 2025 Efstratios Goudelis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
Tests for ukhasnet/grammar.py: individual rules, token output and failure tracking.
"""

import pytest

from ukhasnet.grammar import (
    GRAMMAR,
    Choice,
    FailureTracker,
    Grammar,
    Literal,
    Ref,
    Rule,
    Sequence,
    ZeroOrMore,
)
from ukhasnet.tokens import Token


def end_of(text, rule):
    match = GRAMMAR.match(text, rule)
    assert match.succeeded, f"{rule} should match {text!r}"
    return match.end


class TestSimpleRules:
    """Test cases for repeat, sequence and the numeric rules."""

    def test_repeat_takes_one_digit(self):
        """Test that repeat consumes exactly one digit."""
        assert end_of("3abc", "repeat") == 1
        assert end_of("2345", "repeat") == 1

    def test_repeat_rejects_non_digit(self):
        """Test that repeat fails on letters and punctuation."""
        for text in ("a123", "!123", ""):
            match = GRAMMAR.match(text, "repeat")
            assert not match.succeeded
            assert match.position == 0
            assert match.expected == ("repeat",)

    def test_sequence_takes_one_lowercase_letter(self):
        """Test that sequence consumes a single lowercase letter."""
        assert end_of("b123", "sequence") == 1
        assert end_of("z123", "sequence") == 1

    def test_sequence_rejects_uppercase_and_digits(self):
        """Test that sequence fails on anything but a-z."""
        for text in ("A12", "123", "!12"):
            match = GRAMMAR.match(text, "sequence")
            assert not match.succeeded
            assert match.expected == ("sequence",)

    @pytest.mark.parametrize(
        "text,end",
        [
            ("12", 2),
            ("12abc", 2),
            ("12.5", 4),
            ("-12.5", 5),
            ("+7", 2),
            ("1Z", 1),
            ("1.", 1),
            ("3.x", 1),
        ],
    )
    def test_decimal_forms(self, text, end):
        """Test the extent of the decimal rule on assorted inputs."""
        assert end_of(text, "decimal") == end

    @pytest.mark.parametrize("text", ["a123", "+.5", ".5", "-", ""])
    def test_decimal_requires_leading_digit(self, text):
        """Test that decimal needs at least one digit before any point."""
        match = GRAMMAR.match(text, "decimal")
        assert not match.succeeded
        assert match.expected == ("decimal",)

    def test_integer_stops_at_point(self):
        """Test the integer rule, defined alongside decimal."""
        assert end_of("-42x", "integer") == 3
        assert end_of("4.2", "integer") == 1

    def test_decimal_is_atomic(self):
        """Test that decimal yields a single token with nothing inside."""
        match = GRAMMAR.match("-12.5", "decimal")
        assert match.tokens == (Token("decimal", 0, 5, 0),)


class TestDecimalList:
    """Test cases for comma separated values with optional elements."""

    def test_list_allows_empty_elements(self):
        """Test that consecutive commas are accepted."""
        match = GRAMMAR.match("1,,3", "decimal_list")
        assert match.end == 4
        assert match.tokens == (
            Token("decimal_list", 0, 4, 0),
            Token("decimal", 0, 1, 1),
            Token("decimal", 3, 4, 1),
        )

    def test_empty_list_is_zero_width(self):
        """Test that an empty decimal list still produces its token."""
        match = GRAMMAR.match("", "decimal_list")
        assert match.succeeded
        assert match.end == 0
        assert match.tokens == (Token("decimal_list", 0, 0, 0),)


class TestFieldRules:
    """Test cases for each data field rule in isolation."""

    @pytest.mark.parametrize(
        "rule,text",
        [
            ("temperature", "T12.5,-15,8"),
            ("voltage", "V12.5,-15,8"),
            ("current", "I0.5,1"),
            ("humidity", "H12.5,-15,8"),
            ("pressure", "P1013.25"),
            ("sun", "S12.5,-15,8"),
            ("rssi", "R-12,-15,-8"),
            ("count", "C123"),
            ("custom", "X123,4.56"),
        ],
    )
    def test_scalar_fields_consume_whole_list(self, rule, text):
        """Test that a tagged list is consumed completely."""
        assert end_of(text, rule) == len(text)

    def test_scalar_field_without_values(self):
        """Test that a tag with no readings matches only the tag."""
        assert end_of("Thello", "temperature") == 1

    def test_scalar_field_wrong_tag(self):
        """Test that a field rule rejects a different tag."""
        match = GRAMMAR.match("H12", "temperature")
        assert not match.succeeded
        assert match.expected == ('"T"',)

    @pytest.mark.parametrize(
        "text,end",
        [
            ("L51.52,-1.23[]", 12),
            ("L51.52,-1.23,345", 16),
            ("L,345", 5),
            ("L", 1),
            ("L,,5", 2),
            ("L51.52,abc", 1),
        ],
    )
    def test_location_shapes(self, text, end):
        """Test how far location reaches for each omitted-value shape."""
        assert end_of(text, "location") == end

    @pytest.mark.parametrize(
        "text,end",
        [
            ("W15[]", 3),
            ("W15,123", 7),
            ("W,270", 5),
            ("Whello", 1),
        ],
    )
    def test_windspeed_shapes(self, text, end):
        """Test how far windspeed reaches for each shape."""
        assert end_of(text, "windspeed") == end

    def test_zombie_modes(self):
        """Test that zombie accepts 0 and 1."""
        assert end_of("Z0", "zombie") == 2
        assert end_of("Z1", "zombie") == 2

    def test_zombie_rejects_other_digits(self):
        """Test that zombie reports both allowed modes."""
        match = GRAMMAR.match("Z2", "zombie")
        assert not match.succeeded
        assert match.position == 1
        assert match.expected == ('"0"', '"1"')

    def test_data_field_dispatch(self):
        """Test that data_field wraps the matching field rule."""
        match = GRAMMAR.match("W5", "data_field")
        assert [t.rule for t in match.tokens] == ["data_field", "windspeed", "decimal"]

    def test_data_section(self):
        """Test that data gathers consecutive fields and stops at the comment."""
        assert end_of("T21H68S123X1,2,3:hello[AG]", "data") == 16


class TestCommentAndPath:
    """Test cases for comment and path rules."""

    def test_comment_takes_letters_digits_and_symbols(self):
        """Test that the comment runs up to the path bracket."""
        assert end_of(":hello world[AG]", "comment") == 12
        assert end_of(":Hi, there! #1 (ok) ~x[AG]", "comment") == 22

    def test_empty_comment(self):
        """Test that a bare colon is a complete comment."""
        assert end_of(":", "comment") == 1

    def test_comment_content_is_atomic(self):
        """Test that the comment yields no tokens for individual characters."""
        match = GRAMMAR.match(":ab1", "comment")
        assert match.tokens == (Token("comment", 0, 4, 0), Token("comment_content", 1, 4, 1))

    def test_path_lists(self):
        """Test paths with one and several node names."""
        assert end_of("[A,B,C]", "path") == 7
        assert end_of("[DH123]", "path") == 7
        assert end_of("[ab,Cd]", "path") == 7

    def test_path_rejects_symbols(self):
        """Test that a slash inside a node name is rejected at the slash."""
        match = GRAMMAR.match("[T/1]", "path")
        assert not match.succeeded
        assert match.position == 2
        assert match.expected == ('","', '"]"')


class TestPacketRule:
    """Test cases for whole-packet recognition."""

    def test_packet_tokens(self):
        """Test the full pre-ordered token list of a small packet."""
        match = GRAMMAR.match("2bT12[AG]")
        assert match.succeeded
        assert match.tokens == (
            Token("packet", 0, 9, 0),
            Token("repeat", 0, 1, 1),
            Token("sequence", 1, 2, 1),
            Token("data", 2, 5, 1),
            Token("data_field", 2, 5, 2),
            Token("temperature", 2, 5, 3),
            Token("decimal_list", 3, 5, 4),
            Token("decimal", 3, 5, 5),
            Token("path", 5, 9, 1),
            Token("node_name", 6, 8, 2),
            Token("node_name_content", 6, 8, 3),
        )

    def test_packet_requires_end_of_input(self):
        """Test that trailing characters after the path fail the packet."""
        match = GRAMMAR.match("1aT1[A]XYZ")
        assert not match.succeeded
        assert match.position == 7
        assert match.expected == ("EOI",)

    def test_invalid_sequence_position(self):
        """Test that a bad sequence letter is reported at offset 1."""
        match = GRAMMAR.match("3!T12[A]")
        assert match.position == 1
        assert match.expected == ("sequence",)

    def test_unterminated_path(self):
        """Test that a missing bracket is reported at end of input."""
        text = "3bT21S80[AG,AH"
        match = GRAMMAR.match(text)
        assert not match.succeeded
        assert match.position == len(text)
        assert match.expected == ('","', '"]"')

    def test_non_numeric_value(self):
        """Test the expected set after a tag followed by a letter."""
        match = GRAMMAR.match("3aTa[A]")
        assert match.position == 3
        assert match.expected[:2] == ("decimal", '","')
        for label in ('"V"', '"I"', '"T"', '"L"', '"W"', '"Z"', '":"', '"["'):
            assert label in match.expected

    def test_unknown_rule(self):
        """Test that matching an undefined rule raises KeyError."""
        with pytest.raises(KeyError):
            GRAMMAR.match("1a[A]", "nonexistent")

    def test_non_string_input(self):
        """Test that bytes are refused."""
        with pytest.raises(TypeError):
            GRAMMAR.match(b"1a[A]")


class TestGrammarConstruction:
    """Test cases for building grammars and the failure tracker."""

    def test_undefined_reference_is_rejected(self):
        """Test that a rule referring to a missing rule fails at build time."""
        with pytest.raises(ValueError):
            Grammar([Rule("a", Ref("b"))], start="a")

    def test_duplicate_rule_is_rejected(self):
        """Test that rule names must be unique."""
        with pytest.raises(ValueError):
            Grammar([Rule("a", Literal("x")), Rule("a", Literal("y"))], start="a")

    def test_silent_rule_produces_no_token(self):
        """Test that silent rules pass their children through."""
        grammar = Grammar(
            [
                Rule("item", Literal("x")),
                Rule("items", ZeroOrMore(Ref("item")), silent=True),
                Rule("list", Sequence(Literal("("), Ref("items"), Literal(")"))),
            ],
            start="list",
        )
        match = grammar.match("(xx)")
        assert match.tokens == (Token("list", 0, 4, 0), Token("item", 1, 2, 1), Token("item", 2, 3, 1))

    def test_ordered_choice_commits_to_first_match(self):
        """Test that a shorter first alternative wins over a longer later one."""
        grammar = Grammar([Rule("word", Choice(Literal("a"), Literal("ab")))], start="word")
        assert grammar.match("ab").end == 1

    def test_tracker_keeps_furthest_labels(self):
        """Test that shallower failures are dropped and duplicates ignored."""
        tracker = FailureTracker()
        tracker.record(2, "x")
        tracker.record(1, "y")
        tracker.record(2, "z")
        tracker.record(2, "x")
        assert tracker.position == 2
        assert tracker.expected == ["x", "z"]
        tracker.record(5, "w")
        assert tracker.expected == ["w"]

    def test_tracker_replay_matches_original(self):
        """Test that replaying recorded events rebuilds the same expected set."""
        tracker = FailureTracker()
        mark = tracker.mark()
        tracker.record(3, "a")
        tracker.record(3, "b")
        events = tracker.events_since(mark)
        assert tracker.recorded_at(mark, 3)
        assert not tracker.recorded_at(mark, 0)

        other = FailureTracker()
        other.replay(events)
        assert other.position == 3
        assert other.expected == ["a", "b"]

    def test_memoized_failures_report_same_labels(self):
        """Test that a rule tried twice at one offset reports identical labels."""
        grammar = Grammar(
            [
                Rule("digit", Literal("1")),
                Rule("pair", Choice(Sequence(Ref("digit"), Literal("a")), Sequence(Ref("digit"), Literal("b")))),
            ],
            start="pair",
        )
        match = grammar.match("1c")
        assert match.position == 1
        assert match.expected == ('"a"', '"b"')
        match = grammar.match("c")
        assert match.position == 0
        assert match.expected == ('"1"',)
