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
Parsing-expression grammar engine for UKHASnet packets

The grammar is a table of named rules built from a handful of expression
types (literal, character class, sequence, ordered choice, optional,
repetition, rule reference, end of input). Matching is top-down, left to right
recursive descent with backtracking:

- Every expression is a function of (state, position) that returns either
  ``(end, tokens)`` on success or ``None`` on failure. A failure never moves the
  position, the caller simply tries its next alternative from where it was.
- Ordered choice commits to the first alternative that matches.
- Rule invocations are memoized per (rule, position) so a rule is derived at
  most once at any offset, together with the failures it recorded.
- Failures are accumulated explicitly in a FailureTracker which keeps the
  furthest offset reached and the labels attempted there.

Rule flags:
- silent: the rule matches but produces no token (its children still do)
- atomic: the rule produces its own token but nothing from inside it, and
  failures inside it are reported as the rule itself

Expected-set labels are non-silent rule names, quoted literals (``"]"``) and
``EOI``. A failing rule adds its own name only when nothing more specific was
recorded at the offset where it started.
"""

import logging
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .tokens import Token

logger = logging.getLogger("ukhasnet.grammar")

# Successful expression match: end offset and the tokens produced
Matched = Tuple[int, List[Token]]


class FailureTracker:
    """Furthest failure offset and the distinct labels attempted there."""

    def __init__(self):
        self.position = -1
        self.expected: List[str] = []
        self._events: List[Tuple[int, str]] = []

    def record(self, position: int, label: str) -> None:
        self._events.append((position, label))
        if position > self.position:
            self.position = position
            self.expected = [label]
        elif position == self.position and label not in self.expected:
            self.expected.append(label)

    def mark(self) -> int:
        return len(self._events)

    def events_since(self, mark: int) -> Tuple[Tuple[int, str], ...]:
        return tuple(self._events[mark:])

    def recorded_at(self, mark: int, position: int) -> bool:
        return any(p == position for p, _ in self._events[mark:])

    def replay(self, events: Iterable[Tuple[int, str]]) -> None:
        for position, label in events:
            self.record(position, label)


class MatchState:
    """Per-call scan state: the input, the memo table and the failure tracker."""

    def __init__(self, grammar: "Grammar", text: str):
        self.grammar = grammar
        self.text = text
        self.tracker = FailureTracker()
        self.memo: Dict[Tuple[str, int, bool], Tuple[Optional[Matched], Tuple[Tuple[int, str], ...]]] = {}
        self.atomic = 0

    def fail(self, position: int, label: str) -> None:
        if not self.atomic:
            self.tracker.record(position, label)


class Expression:
    def match(self, state: MatchState, pos: int) -> Optional[Matched]:
        raise NotImplementedError


class Literal(Expression):
    def __init__(self, text: str):
        self.text = text
        self.label = f'"{text}"'

    def match(self, state, pos):
        if state.text.startswith(self.text, pos):
            return pos + len(self.text), []
        state.fail(pos, self.label)
        return None

    def __repr__(self):
        return self.label


class CharRange(Expression):
    """A single character between ``first`` and ``last`` inclusive."""

    def __init__(self, first: str, last: str):
        self.first = first
        self.last = last

    def match(self, state, pos):
        if pos < len(state.text) and self.first <= state.text[pos] <= self.last:
            return pos + 1, []
        return None

    def __repr__(self):
        return f"'{self.first}'..'{self.last}'"


class CharSet(Expression):
    """A single character out of an explicit set."""

    def __init__(self, chars: str):
        self.chars = frozenset(chars)

    def match(self, state, pos):
        if pos < len(state.text) and state.text[pos] in self.chars:
            return pos + 1, []
        return None

    def __repr__(self):
        return "[" + "".join(sorted(self.chars)) + "]"


class Sequence(Expression):
    def __init__(self, *items: Expression):
        self.items = items

    def match(self, state, pos):
        tokens: List[Token] = []
        for item in self.items:
            result = item.match(state, pos)
            if result is None:
                return None
            pos, produced = result
            tokens.extend(produced)
        return pos, tokens

    def __repr__(self):
        return "(" + " ~ ".join(repr(i) for i in self.items) + ")"


class Choice(Expression):
    def __init__(self, *alternatives: Expression):
        self.alternatives = alternatives

    def match(self, state, pos):
        for alternative in self.alternatives:
            result = alternative.match(state, pos)
            if result is not None:
                return result
        return None

    def __repr__(self):
        return "(" + " | ".join(repr(a) for a in self.alternatives) + ")"


class Opt(Expression):
    def __init__(self, expression: Expression):
        self.expression = expression

    def match(self, state, pos):
        result = self.expression.match(state, pos)
        if result is None:
            return pos, []
        return result

    def __repr__(self):
        return f"{self.expression!r}?"


class Repeat(Expression):
    """``minimum`` or more matches of an expression, as many as possible."""

    def __init__(self, expression: Expression, minimum: int = 0):
        self.expression = expression
        self.minimum = minimum

    def match(self, state, pos):
        tokens: List[Token] = []
        count = 0
        while True:
            result = self.expression.match(state, pos)
            if result is None:
                break
            end, produced = result
            count += 1
            tokens.extend(produced)
            if end == pos:
                # zero-width iteration, matching again would not progress
                break
            pos = end
        if count < self.minimum:
            return None
        return pos, tokens

    def __repr__(self):
        return f"{self.expression!r}{'+' if self.minimum else '*'}"


def ZeroOrMore(expression: Expression) -> Repeat:
    return Repeat(expression, minimum=0)


def OneOrMore(expression: Expression) -> Repeat:
    return Repeat(expression, minimum=1)


class Ref(Expression):
    """Invoke another rule of the grammar by name."""

    def __init__(self, name: str):
        self.name = name

    def match(self, state, pos):
        return state.grammar.invoke(state, self.name, pos)

    def __repr__(self):
        return self.name


class EndOfInput(Expression):
    label = "EOI"

    def match(self, state, pos):
        if pos == len(state.text):
            return pos, []
        state.fail(pos, self.label)
        return None

    def __repr__(self):
        return self.label


class Rule(NamedTuple):
    name: str
    expression: Expression
    silent: bool = False
    atomic: bool = False


class GrammarMatch(NamedTuple):
    """
    Outcome of matching one rule against a string.

    ``end`` is None when the rule failed. ``position`` and ``expected`` describe
    the furthest failure seen during the attempt. They are also set on success,
    from alternatives that failed along the way.
    """

    rule: str
    end: Optional[int]
    tokens: Tuple[Token, ...]
    position: int
    expected: Tuple[str, ...]

    @property
    def succeeded(self) -> bool:
        return self.end is not None


class Grammar:
    def __init__(self, rules: Iterable[Rule], start: str):
        self.rules: Dict[str, Rule] = {}
        for rule in rules:
            if rule.name in self.rules:
                raise ValueError(f"Duplicate grammar rule: {rule.name}")
            self.rules[rule.name] = rule
        if start not in self.rules:
            raise ValueError(f"Unknown start rule: {start}")
        self.start = start
        self._check_references()

    def _check_references(self):
        def walk(expression):
            if isinstance(expression, Ref):
                if expression.name not in self.rules:
                    raise ValueError(f"Grammar references undefined rule: {expression.name}")
            for attr in ("items", "alternatives"):
                for child in getattr(expression, attr, ()):
                    walk(child)
            inner = getattr(expression, "expression", None)
            if inner is not None:
                walk(inner)

        for rule in self.rules.values():
            walk(rule.expression)

    def __contains__(self, name):
        return name in self.rules

    def __getitem__(self, name) -> Rule:
        return self.rules[name]

    def invoke(self, state: MatchState, name: str, pos: int) -> Optional[Matched]:
        rule = self.rules[name]
        inside_atomic = state.atomic > 0
        key = (name, pos, inside_atomic)

        cached = state.memo.get(key)
        if cached is not None:
            result, events = cached
            state.tracker.replay(events)
            return result

        mark = state.tracker.mark()
        if rule.atomic:
            state.atomic += 1
        try:
            result = rule.expression.match(state, pos)
        finally:
            if rule.atomic:
                state.atomic -= 1

        if result is None:
            if not rule.silent and not inside_atomic and not state.tracker.recorded_at(mark, pos):
                state.tracker.record(pos, name)
        else:
            end, children = result
            if rule.silent or inside_atomic:
                result = (end, children if not inside_atomic else [])
            elif rule.atomic:
                result = (end, [Token(name, pos, end, 0)])
            else:
                result = (end, [Token(name, pos, end, 0)] + [t._replace(depth=t.depth + 1) for t in children])

        state.memo[key] = (result, state.tracker.events_since(mark))
        return result

    def match(self, text: str, rule: Optional[str] = None, pos: int = 0) -> GrammarMatch:
        """Attempt a single rule (the start rule by default) at ``pos``."""
        if not isinstance(text, str):
            raise TypeError(f"expected str, got {type(text).__name__}")
        name = rule or self.start
        if name not in self.rules:
            raise KeyError(f"Unknown grammar rule: {name}")

        state = MatchState(self, text)
        result = self.invoke(state, name, pos)
        tracker = state.tracker
        position = tracker.position if tracker.position >= 0 else pos

        if result is None:
            logger.debug(f"{name} failed on {text!r} at {position}, expected {tracker.expected}")
            return GrammarMatch(name, None, (), position, tuple(tracker.expected))

        end, tokens = result
        logger.debug(f"{name} matched {text!r} up to {end} ({len(tokens)} tokens)")
        return GrammarMatch(name, end, tuple(tokens), position, tuple(tracker.expected))


DECIMAL_SIGN = Opt(Choice(Literal("+"), Literal("-")))

SYMBOLS = " !\"#$%&'()*+,-./:;<=>?@\\^_`{|}~"

# (rule name, tag) for the fields carrying a plain list of readings
SCALAR_FIELD_TAGS = (
    ("voltage", "V"),
    ("current", "I"),
    ("temperature", "T"),
    ("humidity", "H"),
    ("pressure", "P"),
    ("custom", "X"),
    ("sun", "S"),
    ("rssi", "R"),
    ("count", "C"),
)

FIELD_RULES = tuple(name for name, _ in SCALAR_FIELD_TAGS) + ("windspeed", "location", "zombie")


def _build_rules() -> List[Rule]:
    rules = [
        Rule("digit", CharRange("0", "9"), silent=True),
        Rule("integer", Sequence(DECIMAL_SIGN, OneOrMore(Ref("digit"))), atomic=True),
        Rule(
            "decimal",
            Sequence(DECIMAL_SIGN, OneOrMore(Ref("digit")), Opt(Sequence(Literal("."), OneOrMore(Ref("digit"))))),
            atomic=True,
        ),
        Rule("lowercase_letter", CharRange("a", "z"), silent=True),
        Rule("uppercase_letter", CharRange("A", "Z"), silent=True),
        Rule("letter", Choice(Ref("lowercase_letter"), Ref("uppercase_letter")), silent=True),
        Rule("symbol", CharSet(SYMBOLS), silent=True),
        Rule("repeat", Ref("digit")),
        Rule("sequence", Ref("lowercase_letter")),
        Rule("decimal_list", Sequence(Opt(Ref("decimal")), ZeroOrMore(Sequence(Literal(","), Opt(Ref("decimal")))))),
    ]
    for name, tag in SCALAR_FIELD_TAGS:
        rules.append(Rule(name, Sequence(Literal(tag), Ref("decimal_list"))))

    rules += [
        Rule(
            "windspeed",
            Sequence(Literal("W"), Opt(Ref("decimal")), Opt(Sequence(Literal(","), Opt(Ref("decimal"))))),
        ),
        Rule(
            "location",
            Sequence(
                Literal("L"),
                Choice(Opt(Sequence(Ref("decimal"), Literal(","), Ref("decimal"))), Literal(",")),
                Opt(Sequence(Literal(","), Opt(Ref("decimal")))),
            ),
        ),
        Rule("zombie", Sequence(Literal("Z"), Choice(Literal("0"), Literal("1")))),
        Rule("data_field", Choice(*(Ref(name) for name in FIELD_RULES))),
        Rule("data", ZeroOrMore(Ref("data_field"))),
        Rule("comment_content", ZeroOrMore(Choice(Ref("letter"), Ref("digit"), Ref("symbol"))), atomic=True),
        Rule("comment", Sequence(Literal(":"), Ref("comment_content"))),
        Rule("node_name_content", ZeroOrMore(Choice(Ref("letter"), Ref("digit"))), atomic=True),
        Rule("node_name", Ref("node_name_content")),
        Rule("path", Sequence(Literal("["), Ref("node_name"), ZeroOrMore(Sequence(Literal(","), Ref("node_name"))), Literal("]"))),
        Rule(
            "packet",
            Sequence(Ref("repeat"), Ref("sequence"), Ref("data"), Opt(Ref("comment")), Ref("path"), EndOfInput()),
        ),
    ]
    return rules


GRAMMAR = Grammar(_build_rules(), start="packet")
