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
Positioned token records produced by the grammar engine.

A successful recognition yields a flat, pre-ordered list of tokens. Each token
names the rule that produced it, the half-open span ``[start, end)`` it covers
and how deeply it is nested. For ``2bT12[AG]``:

    packet 0-9
        repeat 0-1
        sequence 1-2
        data 2-5
            data_field 2-5
                temperature 2-5
                    decimal_list 3-5
                        decimal 3-5
        path 5-9
            node_name 6-8
                node_name_content 6-8
"""

from typing import Iterator, List, NamedTuple, Sequence


class Token(NamedTuple):
    rule: str
    start: int
    end: int
    depth: int = 0


class TokenTree:
    """Immutable, index-addressed view over the tokens of one recognition."""

    def __init__(self, text: str, tokens: Sequence[Token]):
        self.text = text
        self.tokens = tuple(tokens)

    def __len__(self):
        return len(self.tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]

    @property
    def root(self) -> Token:
        return self.tokens[0]

    def span_text(self, token: Token) -> str:
        return self.text[token.start : token.end]

    def children(self, index: int) -> List[int]:
        """Indices of the tokens directly nested inside the token at ``index``."""
        parent = self.tokens[index]
        found = []
        for position in range(index + 1, len(self.tokens)):
            token = self.tokens[position]
            if token.depth <= parent.depth:
                break
            if token.depth == parent.depth + 1:
                found.append(position)
        return found

    def find(self, rule: str) -> List[int]:
        return [i for i, token in enumerate(self.tokens) if token.rule == rule]

    def __repr__(self):
        return f"TokenTree({self.text!r}, {len(self.tokens)} tokens)"
