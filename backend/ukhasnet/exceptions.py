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

from typing import Iterable, Optional, Tuple


class ParseError(Exception):
    """
    Raised when a packet does not match the UKHASnet grammar.

    Carries the furthest input offset the grammar reached and the distinct
    labels that were being attempted there, in the order they were first tried.
    """

    def __init__(self, text: str, position: int, expected: Iterable[str], message: Optional[str] = None):
        self.text = text
        self.position = position
        self.expected: Tuple[str, ...] = tuple(expected)
        if message is None:
            message = f"Failure at input position {position}, expected one of: {', '.join(self.expected)}"
        super().__init__(message)
        self.message = message

    def caret(self) -> Tuple[str, str]:
        """Return the input line and a marker line pointing at the failure position."""
        return self.text, " " * self.position + "^"

    def __str__(self):
        base_str = f"ParseError: {self.message}"
        return base_str


class GrammarInvariantError(Exception):
    """
    A token the grammar guaranteed to be well formed could not be reduced.

    Signals a bug in the grammar/reducer pairing rather than a bad packet.
    Not a ParseError subclass.
    """

    def __init__(self, message: str, rule: Optional[str] = None, start: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.rule = rule
        self.start = start

    def __str__(self):
        base_str = f"GrammarInvariantError: {self.message}"
        if self.rule is not None:
            base_str += f" (rule {self.rule} at {self.start})"
        return base_str
