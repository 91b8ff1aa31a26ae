#!/usr/bin/env python3
# -*- coding: utf-8 -*-
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
UKHASnet packet parser

Data flow
---------

    raw text
       ↓
    [GRAMMAR]  ukhasnet.grammar.GRAMMAR.match()   ordered-choice PEG, memoized
       ↓                      ↓
    token tree            furthest position + expected labels
       ↓                      ↓
    [REDUCER]  PacketReducer   [DIAGNOSTICS] build_parse_error()
       ↓                      ↓
    Packet                 ParseError (raised)

Entry points
------------

- ``parse(text) -> Packet``: raises ParseError for malformed packets and
  GrammarInvariantError if the reducer meets a token the grammar should never
  have produced.
- ``recognize(text) -> TokenTree``: the positioned tokens before reduction, for
  tooling that inspects the raw structure. Raises ParseError the same way.

Calls share no mutable state, the module-level functions may be used from
several threads at once.
"""

import logging
from typing import Iterable, Iterator, Optional, Tuple, Union

from .diagnostics import build_parse_error
from .exceptions import ParseError
from .grammar import GRAMMAR, Grammar
from .packet import Packet
from .reducer import PacketReducer
from .tokens import TokenTree

logger = logging.getLogger("ukhasnet.parser")


class UKHASnetParser:
    """
    Parse UKHASnet packets

    Architecture:
    1. Recognize the text with the packet grammar
    2. Reduce the token tree into a Packet
    3. On failure, raise a ParseError built from the grammar's failure state
    """

    def __init__(self, grammar: Optional[Grammar] = None, reducer: Optional[PacketReducer] = None):
        self.grammar = grammar or GRAMMAR
        self.reducer = reducer or PacketReducer()
        logger.debug(f"UKHASnet parser initialized (start rule: {self.grammar.start})")

    def recognize(self, text: str) -> TokenTree:
        """
        Recognize a packet and return its token tree.

        Args:
            text: One packet, without line terminator

        Returns:
            TokenTree with the positioned tokens, root token first

        Raises:
            ParseError: if the text does not match the packet grammar
        """
        match = self.grammar.match(text)
        if not match.succeeded:
            raise build_parse_error(text, match)
        return TokenTree(text, match.tokens)

    def parse(self, text: str) -> Packet:
        """
        Parse a packet into its typed representation.

        Raises:
            ParseError: if the text does not match the packet grammar
            GrammarInvariantError: if a recognized token cannot be reduced
        """
        return self.reducer.reduce(self.recognize(text))

    def parse_many(self, lines: Iterable[str]) -> Iterator[Tuple[str, Union[Packet, ParseError]]]:
        """
        Parse a stream of packets, yielding ``(line, Packet or ParseError)``.

        Line terminators are stripped. Rejected lines do not stop the stream,
        internal invariant violations do.
        """
        for line in lines:
            line = line.rstrip("\r\n")
            try:
                yield line, self.parse(line)
            except ParseError as e:
                logger.debug(f"Rejected {line!r}: {e.message}")
                yield line, e


_default_parser = UKHASnetParser()


def parse(text: str) -> Packet:
    return _default_parser.parse(text)


def recognize(text: str) -> TokenTree:
    return _default_parser.recognize(text)
