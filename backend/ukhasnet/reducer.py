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
Semantic reducer: token tree -> Packet

Walks the tokens of a successful recognition and folds them into the typed
data model. List-valued constructs (decimal lists, the data section, the path)
are built right to left, prepending each reduced element to the already reduced
remainder of its sibling tokens.

Any failure in here means the grammar let through something it should not
have, so it is reported as GrammarInvariantError and never as ParseError. The
same goes for a decimal too large for a float: it is refused rather than
stored as inf.
"""

import logging
import math
from collections import deque
from typing import Callable, List, Optional, Tuple, TypeVar

from .exceptions import GrammarInvariantError
from .packet import SCALAR_FIELDS, DataField, Location, Packet, WindSpeed, Zombie
from .tokens import TokenTree

logger = logging.getLogger("ukhasnet.reducer")

T = TypeVar("T")


class PacketReducer:
    """Stateless pass turning a packet TokenTree into a Packet."""

    def reduce(self, tree: TokenTree) -> Packet:
        if not len(tree) or tree.root.rule != "packet":
            raise GrammarInvariantError("token tree does not start with a packet token")

        repeat: Optional[int] = None
        sequence: Optional[str] = None
        data: Tuple[DataField, ...] = ()
        comment: Optional[str] = None
        path: Tuple[str, ...] = ()

        for index in tree.children(0):
            rule = tree[index].rule
            if rule == "repeat":
                repeat = self._repeat(tree, index)
            elif rule == "sequence":
                sequence = tree.span_text(tree[index])
            elif rule == "data":
                data = self._fold(tree, tree.children(index), "data_field", self._data_field)
            elif rule == "comment":
                comment = self._comment(tree, index)
            elif rule == "path":
                path = self._fold(tree, tree.children(index), "node_name", self._node_name)
            else:
                self._unexpected(tree, index)

        if repeat is None or sequence is None or not path:
            raise GrammarInvariantError("packet token is missing repeat, sequence or path")

        try:
            packet = Packet(repeat=repeat, sequence=sequence, data=data, comment=comment, path=path)
        except ValueError as e:
            raise GrammarInvariantError(f"reduced packet violates the data model: {e}") from e

        logger.debug(f"Reduced {tree.text!r} into {len(packet.data)} data fields via {len(packet.path)} nodes")
        return packet

    @staticmethod
    def _fold(tree: TokenTree, indices: List[int], rule: str, reduce_one: Callable[[TokenTree, int], T]) -> Tuple[T, ...]:
        """Reduce the ``rule`` tokens among ``indices``, prepending from the right."""
        folded: deque = deque()
        for index in reversed(indices):
            if tree[index].rule == rule:
                folded.appendleft(reduce_one(tree, index))
        return tuple(folded)

    @staticmethod
    def _unexpected(tree: TokenTree, index: int):
        token = tree[index]
        raise GrammarInvariantError(f"unexpected {token.rule} token", rule=token.rule, start=token.start)

    @staticmethod
    def _number(tree: TokenTree, index: int) -> float:
        token = tree[index]
        if token.rule != "decimal":
            raise GrammarInvariantError(f"expected decimal token, got {token.rule}", rule=token.rule, start=token.start)
        text = tree.span_text(token)
        try:
            value = float(text)
        except ValueError as e:
            raise GrammarInvariantError(f"decimal token {text!r} is not numeric", rule=token.rule, start=token.start) from e
        if not math.isfinite(value):
            raise GrammarInvariantError(f"decimal token of {len(text)} characters overflows a float", rule=token.rule, start=token.start)
        return value

    def _repeat(self, tree: TokenTree, index: int) -> int:
        token = tree[index]
        text = tree.span_text(token)
        if not text.isdigit() or len(text) != 1:
            raise GrammarInvariantError(f"repeat token {text!r} is not a single digit", rule=token.rule, start=token.start)
        return int(text)

    def _decimal_list(self, tree: TokenTree, index: int) -> Tuple[float, ...]:
        return self._fold(tree, tree.children(index), "decimal", self._number)

    def _data_field(self, tree: TokenTree, index: int) -> DataField:
        children = tree.children(index)
        if len(children) != 1:
            raise GrammarInvariantError("data_field must wrap exactly one field token", rule="data_field", start=tree[index].start)
        field_index = children[0]
        rule = tree[field_index].rule

        if rule in SCALAR_FIELDS:
            lists = [i for i in tree.children(field_index) if tree[i].rule == "decimal_list"]
            if len(lists) != 1:
                self._unexpected(tree, field_index)
            return SCALAR_FIELDS[rule](self._decimal_list(tree, lists[0]))
        if rule == "location":
            return self._location(tree, field_index)
        if rule == "windspeed":
            return self._windspeed(tree, field_index)
        if rule == "zombie":
            return self._zombie(tree, field_index)
        self._unexpected(tree, field_index)

    def _location(self, tree: TokenTree, index: int) -> Location:
        values = self._fold(tree, tree.children(index), "decimal", self._number)
        if len(values) == 3:
            return Location(latlng=(values[0], values[1]), altitude=values[2])
        if len(values) == 2:
            return Location(latlng=(values[0], values[1]))
        if len(values) == 1:
            return Location(altitude=values[0])
        if not values:
            return Location()
        raise GrammarInvariantError("location carries too many values", rule="location", start=tree[index].start)

    def _windspeed(self, tree: TokenTree, index: int) -> WindSpeed:
        """
        A lone value directly after ``W`` is the speed, a lone value after the
        comma (``W,270``) is the bearing. Older UKHASnet decoders put any lone
        value into the speed; that loses the omitted speed on re-encoding, so
        ``W,270`` must keep mapping to the bearing.
        """
        token = tree[index]
        decimals = [i for i in tree.children(index) if tree[i].rule == "decimal"]
        if len(decimals) == 2:
            return WindSpeed(speed=self._number(tree, decimals[0]), bearing=self._number(tree, decimals[1]))
        if len(decimals) == 1:
            value = self._number(tree, decimals[0])
            if tree[decimals[0]].start == token.start + 1:
                return WindSpeed(speed=value)
            return WindSpeed(bearing=value)
        if not decimals:
            return WindSpeed()
        raise GrammarInvariantError("windspeed carries too many values", rule="windspeed", start=token.start)

    def _zombie(self, tree: TokenTree, index: int) -> Zombie:
        token = tree[index]
        text = tree.span_text(token)[1:]
        try:
            return Zombie(int(text))
        except ValueError as e:
            raise GrammarInvariantError(f"zombie mode {text!r} is not 0 or 1", rule=token.rule, start=token.start) from e

    def _comment(self, tree: TokenTree, index: int) -> str:
        contents = [i for i in tree.children(index) if tree[i].rule == "comment_content"]
        if len(contents) != 1:
            raise GrammarInvariantError("comment must wrap one comment_content token", rule="comment", start=tree[index].start)
        return tree.span_text(tree[contents[0]])

    def _node_name(self, tree: TokenTree, index: int) -> str:
        contents = tree.children(index)
        if len(contents) != 1 or tree[contents[0]].rule != "node_name_content":
            raise GrammarInvariantError("node_name must wrap one node_name_content token", rule="node_name", start=tree[index].start)
        return tree.span_text(tree[contents[0]]).upper()
