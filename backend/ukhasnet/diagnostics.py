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
Diagnostics for packets the grammar rejected.

Turns the failure state of a GrammarMatch into a ParseError without scanning
the input again, and optionally maps the expected labels to human phrases
using a YAML table (messages.yaml next to this module by default).
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import yaml

from .exceptions import ParseError
from .grammar import GrammarMatch

logger = logging.getLogger("ukhasnet.diagnostics")

DEFAULT_MESSAGES = Path(__file__).resolve().parent / "messages.yaml"


def build_parse_error(text: str, match: GrammarMatch) -> ParseError:
    """
    Build the ParseError describing a failed match.

    :param text: The input that was matched.
    :param match: A GrammarMatch whose ``succeeded`` is False.
    :return: ParseError carrying the furthest position and the expected labels.
    :raises ValueError: If the match actually succeeded.
    """
    if match.succeeded:
        raise ValueError("cannot build a ParseError from a successful match")
    return ParseError(text, match.position, match.expected)


def _read_messages(filepath: Union[str, Path]) -> Dict[str, str]:
    with open(filepath, "r") as file:
        loaded = yaml.safe_load(file) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{filepath}: expected a mapping of label to phrase")
    return {str(label): str(phrase) for label, phrase in loaded.items()}


@lru_cache(maxsize=None)
def _default_messages() -> Dict[str, str]:
    return _read_messages(DEFAULT_MESSAGES)


def load_messages(filepath: Optional[Union[str, Path]] = None) -> Dict[str, str]:
    """
    Load a label -> phrase table.

    :param filepath: YAML file to read, the bundled messages.yaml when omitted.
    :raises FileNotFoundError: If the file does not exist.
    :raises yaml.YAMLError: If the file is not valid YAML.
    """
    if filepath is None:
        return dict(_default_messages())
    messages = _read_messages(filepath)
    logger.debug(f"Loaded {len(messages)} diagnostic messages from {filepath}")
    return messages


def describe(error: ParseError, messages: Optional[Mapping[str, str]] = None) -> str:
    """Return the phrase for the first expected label that has one."""
    if messages is None:
        messages = _default_messages()
    for label in error.expected:
        phrase = messages.get(label)
        if phrase:
            return phrase
    if not error.expected:
        return f"Unexpected input at position {error.position}"
    return f"Expected one of {', '.join(error.expected)} at position {error.position}"
