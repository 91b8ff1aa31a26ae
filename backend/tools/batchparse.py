#!/usr/bin/env python3
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
Batch process a text file full of UKHASnet packets and report how many parsed.

Usage:
    python backend/tools/batchparse.py packets.txt
    python backend/tools/batchparse.py packets.txt --show-errors true --log-level DEBUG
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

BACKEND_DIR = str(Path(__file__).resolve().parent.parent)

# Running as a script from the repository root
if not __package__ and BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from common.arguments import parse_arguments  # noqa: E402
from common.exceptions import PacketSourceError  # noqa: E402
from common.logger import get_logger  # noqa: E402
from ukhasnet.diagnostics import describe  # noqa: E402
from ukhasnet.exceptions import ParseError  # noqa: E402
from ukhasnet.parser import UKHASnetParser  # noqa: E402

logger = logging.getLogger("ukhasnet.batchparse")


def read_packets(path) -> List[str]:
    """Read one packet per line, line terminators removed."""
    try:
        with open(path, "r", encoding="ascii", errors="replace") as file:
            return [line.rstrip("\r\n") for line in file]
    except OSError as e:
        raise PacketSourceError(f"Cannot read packets from {path}: {e}", source=str(path)) from e


def count_parsed(lines: Iterable[str], parser: Optional[UKHASnetParser] = None, show_errors: bool = False) -> Tuple[int, int]:
    """
    Parse every line and count the successes.

    Returns:
        (parsed, total)
    """
    parser = parser or UKHASnetParser()
    total = 0
    parsed = 0

    for line, result in parser.parse_many(lines):
        total += 1
        if isinstance(result, ParseError):
            if show_errors:
                logger.info(f"Line {total}: {describe(result)} (position {result.position}): {line!r}")
            continue
        parsed += 1

    return parsed, total


def main(argv=None) -> int:
    args = parse_arguments(argv)
    log = get_logger(args)

    try:
        lines = read_packets(args.packets)
    except PacketSourceError as e:
        log.error(str(e))
        return 1

    parsed, total = count_parsed(lines, show_errors=args.show_errors)
    log.info(f"Parsed {parsed}/{total} packets")
    return 0


if __name__ == "__main__":
    sys.exit(main())
