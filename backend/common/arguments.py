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

import argparse
from pathlib import Path

DEFAULT_LOG_CONFIG = str(Path(__file__).resolve().parent / "logconfig.yaml")

parser = argparse.ArgumentParser(description="Parse a file of UKHASnet packets and report how many are valid.")
parser.add_argument("packets", type=str, help="Path to a text file with one packet per line")
parser.add_argument(
    "--log-level",
    type=str,
    default="INFO",
    choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    help="Set the logging level",
)
parser.add_argument(
    "--log-config", type=str, default=DEFAULT_LOG_CONFIG, help="Path to the logger configuration file"
)
parser.add_argument(
    "--show-errors",
    type=lambda x: str(x).lower() in ("true", "1", "t"),
    default=False,
    help="Log the diagnostic for every rejected packet",
)


def parse_arguments(argv=None):
    """Parse command-line arguments, ``sys.argv`` when ``argv`` is None."""
    return parser.parse_args(argv)
