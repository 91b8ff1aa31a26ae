"""
UKHASnet packet parsing

Grammar engine + semantic reducer + diagnostics for the ASCII UKHASnet
telemetry format, e.g. ``3bT21S80[AG,AH]``.
"""

from .exceptions import GrammarInvariantError, ParseError
from .packet import (
    Count,
    Current,
    Custom,
    DataField,
    Humidity,
    Location,
    Packet,
    Pressure,
    Rssi,
    Sun,
    Temperature,
    Voltage,
    WindSpeed,
    Zombie,
)
from .parser import UKHASnetParser, parse, recognize
from .tokens import Token, TokenTree

__all__ = [
    "parse",
    "recognize",
    "UKHASnetParser",
    "ParseError",
    "GrammarInvariantError",
    "Packet",
    "DataField",
    "Voltage",
    "Current",
    "Temperature",
    "Humidity",
    "Pressure",
    "Sun",
    "Rssi",
    "Count",
    "Custom",
    "Location",
    "WindSpeed",
    "Zombie",
    "Token",
    "TokenTree",
]
