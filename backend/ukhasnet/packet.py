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
UKHASnet packet data model

A packet on the wire looks like ``3bT21,22H68L51.5,-1.2:hello[AG,AH]``:

    3            repeat count (0-9)
    b            sequence letter (a-z)
    T21,22 ...   data fields, each introduced by a single tag letter
    :hello       optional comment
    [AG,AH]      path of node names, originating node first

All classes here are frozen dataclasses. Each data field can encode itself back
to its wire form, so ``Packet.encode()`` yields text that parses to an equal
packet.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Optional, Tuple


def format_decimal(value: float) -> str:
    """
    Render a float in the plain ``[+-]digits[.digits]`` form the grammar accepts.

    Raises ValueError for inf and nan, which have no such form.
    """
    if not math.isfinite(value):
        raise ValueError(f"{value!r} has no decimal wire form")
    text = repr(float(value))
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


@dataclass(frozen=True)
class DataField:
    """Base class of every typed element in the data section of a packet."""

    tag: ClassVar[str] = ""

    def encode(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class ScalarField(DataField):
    """A tag followed by a comma separated list of readings, e.g. ``T12.5,-3``."""

    values: Tuple[float, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    def encode(self) -> str:
        return self.tag + ",".join(format_decimal(v) for v in self.values)


@dataclass(frozen=True)
class Voltage(ScalarField):
    tag: ClassVar[str] = "V"


@dataclass(frozen=True)
class Current(ScalarField):
    tag: ClassVar[str] = "I"


@dataclass(frozen=True)
class Temperature(ScalarField):
    tag: ClassVar[str] = "T"


@dataclass(frozen=True)
class Humidity(ScalarField):
    tag: ClassVar[str] = "H"


@dataclass(frozen=True)
class Pressure(ScalarField):
    tag: ClassVar[str] = "P"


@dataclass(frozen=True)
class Sun(ScalarField):
    tag: ClassVar[str] = "S"


@dataclass(frozen=True)
class Rssi(ScalarField):
    tag: ClassVar[str] = "R"


@dataclass(frozen=True)
class Count(ScalarField):
    tag: ClassVar[str] = "C"


@dataclass(frozen=True)
class Custom(ScalarField):
    tag: ClassVar[str] = "X"


@dataclass(frozen=True)
class Location(DataField):
    """
    Position report. Any subset of the components may be missing:

        L51.5,-1.2,120   latlng and altitude
        L51.5,-1.2       latlng only
        L,120            altitude only
        L                nothing
    """

    tag: ClassVar[str] = "L"

    latlng: Optional[Tuple[float, float]] = None
    altitude: Optional[float] = None

    def __post_init__(self):
        if self.latlng is not None:
            latitude, longitude = self.latlng
            object.__setattr__(self, "latlng", (float(latitude), float(longitude)))
        if self.altitude is not None:
            object.__setattr__(self, "altitude", float(self.altitude))

    @property
    def latitude(self) -> Optional[float]:
        return self.latlng[0] if self.latlng is not None else None

    @property
    def longitude(self) -> Optional[float]:
        return self.latlng[1] if self.latlng is not None else None

    def encode(self) -> str:
        text = self.tag
        if self.latlng is not None:
            text += f"{format_decimal(self.latlng[0])},{format_decimal(self.latlng[1])}"
        if self.altitude is not None:
            text += f",{format_decimal(self.altitude)}"
        return text


@dataclass(frozen=True)
class WindSpeed(DataField):
    """Wind report: ``W12,270`` (speed and bearing), ``W12`` or ``W,270``."""

    tag: ClassVar[str] = "W"

    speed: Optional[float] = None
    bearing: Optional[float] = None

    def __post_init__(self):
        if self.speed is not None:
            object.__setattr__(self, "speed", float(self.speed))
        if self.bearing is not None:
            object.__setattr__(self, "bearing", float(self.bearing))

    def encode(self) -> str:
        text = self.tag
        if self.speed is not None:
            text += format_decimal(self.speed)
        if self.bearing is not None:
            text += f",{format_decimal(self.bearing)}"
        return text


@dataclass(frozen=True)
class Zombie(DataField):
    tag: ClassVar[str] = "Z"

    mode: int = 0

    def __post_init__(self):
        if self.mode not in (0, 1):
            raise ValueError(f"Zombie mode must be 0 or 1, got {self.mode!r}")

    def encode(self) -> str:
        return f"{self.tag}{self.mode}"


# Field classes keyed by the grammar rule that recognises them
SCALAR_FIELDS = {
    "voltage": Voltage,
    "current": Current,
    "temperature": Temperature,
    "humidity": Humidity,
    "pressure": Pressure,
    "sun": Sun,
    "rssi": Rssi,
    "count": Count,
    "custom": Custom,
}


@dataclass(frozen=True)
class Packet:
    """One telemetry message as sent by a UKHASnet node."""

    repeat: int
    sequence: str
    data: Tuple[DataField, ...] = field(default_factory=tuple)
    comment: Optional[str] = None
    path: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not 0 <= self.repeat <= 9:
            raise ValueError(f"repeat must be 0-9, got {self.repeat!r}")
        if len(self.sequence) != 1 or not "a" <= self.sequence <= "z":
            raise ValueError(f"sequence must be a single letter a-z, got {self.sequence!r}")
        object.__setattr__(self, "data", tuple(self.data))
        object.__setattr__(self, "path", tuple(self.path))
        if not self.path:
            raise ValueError("path must contain at least one node")

    @property
    def origin(self) -> str:
        """Name of the node that first transmitted the packet."""
        return self.path[0]

    def fields_of(self, kind) -> Tuple[DataField, ...]:
        return tuple(f for f in self.data if isinstance(f, kind))

    def encode(self) -> str:
        text = f"{self.repeat}{self.sequence}"
        text += "".join(f.encode() for f in self.data)
        if self.comment is not None:
            text += f":{self.comment}"
        return text + "[" + ",".join(self.path) + "]"
