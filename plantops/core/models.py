# plantops/core/models.py
"""
Master data and reading types handed to the analytics engines.

Everything here is a read-only snapshot of what the record store returned;
the engines never mutate these objects.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Tuple

HOURS_PER_DAY = 24


class MaterialType(str, Enum):
    """Cement type selecting which bound pair of a parameter applies."""
    OPC = "OPC"
    PCC = "PCC"

    @classmethod
    def parse(cls, tag) -> Optional["MaterialType"]:
        """
        Parses a material tag case-insensitively.

        None, empty and unknown tags give None, which means the general
        bounds are used.
        """
        if tag is None:
            return None
        if isinstance(tag, MaterialType):
            return tag
        try:
            return cls(str(tag).strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Bounds:
    """A (min, max) target pair. Either side may be undefined."""
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_defined(self) -> bool:
        return self.min is not None and self.max is not None

    @property
    def is_valid(self) -> bool:
        """Both bounds defined, finite and max > min."""
        if not self.is_defined:
            return False
        if not (math.isfinite(self.min) and math.isfinite(self.max)):
            return False
        return self.max > self.min

    @property
    def span(self) -> Optional[float]:
        if not self.is_valid:
            return None
        return self.max - self.min


@dataclass(frozen=True)
class Parameter:
    """A monitored parameter with its general and material-specific ranges."""
    id: str
    name: str
    unit_of_measure: str = ""
    category: str = ""
    unit: str = ""
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    opc_min_value: Optional[float] = None
    opc_max_value: Optional[float] = None
    pcc_min_value: Optional[float] = None
    pcc_max_value: Optional[float] = None

    @property
    def general_bounds(self) -> Bounds:
        return Bounds(self.min_value, self.max_value)

    @property
    def opc_bounds(self) -> Bounds:
        return Bounds(self.opc_min_value, self.opc_max_value)

    @property
    def pcc_bounds(self) -> Bounds:
        return Bounds(self.pcc_min_value, self.pcc_max_value)


@dataclass(frozen=True)
class HourlyReading:
    """
    One operator's entries for one parameter on one day.

    `hours[0]` is hour1 (00:00-01:00) and `hours[23]` is hour24. Slots are
    kept as received; validation happens in the engines.
    """
    operator_name: str
    parameter_id: str
    date: date
    hours: Tuple = field(default_factory=lambda: (None,) * HOURS_PER_DAY)

    def __post_init__(self):
        hours = tuple(self.hours)
        if len(hours) < HOURS_PER_DAY:
            hours = hours + (None,) * (HOURS_PER_DAY - len(hours))
        elif len(hours) > HOURS_PER_DAY:
            hours = hours[:HOURS_PER_DAY]
        object.__setattr__(self, "hours", hours)


@dataclass(frozen=True)
class Operator:
    id: str
    name: str
    role: str = "Operator"
    active: bool = True
