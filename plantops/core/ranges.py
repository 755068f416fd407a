# plantops/core/ranges.py
import logging
from typing import Callable, Dict, Optional

from .models import Bounds, MaterialType, Parameter
from .utils import clean_value

logger = logging.getLogger(__name__)

# Material variant lookup. Absent material (None) has no variant and always
# falls back to the general pair.
_VARIANT_BOUNDS: Dict[MaterialType, Callable[[Parameter], Bounds]] = {
    MaterialType.OPC: lambda p: p.opc_bounds,
    MaterialType.PCC: lambda p: p.pcc_bounds,
}


def resolve_bounds(parameter: Parameter, material=None) -> Bounds:
    """
    Resolves the target bounds of a parameter for a material context.

    Args:
        parameter: The parameter master record.
        material: MaterialType, a tag string ('OPC', 'PCC') or None.

    Returns:
        Bounds: The material variant when both of its bounds are defined,
        otherwise the general pair. The result may be invalid
        (`is_valid` False); callers treat that as "uncomputable".
    """
    material = MaterialType.parse(material)
    variant = _VARIANT_BOUNDS.get(material)
    if variant is not None:
        bounds = variant(parameter)
        if bounds.is_defined:
            return bounds
    return parameter.general_bounds


def compute_compliance(value, bounds: Bounds) -> Optional[float]:
    """
    Normalizes a value to its position inside the target range.

    Formula:
        pct = (value - min) / (max - min) * 100

    The result is signed and never clamped: below 0 or above 100 marks an
    excursion, not an error. Returns None when the range is invalid or the
    value is absent/NaN/infinite.
    """
    number = clean_value(value)
    if number is None or not bounds.is_valid:
        return None
    return (number - bounds.min) / (bounds.max - bounds.min) * 100.0


def is_within_bounds(value, bounds: Bounds) -> Optional[bool]:
    """
    Context-resolved in-range check used by the compliance views.
    None when either the value or the range is unusable.
    """
    number = clean_value(value)
    if number is None or not bounds.is_valid:
        return None
    return bounds.min <= number <= bounds.max


def is_within_any_bounds(value, parameter: Parameter) -> bool:
    """
    Ranking in-range check: true if the value satisfies any of the
    general, OPC or PCC pairs that have both bounds defined.

    The leaderboard counts a reading as in target regardless of the
    material being produced.
    """
    number = clean_value(value)
    if number is None:
        return False
    for bounds in (parameter.general_bounds, parameter.opc_bounds, parameter.pcc_bounds):
        if bounds.is_defined and bounds.min <= number <= bounds.max:
            return True
    return False


def display_bounds(parameter: Parameter) -> Bounds:
    """Bounds shown next to ranking breakdowns: general, else OPC, else 0."""
    lo = parameter.min_value if parameter.min_value is not None else parameter.opc_min_value
    hi = parameter.max_value if parameter.max_value is not None else parameter.opc_max_value
    return Bounds(lo if lo is not None else 0.0, hi if hi is not None else 0.0)
