import math
import numpy as np
import logging
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

def clean_value(value) -> Optional[float]:
    """
    Coerces a raw reading into a finite float.

    Returns None for None, empty strings, non-numeric text, NaN and +/-inf.
    Booleans are rejected as well, they are never a valid measurement.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number

def valid_values(values: Iterable) -> List[float]:
    """Returns only the finite numeric entries of a sequence, in order."""
    cleaned = (clean_value(v) for v in values)
    return [v for v in cleaned if v is not None]

def indexed_valid_values(values: Iterable) -> List[Tuple[int, float]]:
    """Like valid_values() but keeps each entry's position in the input."""
    result = []
    for idx, v in enumerate(values):
        number = clean_value(v)
        if number is not None:
            result.append((idx, number))
    return result

def to_array(values: Iterable) -> np.ndarray:
    """Valid entries as a float64 array (empty array if none)."""
    return np.asarray(valid_values(values), dtype=np.float64)
