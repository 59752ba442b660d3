"""Conversion of item values and client arguments to JSON-safe data."""

import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Mapping, Sequence

import numpy as np

from .dom import UIEvent


def to_json_value(value: Any) -> Any:
    """
    Convert a value produced by a value provider to a JSON-safe value.

    Handles numpy scalars and arrays, dates, decimals and nested
    containers. Non-finite floats become None. Anything else falls back to
    its string representation.

    Args:
        value: Any value

    Returns:
        A value composed of dict, list, str, int, float, bool and None
    """
    # numpy first: np.float64 subclasses float
    if isinstance(value, np.ndarray):
        return [to_json_value(v) for v in value.tolist()]
    if isinstance(value, np.generic):
        return to_json_value(value.item())
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return to_json_value(float(value))
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(v) for v in value]
    return str(value)


def is_event_like(value: Any) -> bool:
    """
    Check whether a client argument is an event object.

    Native events and anything wrapping one (an object with a
    ``native_event`` attribute, or a mapping with a ``nativeEvent`` key) are
    event-like. Such objects reference their targets and do not serialize.
    """
    if isinstance(value, UIEvent):
        return True
    if isinstance(value, Mapping):
        return "nativeEvent" in value
    return hasattr(value, "native_event")


def filter_client_args(args: Sequence[Any]) -> List[Any]:
    """Drop event-like arguments, keeping the order of the rest."""
    return [arg for arg in args if not is_event_like(arg)]
