"""
Validation rules for incoming query parameters.

Each rule normalizes casing, checks membership and returns the normalized
value, or raises InvalidParameterError with a fixed message.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional

from grix_constants import (
    ERROR_MESSAGES,
    OPTION_TYPES,
    PERPS_PROTOCOLS,
    POSITION_TYPES,
    RISK_LEVELS,
    STRATEGY_FOCUSES,
    SUPPORTED_ASSETS,
)
from grix_errors import InvalidParameterError


def _normalize(value: Any, upper: bool = False) -> str:
    if not isinstance(value, str):
        return ""
    stripped = value.strip()
    return stripped.upper() if upper else stripped.lower()


def _check_member(value: str, allowed: Iterable[str], message: str) -> str:
    if value not in allowed:
        raise InvalidParameterError(message)
    return value


def validate_asset(asset: Any) -> str:
    return _check_member(_normalize(asset, upper=True), SUPPORTED_ASSETS, ERROR_MESSAGES["INVALID_ASSET"])


def validate_option_type(option_type: Any) -> str:
    return _check_member(_normalize(option_type), OPTION_TYPES, ERROR_MESSAGES["INVALID_OPTION_TYPE"])


def validate_position_type(position_type: Any) -> Optional[str]:
    """Position type is optional; ``None`` passes through."""
    if position_type is None:
        return None
    return _check_member(_normalize(position_type), POSITION_TYPES, ERROR_MESSAGES["INVALID_POSITION_TYPE"])


def validate_protocol(protocol_name: Any) -> str:
    return _check_member(
        _normalize(protocol_name),
        PERPS_PROTOCOLS,
        ERROR_MESSAGES["INVALID_PROTOCOL"].format(protocol=protocol_name),
    )


def validate_risk_level(risk_level: Any) -> str:
    return _check_member(_normalize(risk_level), RISK_LEVELS, ERROR_MESSAGES["INVALID_RISK_LEVEL"])


def validate_strategy_focus(strategy_focus: Any) -> str:
    return _check_member(_normalize(strategy_focus), STRATEGY_FOCUSES, ERROR_MESSAGES["INVALID_STRATEGY_FOCUS"])


def validate_positive(value: Any, message: str) -> float:
    """Strictly greater than zero. Booleans and NaN are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameterError(message)
    if math.isnan(value) or value <= 0:
        raise InvalidParameterError(message)
    return value
