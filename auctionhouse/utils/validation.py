"""
Input Validation - sanitization of values crossing the engine boundary.

Every validator returns (is_valid, error_message) so callers can decide
whether to reject, report, or convert the failure into an exception.
"""

import re
from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_IDENTITY_LENGTH = 128
MAX_TITLE_LENGTH = 256
MAX_URI_LENGTH = 2048
ADDRESS_BYTES = 20

MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1  # uint256, as in the contract ABI
MAX_TIMESTAMP = 2**63 - 1  # SQLite INTEGER is signed 64-bit


# =============================================================================
# Primitive Validators
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass; True is not an amount
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a token amount in base units."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_duration(
    duration: Any,
    max_duration: Optional[int] = None,
) -> Tuple[bool, str]:
    """Validate an auction duration in seconds (> 0, optionally capped)."""
    upper = max_duration if max_duration is not None else MAX_TIMESTAMP
    return validate_integer(duration, "duration_seconds", 1, upper)


def validate_string(
    value: Any,
    name: str,
    max_length: int,
    allow_empty: bool = True,
    pattern: Optional[str] = None,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        allow_empty: Whether blank strings are accepted
        pattern: Optional regex pattern

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not allow_empty and not value.strip():
        return False, f"{name} must not be empty"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.match(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_identity(value: Any, name: str = "identity") -> Tuple[bool, str]:
    """
    Validate a caller identity.

    The engine trusts identities resolved by the boundary layer, so any
    non-empty string is accepted here; see validate_address for wallet format.
    """
    return validate_string(value, name, MAX_IDENTITY_LENGTH, allow_empty=False)


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value.lower().startswith("0x") else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"

    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    return True, ""


def validate_address(value: Any, name: str = "address") -> Tuple[bool, str]:
    """Validate a 0x-prefixed 20-byte wallet address."""
    if not isinstance(value, str) or not value.lower().startswith("0x"):
        return False, f"{name} must be a 0x-prefixed hex string"
    return validate_hex_string(value, name, ADDRESS_BYTES)


# =============================================================================
# Composite Validators
# =============================================================================


def validate_auction_params(
    seller: Any,
    duration_seconds: Any,
    reserve_price: Any,
    title: Any,
    uri: Any,
    max_duration: Optional[int] = None,
    max_title_length: int = MAX_TITLE_LENGTH,
    max_uri_length: int = MAX_URI_LENGTH,
) -> Tuple[bool, str]:
    """Validate the arguments of a create-auction call."""
    checks = (
        validate_identity(seller, "seller"),
        validate_duration(duration_seconds, max_duration),
        validate_amount(reserve_price, "reserve_price"),
        validate_string(title, "title", max_title_length, allow_empty=False),
        validate_string(uri, "uri", max_uri_length),
    )
    for valid, err in checks:
        if not valid:
            return False, err

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_integer",
    "validate_amount",
    "validate_duration",
    "validate_string",
    "validate_identity",
    "validate_hex_string",
    "validate_address",
    "validate_auction_params",
    "MAX_IDENTITY_LENGTH",
    "MAX_TITLE_LENGTH",
    "MAX_URI_LENGTH",
    "MAX_AMOUNT",
    "MAX_TIMESTAMP",
]
