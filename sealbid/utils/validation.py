"""
Input Validation - shape checks for values entering the engine.

Every check returns (is_valid, error_message) and never raises; the engine
turns a failed check into BadArgument via raise_if_invalid. Checks cover:
- hashes, salts and other byte strings
- u128 amounts and u64 block heights
- bounded UTF-8 strings, account identifiers and candidate lists
- strictly increasing RFP deadlines
"""

from typing import Any, Optional, Tuple

from sealbid.crypto import HASH_SIZE, U128_MAX

Check = Tuple[bool, str]

# =============================================================================
# Limits
# =============================================================================

MAX_STRING_LENGTH = 1024
MAX_ARRAY_LENGTH = 256
MAX_ACCOUNT_LENGTH = 128

MIN_AMOUNT = 0
MAX_AMOUNT = U128_MAX
MIN_BLOCK = 0
MAX_BLOCK = 2**64 - 1

OK: Check = (True, "")


def _fail(message: str) -> Check:
    return False, message


# =============================================================================
# Primitive Checks
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
    allow_empty: bool = True,
) -> Check:
    """
    Check a byte string.

    Args:
        data: Candidate value (bytes or bytearray)
        name: Field name used in the message
        expected_length: Required exact size
        max_length: Upper bound on size
        allow_empty: Accept b""
    """
    if not isinstance(data, (bytes, bytearray)):
        return _fail(f"{name}: expected bytes, not {type(data).__name__}")

    size = len(data)
    if size == 0 and not allow_empty:
        return _fail(f"{name}: may not be empty")
    if expected_length is not None and size != expected_length:
        return _fail(f"{name}: expected {expected_length} bytes, received {size}")
    if max_length is not None and size > max_length:
        return _fail(f"{name}: {size} bytes is over the {max_length}-byte limit")
    return OK


def validate_hash(hash_value: Any, name: str = "hash") -> Check:
    """A 32-byte digest."""
    return validate_bytes(hash_value, name, expected_length=HASH_SIZE)


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Check:
    """Integer within [min_val, max_val]; bools are refused."""
    if isinstance(value, bool) or not isinstance(value, int):
        return _fail(f"{name}: expected int, not {type(value).__name__}")
    if not min_val <= value <= max_val:
        return _fail(f"{name}: {value} outside [{min_val}, {max_val}]")
    return OK


def validate_amount(amount: Any, name: str = "amount") -> Check:
    """Deposits, payouts and reputation are u128."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_block_number(block: Any, name: str = "block_number") -> Check:
    return validate_integer(block, name, MIN_BLOCK, MAX_BLOCK)


def validate_array(data: Any, name: str, max_length: int = MAX_ARRAY_LENGTH) -> Check:
    """A list or tuple of at most max_length entries."""
    if not isinstance(data, (list, tuple)):
        return _fail(f"{name}: expected a list, not {type(data).__name__}")
    if len(data) > max_length:
        return _fail(f"{name}: {len(data)} entries is over the limit of {max_length}")
    return OK


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_STRING_LENGTH,
    allow_empty: bool = True,
) -> Check:
    """Text field bounded by character count and encodable as UTF-8."""
    if not isinstance(value, str):
        return _fail(f"{name}: expected str, not {type(value).__name__}")
    if not value and not allow_empty:
        return _fail(f"{name}: may not be empty")
    if len(value) > max_length:
        return _fail(f"{name}: longer than {max_length} characters")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates cannot be hashed into a commitment
        return _fail(f"{name}: not encodable as UTF-8")
    return OK


def validate_account(value: Any, name: str = "account") -> Check:
    """Resolved caller/vendor/evaluator identifier."""
    return validate_string(value, name, max_length=MAX_ACCOUNT_LENGTH, allow_empty=False)


# =============================================================================
# RFP Checks
# =============================================================================


def validate_deadlines(
    created_at: int,
    commit_deadline: int,
    reveal_deadline: int,
    eval_deadline: int,
) -> Check:
    """
    Phase deadlines for a new RFP.

    Requires created_at <= commit_deadline < reveal_deadline < eval_deadline,
    each a valid block height.
    """
    deadlines = (
        ("commit_deadline", commit_deadline),
        ("reveal_deadline", reveal_deadline),
        ("eval_deadline", eval_deadline),
    )
    for name, block in deadlines:
        check = validate_block_number(block, name)
        if not check[0]:
            return check

    if commit_deadline < created_at:
        return _fail(f"commit_deadline {commit_deadline} precedes creation block {created_at}")
    if not commit_deadline < reveal_deadline < eval_deadline:
        return _fail(
            f"deadlines must strictly increase, got commit={commit_deadline} "
            f"reveal={reveal_deadline} eval={eval_deadline}"
        )
    return OK


__all__ = [
    "Check",
    "validate_bytes",
    "validate_hash",
    "validate_integer",
    "validate_amount",
    "validate_block_number",
    "validate_array",
    "validate_string",
    "validate_account",
    "validate_deadlines",
    "MAX_STRING_LENGTH",
    "MAX_ARRAY_LENGTH",
    "MAX_ACCOUNT_LENGTH",
]
