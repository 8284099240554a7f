"""
Conversions between wei and MON display amounts, and path labels.

MON has 18 decimals. The integer wei value is always the authoritative
form; decimal strings are for display and are only turned back into wei
through :func:`to_wei`, which refuses anything it cannot represent exactly.
"""

from decimal import Decimal, InvalidOperation, localcontext
from enum import IntEnum

from web3 import Web3

from monkabreak.exceptions import InvalidAmountError

DECIMALS = 18
WEI_PER_MON = 10 ** DECIMALS
MAX_UINT256 = 2 ** 256 - 1

PATH_LABELS = ("A", "B", "C")


class PathChoice(IntEnum):
    """Path a player takes (or votes to block) in a stage."""
    A = 0
    B = 1
    C = 2


def to_decimal_string(wei) -> str:
    """Format an integer wei amount as a plain decimal MON string."""
    if isinstance(wei, bool) or not isinstance(wei, int):
        raise InvalidAmountError(f"wei amount must be an integer, got {wei!r}")
    if wei < 0 or wei > MAX_UINT256:
        raise InvalidAmountError(f"wei amount out of range: {wei}")
    # from_wei hands back a bare int for zero
    amount = Decimal(Web3.from_wei(wei, "ether"))
    return format(amount, "f")


def to_wei(amount) -> int:
    """Parse a MON amount (str, int, float or Decimal) into integer wei.

    Floats go through their shortest ``repr`` so ``0.1`` means one tenth.
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(f"not a numeric amount: {amount!r}")
    if isinstance(amount, float):
        amount = repr(amount)
    if isinstance(amount, str):
        amount = amount.strip()
    if not isinstance(amount, (str, int, Decimal)):
        raise InvalidAmountError(f"not a numeric amount: {amount!r}")
    try:
        value = Decimal(amount)
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"not a numeric amount: {amount!r}") from None

    if not value.is_finite():
        raise InvalidAmountError(f"amount must be finite: {amount!r}")
    if value < 0:
        raise InvalidAmountError(f"amount must not be negative: {amount!r}")
    with localcontext() as ctx:
        ctx.prec = 999
        scaled = value.scaleb(DECIMALS)
    if scaled != scaled.to_integral_value():
        raise InvalidAmountError(f"amount has more than {DECIMALS} decimals: {amount!r}")

    try:
        wei = Web3.to_wei(value, "ether")
    except ValueError as ex:
        raise InvalidAmountError(str(ex)) from ex
    if wei > MAX_UINT256:
        raise InvalidAmountError(f"amount out of range: {amount!r}")
    return wei


format_mon = to_decimal_string
parse_mon = to_wei


def path_to_string(path_index) -> str:
    if isinstance(path_index, int) and 0 <= path_index < len(PATH_LABELS):
        return PATH_LABELS[path_index]
    return "Unknown"


def team_label(is_thief: bool) -> str:
    return "Thieves" if is_thief else "Police"
