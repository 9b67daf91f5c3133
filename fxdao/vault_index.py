"""Risk index: the sort key of the vault list."""

from .errors import DivisionByZero
from .protocol import PROTOCOL


def compute_index(collateral: int, debt: int) -> int:
    """
    floor(collateral * 1e9 / debt), exact integer arithmetic.

    Must match the contract bit-for-bit: integers only, never floats.
    """
    if collateral < 0 or debt < 0:
        raise ValueError(f"collateral and debt must be unsigned (got {collateral}, {debt})")
    if debt == 0:
        raise DivisionByZero("Cannot compute a vault index with zero debt")
    return collateral * PROTOCOL.INDEX_SCALE // debt
