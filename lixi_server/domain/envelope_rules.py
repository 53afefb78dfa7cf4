"""Envelope allocation rules that are independent from HTTP and DB.

Rule of thumb:
- OK: integer math, validation, drawing from an injected random source.
- Not OK: touching DB sessions, websockets, FastAPI, datetime.now(), etc.
"""

import random

from lixi_server.errors import AllocationError

MIN_AMOUNT = 10_000
MAX_AMOUNT = 100_000

_default_rng = random.Random()


def reserved_for_rest(remaining_envelopes: int) -> int:
    """Money that must stay in the pool for the envelopes after this one."""
    return MIN_AMOUNT * (remaining_envelopes - 1)


def amount_bounds(remaining_money: int, remaining_envelopes: int) -> tuple[int, int]:
    """Return the closed interval an envelope amount is drawn from.

    Args:
        remaining_money (int): Money still in the pool
        remaining_envelopes (int): Envelopes still unopened, this one included

    Returns:
        tuple[int, int]: (lowest, highest) allowed amount

    Raises:
        AllocationError: The pool cannot cover the minimum for every envelope
    """
    if remaining_envelopes < 1:
        raise AllocationError(
            f"No envelope left to allocate (remaining_envelopes={remaining_envelopes})"
        )
    if remaining_money < remaining_envelopes * MIN_AMOUNT:
        raise AllocationError(
            f"Pool of {remaining_money} cannot cover {remaining_envelopes} "
            f"envelopes of at least {MIN_AMOUNT}"
        )
    if remaining_envelopes == 1:
        return remaining_money, remaining_money

    upper = min(MAX_AMOUNT, remaining_money - reserved_for_rest(remaining_envelopes))
    if upper < MIN_AMOUNT:
        raise AllocationError(f"Empty amount interval [{MIN_AMOUNT}, {upper}]")
    return MIN_AMOUNT, upper


def allocate(
    remaining_money: int,
    remaining_envelopes: int,
    rng: random.Random | None = None,
) -> int:
    """Draw the amount for the next envelope.

    The last envelope drains the pool. Any other envelope gets a uniform
    integer from `amount_bounds`, which always leaves at least MIN_AMOUNT
    for every envelope still to be opened.

    Args:
        remaining_money (int): Money still in the pool
        remaining_envelopes (int): Envelopes still unopened, this one included
        rng (random.Random | None): Random source, seedable for tests

    Returns:
        int: Amount of this envelope
    """
    lower, upper = amount_bounds(remaining_money, remaining_envelopes)
    if lower == upper:
        return lower
    rng = rng or _default_rng
    return rng.randint(lower, upper)


def validate_pool(total_money: int, total_envelopes: int) -> None:
    """Reject a pool configuration that could not be fully allocated."""
    if total_envelopes < 1:
        raise AllocationError("A session needs at least one envelope")
    if total_money < total_envelopes * MIN_AMOUNT:
        raise AllocationError(
            f"total_money={total_money} is below {total_envelopes} x {MIN_AMOUNT}"
        )
