"""Simple-interest reward arithmetic.

All amounts are Decimal. Rewards accrue linearly (no compounding):

    reward = principal * (apy / 100) * (elapsed_seconds / SECONDS_PER_YEAR)

A year is 365 days; leap years are not special-cased.
"""
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, localcontext

SECONDS_PER_YEAR = 365 * 24 * 3600
SECONDS_PER_DAY = 24 * 3600

MIN_STAKE_AMOUNT = Decimal("0.01")
AMOUNT_QUANTUM = Decimal("1e-18")
# Largest value a Numeric(36, 18) column holds
MAX_AMOUNT = Decimal("999999999999999999.999999999999999999")

PRINCIPAL_DISPLAY_PLACES = 6
REWARD_DISPLAY_PLACES = 9

_PRECISION = 50


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a number to Decimal via its string form (no binary float artifacts)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_amount(value: Decimal) -> Decimal:
    """Round down to the 18 fractional digits the ledger stores."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_DOWN)


def _round_for_display(value: Decimal, places: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        rounded = to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return rounded if rounded else Decimal(0)


def display_principal(value: Decimal) -> Decimal:
    return _round_for_display(value, PRINCIPAL_DISPLAY_PLACES)


def display_reward(value: Decimal) -> Decimal:
    return _round_for_display(value, REWARD_DISPLAY_PLACES)


def accrued_reward(
    principal: Decimal | int | float | str,
    apy_percent: Decimal | int | float | str,
    elapsed_seconds: Decimal | int | float,
    *,
    minimum: Decimal = MIN_STAKE_AMOUNT,
) -> Decimal:
    """Reward accrued on a constant principal over elapsed_seconds.

    Args:
        principal: Staked amount.
        apy_percent: Annual rate in percent (3 means 3%).
        elapsed_seconds: Accrual duration.
        minimum: Principal floor; nothing accrues below it.

    Returns:
        The reward, quantized to 18 decimal places. Zero when the principal is
        below the floor or when the rate or duration is not positive.
    """
    principal = to_decimal(principal)
    apy = to_decimal(apy_percent)
    elapsed = to_decimal(elapsed_seconds)
    if principal < minimum or principal <= 0 or apy <= 0 or elapsed <= 0:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        reward = principal * apy * elapsed / (100 * SECONDS_PER_YEAR)
    return quantize_amount(reward)


def compound_projection(
    principal: Decimal | int | float | str,
    apy_percent: Decimal | int | float | str,
    days: int,
) -> tuple[Decimal, Decimal]:
    """Daily-compounded projection, for illustration only.

    Returns:
        (final_balance, earned), both quantized.
    """
    principal = to_decimal(principal)
    apy = to_decimal(apy_percent)
    if principal <= 0 or days <= 0 or apy <= 0:
        return quantize_amount(max(principal, Decimal(0))), Decimal(0)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        daily_rate = apy / 100 / 365
        balance = principal * (1 + daily_rate) ** days
        earned = balance - principal
    return quantize_amount(balance), quantize_amount(earned)
