"""Reward accrual arithmetic: simple interest and piecewise principal."""
from staking_dashboard.accrual.interest import (MAX_AMOUNT, MIN_STAKE_AMOUNT,
                                                SECONDS_PER_DAY,
                                                SECONDS_PER_YEAR,
                                                accrued_reward,
                                                compound_projection,
                                                display_principal,
                                                display_reward,
                                                quantize_amount, to_decimal)
from staking_dashboard.accrual.timeline import PrincipalTimeline

__all__ = [
    "MAX_AMOUNT",
    "MIN_STAKE_AMOUNT",
    "PrincipalTimeline",
    "SECONDS_PER_DAY",
    "SECONDS_PER_YEAR",
    "accrued_reward",
    "compound_projection",
    "display_principal",
    "display_reward",
    "quantize_amount",
    "to_decimal",
]
