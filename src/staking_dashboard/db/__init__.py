"""Database package: models and session management."""
from staking_dashboard.db.models import (ReferralReward, Reward, Stake,
                                         StakeStatus, StakingSettings,
                                         Transaction, TransactionStatus,
                                         TransactionType, User)

__all__ = [
    "ReferralReward",
    "Reward",
    "Stake",
    "StakeStatus",
    "StakingSettings",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "User",
]
