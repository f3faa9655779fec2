"""Service layer: reward jobs, staking operations, reporting and prices."""
from staking_dashboard.services.admin import AdminService, AdminSkimCalculator
from staking_dashboard.services.errors import (AuthError, ConflictError,
                                               InsufficientBalanceError,
                                               InvalidAmountError,
                                               InvalidInputError,
                                               NotFoundError,
                                               PermissionDeniedError,
                                               ServiceErrorMapper,
                                               StakingError,
                                               UnsupportedCoinError)
from staking_dashboard.services.portfolio import (PortfolioAggregator,
                                                  compound_calculator)
from staking_dashboard.services.prices import PriceService
from staking_dashboard.services.rewards import (MaterializationReport,
                                                RewardMaterializer)
from staking_dashboard.services.scheduler import RewardScheduler
from staking_dashboard.services.settings import StakingSettingsService
from staking_dashboard.services.staking import StakingService
from staking_dashboard.services.users import UserService

__all__ = [
    "AdminService",
    "AdminSkimCalculator",
    "AuthError",
    "ConflictError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidInputError",
    "MaterializationReport",
    "NotFoundError",
    "PermissionDeniedError",
    "PortfolioAggregator",
    "PriceService",
    "RewardMaterializer",
    "RewardScheduler",
    "ServiceErrorMapper",
    "StakingError",
    "StakingService",
    "StakingSettingsService",
    "UnsupportedCoinError",
    "UserService",
    "compound_calculator",
]
