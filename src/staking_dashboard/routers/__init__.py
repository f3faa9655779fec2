"""API routers for the staking dashboard.

Includes routes for:
- /auth - Registration and login (JWT bearer tokens)
- /users - Profile, wallet and referrals
- /stakes, /withdraw, /withdraw-all, /transfer, /transactions, /staking/network - Staking and ledger
- /portfolio, /staking/data, /calculator - Reward figures and charts
- /coins - Coin configuration
- /prices - Price feed (CoinGecko)
- /admin - Operator reports and settings
"""
from staking_dashboard.routers.admin import router as admin_router
from staking_dashboard.routers.auth import router as auth_router
from staking_dashboard.routers.coins import router as coins_router
from staking_dashboard.routers.portfolio import router as portfolio_router
from staking_dashboard.routers.prices import router as prices_router
from staking_dashboard.routers.staking import router as staking_router
from staking_dashboard.routers.users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "coins_router",
    "portfolio_router",
    "prices_router",
    "staking_router",
    "users_router",
]
