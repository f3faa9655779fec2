"""DI container. Built in create_app(); routes resolve services via deps.py.

Tests override providers before the app starts, e.g.
container.settings.override(providers.Object(Settings(database_url="sqlite://"))).
"""
from dependency_injector import containers, providers

from staking_dashboard.coins import CoinRegistry, load_coin_registry
from staking_dashboard.config import Settings
from staking_dashboard.db.sessions import create_db_engine
from staking_dashboard.providers import (CoinbaseStakingProvider,
                                         CoinGeckoProvider, MasterWallet,
                                         NullStakingProvider,
                                         ProviderErrorMapper,
                                         PriceProviderABC,
                                         StakingProviderABC)
from staking_dashboard.services import (AdminService, AdminSkimCalculator,
                                        PortfolioAggregator, PriceService,
                                        RewardMaterializer, RewardScheduler,
                                        StakingService,
                                        StakingSettingsService, UserService)


def create_staking_provider(settings: Settings) -> StakingProviderABC:
    """Pick the staking provider named by STAKING_PROVIDER."""
    if settings.staking_provider == "coinbase":
        if not settings.cdp_api_key or not settings.cdp_api_secret:
            raise ValueError("CDP_API_KEY and CDP_API_SECRET are required for the coinbase provider")
        return CoinbaseStakingProvider(
            api_key=settings.cdp_api_key,
            api_secret=settings.cdp_api_secret,
            environment=settings.cdp_environment,
        )
    if settings.staking_provider != "null":
        raise ValueError(f"Unknown staking provider: {settings.staking_provider}")
    return NullStakingProvider()


def create_price_service(
    provider: PriceProviderABC, coins: CoinRegistry, *, ttl_seconds: float
) -> PriceService:
    """Create a PriceService with CoinGecko error mapping."""
    error_mapper = ProviderErrorMapper(resource_name="Crypto price", api_name="CoinGecko")
    return PriceService(provider, coins, error_mapper, ttl_seconds=ttl_seconds)


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings.from_env)

    engine = providers.Singleton(
        create_db_engine,
        settings.provided.database_url,
        echo=settings.provided.sql_echo,
    )
    coin_registry = providers.Singleton(load_coin_registry, settings.provided.coins_file)

    price_provider = providers.Singleton(
        CoinGeckoProvider, api_key=settings.provided.coingecko_api_key
    )
    staking_provider = providers.Singleton(create_staking_provider, settings)
    master_wallet = providers.Singleton(
        MasterWallet, staking_provider, address=settings.provided.master_wallet_address
    )

    settings_service = providers.Singleton(StakingSettingsService, settings)
    user_service = providers.Singleton(UserService, settings)
    staking_service = providers.Singleton(StakingService, coin_registry, settings_service)
    portfolio_service = providers.Singleton(PortfolioAggregator, settings_service)
    admin_service = providers.Singleton(AdminService, settings_service)
    skim_calculator = providers.Singleton(AdminSkimCalculator, settings_service)
    price_service = providers.Singleton(
        create_price_service,
        price_provider,
        coin_registry,
        ttl_seconds=settings.provided.price_cache_ttl_seconds,
    )

    reward_materializer = providers.Singleton(
        RewardMaterializer, engine, settings, settings_service
    )
    reward_scheduler = providers.Singleton(RewardScheduler, reward_materializer)
