"""Core provider abstractions."""
from staking_dashboard.providers.core.error_mapper import ProviderErrorMapper
from staking_dashboard.providers.core.utils import round2

__all__ = [
    "ProviderErrorMapper",
    "round2",
]
