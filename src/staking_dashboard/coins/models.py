"""Schema for the per-coin configuration document."""
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class TechnicalDetails(BaseModel):
    consensus: str
    block_time: str
    max_supply: str
    features: list[str] = Field(default_factory=list)


class StakingDetails(BaseModel):
    min_stake: Decimal
    apy: Decimal
    lockup_period: str | None = None
    rewards: str


class DocumentationEntry(BaseModel):
    question: str
    answer: str


class CoinConfig(BaseModel):
    """Static description of a stakeable coin. Only enabled coins accept stakes."""

    name: str
    symbol: str
    coingecko_id: str
    apy: Decimal = Field(ge=0)
    min_stake: Decimal = Field(ge=0)
    description: str
    enabled: bool = False
    technical_details: TechnicalDetails
    staking_details: StakingDetails
    documentation: list[DocumentationEntry] = Field(default_factory=list)

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, value: str) -> str:
        return value.upper()
