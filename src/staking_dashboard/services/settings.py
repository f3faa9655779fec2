"""Operator-configured staking constants (APYs, minimum stake, master wallet)."""
import logging
import re

from sqlmodel import Session, select

from staking_dashboard.config import Settings
from staking_dashboard.db import StakingSettings
from staking_dashboard.schemas import StakingSettingsUpdate
from staking_dashboard.services.errors import InvalidInputError
from staking_dashboard.utils import utcnow

logger = logging.getLogger(__name__)

WALLET_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_wallet_address(address: str) -> str:
    """Return the address if it is a 0x-prefixed 20-byte hex string."""
    if not WALLET_ADDRESS_RE.match(address or ""):
        raise InvalidInputError("Invalid Ethereum address format")
    return address


class StakingSettingsService:
    """Reads and updates the staking_settings row for the platform coin.

    The row is created from Settings defaults the first time it is read.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def coin_symbol(self) -> str:
        return self._settings.staking_coin

    def get(self, session: Session) -> StakingSettings:
        row = session.exec(
            select(StakingSettings).where(StakingSettings.coin_symbol == self.coin_symbol)
        ).first()
        if row is not None:
            return row
        row = StakingSettings(
            coin_symbol=self.coin_symbol,
            displayed_apy=self._settings.displayed_apy,
            actual_apy=self._settings.actual_apy,
            min_stake_amount=self._settings.min_stake_amount,
            master_wallet_address=self._settings.master_wallet_address,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
        logger.info("Initialized staking settings for %s", self.coin_symbol)
        return row

    def update(
        self, session: Session, update: StakingSettingsUpdate, updated_by: int | None
    ) -> StakingSettings:
        row = self.get(session)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if "master_wallet_address" in changes:
            validate_wallet_address(changes["master_wallet_address"])
        for name, value in changes.items():
            setattr(row, name, value)
        row.updated_by = updated_by
        row.updated_at = utcnow()
        session.add(row)
        session.commit()
        session.refresh(row)
        logger.info("Staking settings updated by user %s: %s", updated_by, sorted(changes))
        return row
