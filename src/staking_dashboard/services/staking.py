"""Stake lifecycle and balance-moving operations.

Every operation validates first, then writes its rows and commits once, so a
failed request leaves no partial ledger entries behind.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlmodel import Session, col, select

from staking_dashboard.accrual import MAX_AMOUNT, quantize_amount, to_decimal
from staking_dashboard.coins import CoinConfig, CoinRegistry
from staking_dashboard.db import (Reward, Stake, StakeStatus, Transaction,
                                  TransactionStatus, TransactionType, User)
from staking_dashboard.schemas import OperationResult
from staking_dashboard.services.errors import (InsufficientBalanceError,
                                               InvalidAmountError,
                                               NotFoundError,
                                               UnsupportedCoinError)
from staking_dashboard.services.ledger import (active_stakes, ledger_summary,
                                               user_transactions)
from staking_dashboard.services.settings import StakingSettingsService
from staking_dashboard.utils import utcnow

logger = logging.getLogger(__name__)


class StakingService:
    """Creates stakes and books withdraw, withdraw-all and transfer operations."""

    def __init__(self, coins: CoinRegistry, settings_service: StakingSettingsService) -> None:
        self._coins = coins
        self._settings_service = settings_service

    def validate_coin(self, symbol: str) -> CoinConfig:
        """Return the coin config if the symbol is the enabled staking coin."""
        coin = self._coins.get(symbol or "")
        if coin is None or not coin.enabled or coin.symbol != self._settings_service.coin_symbol:
            raise UnsupportedCoinError(f"Unsupported coin: {symbol}")
        return coin

    @staticmethod
    def _amount(value: Decimal | float | str) -> Decimal:
        amount = quantize_amount(to_decimal(value))
        if amount <= 0:
            raise InvalidAmountError("Amount must be positive")
        if amount > MAX_AMOUNT:
            raise InvalidAmountError("Amount is too large")
        return amount

    # Stakes

    def create_stake(
        self, session: Session, user: User, amount: Decimal, coin: str
    ) -> Stake:
        self.validate_coin(coin)
        amount = self._amount(amount)
        config = self._settings_service.get(session)
        minimum = Decimal(config.min_stake_amount)
        if amount < minimum:
            raise InvalidAmountError(f"Minimum stake amount is {minimum.normalize()}")

        now = utcnow()
        stake = Stake(
            user_id=user.id,
            amount=amount,
            status=StakeStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        session.add(stake)
        session.add(
            Transaction(
                user_id=user.id,
                type=TransactionType.STAKE,
                amount=amount,
                status=TransactionStatus.COMPLETED,
                created_at=now,
            )
        )
        session.commit()
        session.refresh(stake)
        logger.info("User %s staked %s (stake %s)", user.id, amount, stake.id)
        return stake

    def attach_reference(self, session: Session, stake_id: int, reference: str) -> Stake | None:
        """Record the upstream provider's stake id on a local stake."""
        stake = session.get(Stake, stake_id)
        if stake is None:
            return None
        stake.transaction_hash = reference
        stake.updated_at = utcnow()
        session.add(stake)
        session.commit()
        session.refresh(stake)
        return stake

    def list_stakes(self, session: Session, user: User) -> list[Stake]:
        stmt = (
            select(Stake)
            .where(Stake.user_id == user.id)
            .order_by(col(Stake.created_at).desc(), col(Stake.id).desc())
        )
        return list(session.exec(stmt).all())

    def _owned_stake(self, session: Session, user: User, stake_id: int) -> Stake:
        stake = session.get(Stake, stake_id)
        if stake is None or stake.user_id != user.id:
            raise NotFoundError("Stake not found")
        return stake

    def stake_rewards(self, session: Session, user: User, stake_id: int) -> list[Reward]:
        self._owned_stake(session, user, stake_id)
        stmt = (
            select(Reward)
            .where(Reward.stake_id == stake_id)
            .order_by(col(Reward.created_at).desc(), col(Reward.id).desc())
        )
        return list(session.exec(stmt).all())

    def add_stake_reward(
        self, session: Session, user: User, stake_id: int, amount: Decimal
    ) -> Reward:
        self._owned_stake(session, user, stake_id)
        reward = Reward(stake_id=stake_id, amount=self._amount(amount))
        session.add(reward)
        session.commit()
        session.refresh(reward)
        return reward

    # Balance-moving operations

    def withdraw(self, session: Session, user: User, amount: Decimal, coin: str) -> OperationResult:
        """Withdraw from the reward balance; principal is untouched."""
        symbol = self.validate_coin(coin).symbol
        amount = self._amount(amount)
        available = ledger_summary(session, user.id).withdrawable
        if amount > available:
            raise InsufficientBalanceError("Insufficient rewards balance")

        self._book(session, user.id, TransactionType.WITHDRAW, amount)
        session.commit()
        logger.info("User %s withdrew %s %s rewards", user.id, amount, symbol)
        return OperationResult(message="Withdrawal successful", amount=amount, coin=symbol)

    def withdraw_all(self, session: Session, user: User, coin: str) -> OperationResult:
        """Close every active stake and pay out principal plus reward balance.

        Accrual that has not been posted by the reward job yet is forfeited.
        """
        symbol = self.validate_coin(coin).symbol
        stakes = active_stakes(session, user.id)
        principal = sum((Decimal(s.amount) for s in stakes), Decimal(0))
        rewards = ledger_summary(session, user.id).withdrawable
        total = principal + rewards
        if total <= 0:
            raise InsufficientBalanceError("No funds available for withdrawal")

        now = utcnow()
        for stake in stakes:
            stake.amount = Decimal(0)
            stake.status = StakeStatus.WITHDRAWN
            stake.updated_at = now
            session.add(stake)
        if rewards > 0:
            self._book(session, user.id, TransactionType.WITHDRAW, rewards, now)
        self._book(session, user.id, TransactionType.WITHDRAW_ALL, total, now)
        session.commit()
        logger.info(
            "User %s withdrew all: principal=%s rewards=%s %s", user.id, principal, rewards, symbol
        )
        return OperationResult(message="Withdrawal successful", amount=total, coin=symbol)

    def transfer(self, session: Session, user: User, amount: Decimal, coin: str) -> OperationResult:
        """Move funds out, spending rewards first and then principal.

        Principal is taken from the most recent stakes first; a stake reduced
        to zero is marked withdrawn.
        """
        symbol = self.validate_coin(coin).symbol
        amount = self._amount(amount)
        stakes = active_stakes(session, user.id)
        principal = sum((Decimal(s.amount) for s in stakes), Decimal(0))
        rewards = ledger_summary(session, user.id).withdrawable
        if amount > principal + rewards:
            raise InsufficientBalanceError("Insufficient balance")

        now = utcnow()
        from_rewards = min(amount, rewards)
        from_principal = amount - from_rewards
        if from_rewards > 0:
            self._book(session, user.id, TransactionType.WITHDRAW, from_rewards, now)
        if from_principal > 0:
            remaining = from_principal
            for stake in reversed(stakes):
                if remaining <= 0:
                    break
                taken = min(Decimal(stake.amount), remaining)
                stake.amount = Decimal(stake.amount) - taken
                if stake.amount <= 0:
                    stake.status = StakeStatus.WITHDRAWN
                stake.updated_at = now
                session.add(stake)
                remaining -= taken
            self._book(session, user.id, TransactionType.UNSTAKE, from_principal, now)
        self._book(session, user.id, TransactionType.TRANSFER, amount, now)
        session.commit()
        logger.info(
            "User %s transferred %s %s (rewards=%s principal=%s)",
            user.id,
            amount,
            symbol,
            from_rewards,
            from_principal,
        )
        return OperationResult(message="Transfer successful", amount=amount, coin=symbol)

    def list_transactions(self, session: Session, user: User) -> list[Transaction]:
        return user_transactions(session, user.id, newest_first=True)

    @staticmethod
    def _book(
        session: Session,
        user_id: int,
        tx_type: TransactionType,
        amount: Decimal,
        created_at: datetime | None = None,
    ) -> Transaction:
        tx = Transaction(
            user_id=user_id,
            type=tx_type,
            amount=amount,
            status=TransactionStatus.COMPLETED,
            created_at=created_at or utcnow(),
        )
        session.add(tx)
        return tx
