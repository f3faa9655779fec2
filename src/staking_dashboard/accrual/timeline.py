"""Principal as a piecewise-constant function of time."""
from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from staking_dashboard.accrual.interest import (MIN_STAKE_AMOUNT,
                                                accrued_reward)
from staking_dashboard.db.models import Transaction, TransactionType


@dataclass
class PrincipalTimeline:
    """Sorted (timestamp, principal) breakpoints.

    The principal at a breakpoint holds until the next breakpoint; before the
    first breakpoint it is zero.
    """

    breakpoints: list[tuple[datetime, Decimal]] = field(default_factory=list)

    @classmethod
    def from_transactions(cls, transactions: Iterable[Transaction]) -> "PrincipalTimeline":
        """Build the timeline from a user's ledger.

        stake adds, unstake subtracts and withdraw_all resets to zero; other
        types do not move principal.
        """
        principal = Decimal(0)
        points: list[tuple[datetime, Decimal]] = []
        ordered = sorted(transactions, key=lambda tx: (tx.created_at, tx.id or 0))
        for tx in ordered:
            if tx.type == TransactionType.STAKE:
                principal += Decimal(tx.amount)
            elif tx.type == TransactionType.UNSTAKE:
                principal = max(principal - Decimal(tx.amount), Decimal(0))
            elif tx.type == TransactionType.WITHDRAW_ALL:
                principal = Decimal(0)
            else:
                continue
            if points and points[-1][0] == tx.created_at:
                points[-1] = (tx.created_at, principal)
            else:
                points.append((tx.created_at, principal))
        return cls(points)

    @property
    def start(self) -> datetime | None:
        """Time of the first principal change, or None for an empty timeline."""
        return self.breakpoints[0][0] if self.breakpoints else None

    def principal_at(self, moment: datetime) -> Decimal:
        """Principal in effect at the given instant."""
        idx = bisect_right([ts for ts, _ in self.breakpoints], moment) - 1
        if idx < 0:
            return Decimal(0)
        return self.breakpoints[idx][1]

    def accrued(
        self,
        start: datetime,
        end: datetime,
        apy_percent: Decimal,
        *,
        minimum: Decimal = MIN_STAKE_AMOUNT,
    ) -> Decimal:
        """Integrate simple interest over [start, end], segment by segment."""
        total = Decimal(0)
        if end <= start:
            return total
        for i, (seg_from, principal) in enumerate(self.breakpoints):
            seg_to = self.breakpoints[i + 1][0] if i + 1 < len(self.breakpoints) else end
            lo = max(seg_from, start)
            hi = min(seg_to, end)
            if hi <= lo:
                continue
            total += accrued_reward(
                principal, apy_percent, (hi - lo).total_seconds(), minimum=minimum
            )
        return total
