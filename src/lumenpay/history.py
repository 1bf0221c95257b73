"""
BalanceHistoryReconstructor — rebuilds past native balances by undoing
payments from the current balance backwards.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from lumenpay.models.history import BalanceSample, PaymentRecord

BOUNDARY_OFFSET = timedelta(days=1)


class BalanceHistoryReconstructor:
    def reconstruct(
        self,
        current_balance: int,
        payments: Sequence[PaymentRecord],
        subject: str,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[BalanceSample]:
        """Balance samples, oldest first.

        ``payments`` must be newest first. Each sample is the balance
        just after the payment at that timestamp. Non-native payments are
        ignored. The list opens with a boundary sample one day before the
        earliest payment and closes with ``current_balance`` at ``now``.
        """
        now = now or datetime.now(timezone.utc)
        native = [p for p in payments if p.is_native]
        if not native:
            return [BalanceSample(timestamp=now, balance=current_balance)]

        samples = [BalanceSample(timestamp=now, balance=current_balance)]
        running = current_balance
        for payment in native:
            samples.append(BalanceSample(timestamp=payment.timestamp, balance=running))
            if payment.source == subject:
                running += payment.amount
            if payment.destination == subject:
                running -= payment.amount
        samples.append(BalanceSample(timestamp=native[-1].timestamp - BOUNDARY_OFFSET, balance=running))

        samples.reverse()
        if limit is not None and limit > 0:
            samples = samples[-limit:]
        return samples
