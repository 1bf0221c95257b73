"""
Payment log records and balance samples.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from lumenpay.amount import to_stroops
from lumenpay.models.transaction import NATIVE


class PaymentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    destination: str
    amount: int  # stroops
    asset: str = NATIVE
    timestamp: datetime
    transaction_hash: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.asset == NATIVE

    @classmethod
    def from_horizon(cls, record: dict[str, Any]) -> Optional["PaymentRecord"]:
        """Map a Horizon payments-stream record; None for types we do not replay.

        ``create_account`` is a native payment of the starting balance from
        the funder. Path payments, merges and trades are skipped.
        """
        kind = record.get("type")
        created_at = datetime.fromisoformat(record["created_at"].replace("Z", "+00:00"))
        if kind == "payment":
            asset_type = record.get("asset_type", NATIVE)
            asset = NATIVE if asset_type == NATIVE else f"{record.get('asset_code')}:{record.get('asset_issuer')}"
            return cls(
                source=record["from"],
                destination=record["to"],
                amount=to_stroops(record["amount"]),
                asset=asset,
                timestamp=created_at,
                transaction_hash=record.get("transaction_hash"),
            )
        if kind == "create_account":
            return cls(
                source=record["funder"],
                destination=record["account"],
                amount=to_stroops(record["starting_balance"]),
                timestamp=created_at,
                transaction_hash=record.get("transaction_hash"),
            )
        return None


class BalanceSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    balance: int  # stroops
