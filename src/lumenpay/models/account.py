"""
Account snapshot — one network read, stale as soon as it is used.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from lumenpay.amount import to_stroops
from lumenpay.models.transaction import NATIVE
from lumenpay.strkey import AccountAddress


class LedgerAccount(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: AccountAddress
    sequence: int
    balances: dict[str, int] = {}  # asset id -> stroops

    @property
    def native_balance(self) -> int:
        return self.balances.get(NATIVE, 0)

    @classmethod
    def from_horizon(cls, data: dict[str, Any]) -> "LedgerAccount":
        """Build from a Horizon ``/accounts/{id}`` resource."""
        balances: dict[str, int] = {}
        for line in data.get("balances", []):
            if line.get("asset_type") == NATIVE:
                asset_id = NATIVE
            elif line.get("asset_type") == "liquidity_pool_shares":
                asset_id = f"pool:{line.get('liquidity_pool_id', '')}"
            else:
                asset_id = f"{line.get('asset_code')}:{line.get('asset_issuer')}"
            balances[asset_id] = to_stroops(line.get("balance", "0"))
        return cls(
            address=data.get("account_id") or data["id"],
            sequence=int(data["sequence"]),
            balances=balances,
        )
