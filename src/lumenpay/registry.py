"""
Payment registry — an on-chain contract that counts and logs payments.

    log_payment(from: Address, to: Address, amount: i128)
    get_payment_count() -> u64
"""

import logging
from typing import Optional

from lumenpay import scval
from lumenpay.amount import to_i128_units
from lumenpay.config import DEFAULT_REGISTRY_CONTRACT
from lumenpay.errors import InvalidAmount
from lumenpay.models.outcome import PrepareOutcome
from lumenpay.preparer import ContractInvocationPreparer
from lumenpay.strkey import AccountAddress, ContractAddress

logger = logging.getLogger(__name__)

LOG_PAYMENT = "log_payment"
GET_PAYMENT_COUNT = "get_payment_count"

EXPLORER_URL = "https://stellar.expert/explorer/{network}/contract/{contract}"


class PaymentRegistry:
    def __init__(self, preparer: ContractInvocationPreparer, contract: str = DEFAULT_REGISTRY_CONTRACT):
        self._preparer = preparer
        self.contract = ContractAddress.parse(contract)

    async def prepare_log_payment(self, source: str, from_address: str, to_address: str, amount: str) -> PrepareOutcome:
        """Prepared ``log_payment`` call, to be signed by ``source``."""
        if to_i128_units(amount) <= 0:
            raise InvalidAmount(f"{amount!r} must be greater than 0")
        args = [
            scval.address(AccountAddress.parse(from_address)),
            scval.address(AccountAddress.parse(to_address)),
            scval.amount(amount),
        ]
        return await self._preparer.prepare(source, self.contract, LOG_PAYMENT, args)

    async def payment_count(self, source: str) -> int:
        """Read-only; simulated from ``source``, nothing is submitted."""
        value = await self._preparer.query(source, self.contract, GET_PAYMENT_COUNT)
        return int(value or 0)

    def explorer_url(self, network: Optional[str] = "testnet") -> str:
        return EXPLORER_URL.format(network=network, contract=self.contract)
