"""
TransactionBuilder — assembles an unsigned envelope from an account
snapshot and one operation. Pure construction; no network calls.
"""

import time
from typing import Callable, Optional

from stellar_sdk import xdr as stellar_xdr

from lumenpay.amount import INT64_MAX, from_stroops, to_stroops
from lumenpay.config import DEFAULT_TX_TIMEOUT
from lumenpay.errors import InsufficientBalance, InvalidAddress, InvalidAmount, InvalidDestination
from lumenpay.models.account import LedgerAccount
from lumenpay.models.transaction import (
    ContractInvoke,
    Operation,
    Payment,
    ResourceFootprint,
    TimeBounds,
    TransactionEnvelope,
)
from lumenpay.strkey import AccountAddress
from lumenpay.transport.envelope import decode_xdr


def parse_destination(destination: str) -> AccountAddress:
    try:
        return AccountAddress.parse(destination)
    except InvalidAddress as e:
        raise InvalidDestination(str(e)) from e


def make_payment(destination: str, amount: str) -> Payment:
    """Validate user input and build a native Payment operation."""
    dest = parse_destination(destination)
    stroops = to_stroops(amount)
    if stroops <= 0:
        raise InvalidAmount(f"{amount!r} must be greater than 0")
    return Payment(destination=dest, amount=stroops)


class TransactionBuilder:
    def __init__(self, timeout: int = DEFAULT_TX_TIMEOUT, clock: Callable[[], float] = time.time):
        self._timeout = timeout
        self._clock = clock

    def _time_bounds(self) -> TimeBounds:
        return TimeBounds(min_time=0, max_time=int(self._clock()) + self._timeout)

    def build(self, account: LedgerAccount, operation: Payment, base_fee: int) -> TransactionEnvelope:
        """Envelope with ``sequence + 1``, fee ``base_fee`` and one payment.

        ``account`` must be freshly fetched; a stale sequence is rejected
        by the network as tx_bad_seq.
        """
        if not isinstance(operation, Payment):
            raise TypeError("build() takes a Payment; use ContractInvocationPreparer for contract calls")
        if not isinstance(operation.destination, AccountAddress):
            raise InvalidDestination(f"{operation.destination!r} is not an account address")
        if operation.amount <= 0:
            raise InvalidAmount(f"{from_stroops(operation.amount)} must be greater than 0")
        if operation.amount > INT64_MAX:
            raise InvalidAmount(f"{from_stroops(operation.amount)} is too large")
        return self._envelope(account, operation, base_fee)

    def build_payment(
        self,
        account: LedgerAccount,
        destination: str,
        amount: str,
        base_fee: int,
        check_balance: bool = True,
    ) -> TransactionEnvelope:
        """Parse user input, check the balance locally, then build."""
        payment = make_payment(destination, amount)
        if check_balance and payment.amount > account.native_balance:
            raise InsufficientBalance(
                f"Sending {from_stroops(payment.amount)} exceeds the balance of {from_stroops(account.native_balance)}",
                {"amount": payment.amount, "balance": account.native_balance},
            )
        return self.build(account, payment, base_fee)

    def build_invocation(
        self,
        account: LedgerAccount,
        operation: ContractInvoke,
        fee: int,
        footprint: Optional[ResourceFootprint] = None,
    ) -> TransactionEnvelope:
        return self._envelope(account, operation, fee, footprint)

    def _envelope(
        self,
        account: LedgerAccount,
        operation: Operation,
        fee: int,
        footprint: Optional[ResourceFootprint] = None,
    ) -> TransactionEnvelope:
        if fee <= 0:
            raise InvalidAmount(f"fee must be positive, got {fee}")
        return TransactionEnvelope(
            source=account.address,
            sequence=account.sequence + 1,
            fee=fee,
            time_bounds=self._time_bounds(),
            operations=(operation,),
            footprint=footprint,
        )


def assemble(
    draft: TransactionEnvelope,
    min_resource_fee: int,
    footprint: ResourceFootprint,
    auth: tuple[str, ...] = (),
) -> TransactionEnvelope:
    """Merge simulation output into a draft: resource fee, footprint, auth.

    Simulated auth entries are only used when the operation has none.
    Re-assembling replaces the previous resource fee instead of adding to it.
    Malformed resource data or auth entries raise XdrError.
    """
    decode_xdr(stellar_xdr.SorobanTransactionData, footprint.transaction_data, "resource data")
    for entry in auth:
        decode_xdr(stellar_xdr.SorobanAuthorizationEntry, entry, "authorization entry")

    fee = draft.fee - (draft.footprint.min_resource_fee if draft.footprint else 0)
    op = draft.operations[0]
    if isinstance(op, ContractInvoke) and not op.auth and auth:
        op = op.model_copy(update={"auth": tuple(auth)})
    return draft.model_copy(update={
        "fee": fee + min_resource_fee,
        "footprint": footprint,
        "operations": (op,) + tuple(draft.operations[1:]),
    })

