"""
Operation and envelope models.

Envelopes are frozen. Assembly and signing return new values.
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from lumenpay.scval import SCVal
from lumenpay.strkey import AccountAddress, ContractAddress

NATIVE = "native"


class Payment(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["payment"] = "payment"
    destination: AccountAddress
    amount: int  # stroops
    asset: str = NATIVE


class ContractInvoke(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: Literal["invoke_contract"] = "invoke_contract"
    contract: ContractAddress
    function: str = Field(min_length=1, max_length=32)
    args: tuple[SCVal, ...] = ()
    auth: tuple[str, ...] = ()  # base64 SorobanAuthorizationEntry XDR


Operation = Union[Payment, ContractInvoke]


class TimeBounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_time: int = 0
    max_time: int = 0  # 0 = no upper bound


class ResourceFootprint(BaseModel):
    """Simulation-derived resources: base64 SorobanTransactionData plus its fee."""
    model_config = ConfigDict(frozen=True)

    transaction_data: str
    min_resource_fee: int


class TransactionEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: AccountAddress
    sequence: int
    fee: int
    time_bounds: TimeBounds
    operations: tuple[Operation, ...] = Field(min_length=1)
    footprint: Optional[ResourceFootprint] = None

    def to_xdr(self) -> str:
        from lumenpay.transport.envelope import envelope_to_xdr
        return envelope_to_xdr(self)

    def hash(self, network_passphrase: str) -> bytes:
        from lumenpay.transport.envelope import transaction_hash
        return transaction_hash(self, network_passphrase)

    def hash_hex(self, network_passphrase: str) -> str:
        return self.hash(network_passphrase).hex()


class DecoratedSignature(BaseModel):
    model_config = ConfigDict(frozen=True)

    hint: bytes = Field(min_length=4, max_length=4)
    signature: bytes = Field(max_length=64)


class SignedEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    envelope: TransactionEnvelope
    signatures: tuple[DecoratedSignature, ...] = Field(min_length=1)

    def to_xdr(self) -> str:
        from lumenpay.transport.envelope import envelope_to_xdr
        return envelope_to_xdr(self.envelope, self.signatures)

    def hash_hex(self, network_passphrase: str) -> str:
        return self.envelope.hash_hex(network_passphrase)
