"""
Envelope encoding via ``stellar_sdk``: frozen envelopes become SDK
transactions for XDR, hashing and signature checks.
"""

from typing import Any, Iterable, Optional

import stellar_sdk
from stellar_sdk import xdr as stellar_xdr

from lumenpay.amount import from_stroops
from lumenpay.errors import XdrError
from lumenpay.models.transaction import (
    NATIVE,
    ContractInvoke,
    DecoratedSignature,
    Payment,
    TransactionEnvelope,
)

UINT32_MAX = 2 ** 32 - 1


def decode_xdr(xdr_type: Any, text: Optional[str], what: str) -> Any:
    """``xdr_type.from_xdr(text)``, with any failure raised as XdrError."""
    try:
        return xdr_type.from_xdr(text)
    except Exception as e:
        raise XdrError(f"invalid {what}: {e}") from e


def _operation(op) -> stellar_sdk.Operation:
    if isinstance(op, Payment):
        if op.asset != NATIVE:
            raise XdrError(f"unsupported asset {op.asset!r}")
        try:
            return stellar_sdk.Payment(
                destination=str(op.destination),
                asset=stellar_sdk.Asset.native(),
                amount=from_stroops(op.amount),
            )
        except ValueError as e:
            raise XdrError(str(e)) from e
    if isinstance(op, ContractInvoke):
        host_function = stellar_xdr.HostFunction(
            stellar_xdr.HostFunctionType.HOST_FUNCTION_TYPE_INVOKE_CONTRACT,
            invoke_contract=stellar_xdr.InvokeContractArgs(
                contract_address=op.contract.to_sdk().to_xdr_sc_address(),
                function_name=stellar_xdr.SCSymbol(op.function.encode("utf-8")),
                args=list(op.args),
            ),
        )
        auth = [decode_xdr(stellar_xdr.SorobanAuthorizationEntry, entry, "authorization entry") for entry in op.auth]
        return stellar_sdk.InvokeHostFunction(host_function=host_function, auth=auth)
    raise XdrError(f"unsupported operation {type(op).__name__}")


def to_sdk_transaction(envelope: TransactionEnvelope) -> stellar_sdk.Transaction:
    if not 0 <= envelope.fee <= UINT32_MAX:
        raise XdrError(f"fee {envelope.fee} does not fit in uint32")
    soroban_data = None
    if envelope.footprint is not None:
        soroban_data = decode_xdr(
            stellar_xdr.SorobanTransactionData, envelope.footprint.transaction_data, "resource data"
        )
    return stellar_sdk.Transaction(
        source=str(envelope.source),
        sequence=envelope.sequence,
        fee=envelope.fee,
        operations=[_operation(op) for op in envelope.operations],
        preconditions=stellar_sdk.Preconditions(
            time_bounds=stellar_sdk.TimeBounds(envelope.time_bounds.min_time, envelope.time_bounds.max_time)
        ),
        soroban_data=soroban_data,
    )


def to_sdk_envelope(
    envelope: TransactionEnvelope,
    network_passphrase: str,
    signatures: Iterable[DecoratedSignature] = (),
) -> stellar_sdk.TransactionEnvelope:
    return stellar_sdk.TransactionEnvelope(
        to_sdk_transaction(envelope),
        network_passphrase,
        [stellar_sdk.DecoratedSignature(sig.hint, sig.signature) for sig in signatures],
    )


def envelope_to_xdr(
    envelope: TransactionEnvelope,
    signatures: Iterable[DecoratedSignature] = (),
) -> str:
    # The network passphrase only enters the hash, never the encoding.
    v1 = stellar_xdr.TransactionV1Envelope(
        tx=to_sdk_transaction(envelope).to_xdr_object(),
        signatures=[stellar_sdk.DecoratedSignature(sig.hint, sig.signature).to_xdr_object() for sig in signatures],
    )
    return stellar_xdr.TransactionEnvelope(stellar_xdr.EnvelopeType.ENVELOPE_TYPE_TX, v1=v1).to_xdr()


def signature_base(envelope: TransactionEnvelope, network_passphrase: str) -> bytes:
    return to_sdk_envelope(envelope, network_passphrase).signature_base()


def transaction_hash(envelope: TransactionEnvelope, network_passphrase: str) -> bytes:
    return to_sdk_envelope(envelope, network_passphrase).hash()


def signatures_from_signed_xdr(
    envelope: TransactionEnvelope,
    signed_xdr: str,
    network_passphrase: str,
) -> tuple[DecoratedSignature, ...]:
    """Extract the signatures from a signer's returned envelope.

    The signed envelope must wrap exactly ``envelope``; a signer that
    altered the transaction is an error.
    """
    try:
        signed = stellar_sdk.TransactionEnvelope.from_xdr(signed_xdr, network_passphrase)
    except Exception as e:
        raise XdrError(f"invalid signed envelope: {e}") from e
    if signed.hash() != transaction_hash(envelope, network_passphrase):
        raise XdrError("signed envelope does not match the transaction that was sent for signing")
    return tuple(
        DecoratedSignature(hint=sig.signature_hint, signature=sig.signature)
        for sig in signed.signatures
    )


def transaction_result_code(result_xdr: Optional[str]) -> str:
    """``tx_bad_seq`` and friends from a base64 TransactionResult."""
    if not result_xdr:
        return "unknown"
    result = decode_xdr(stellar_xdr.TransactionResult, result_xdr, "transaction result")
    return "tx_" + result.result.code.name[len("tx"):].lower()
