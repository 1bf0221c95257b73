"""
Submitter — broadcasts a signed envelope once and classifies the answer.

No retries: a tx_bad_seq rejection means the caller must rebuild from a
fresh account snapshot, and resending a network failure blindly could
double-spend if the first attempt landed.
"""

import logging
from typing import Any

from lumenpay.errors import HttpError, NetworkError, RpcError, XdrError
from lumenpay.models.outcome import Accepted, NetworkFailure, Rejected, SubmissionOutcome
from lumenpay.models.transaction import SignedEnvelope
from lumenpay.transport.envelope import transaction_result_code
from lumenpay.transport.horizon import HorizonClient
from lumenpay.transport.rpc import SorobanRpcClient

logger = logging.getLogger(__name__)


def _rejection_from_horizon(body: Any) -> Rejected:
    codes = ((body or {}).get("extras") or {}).get("result_codes") or {}
    ops = codes.get("operations") or []
    return Rejected(
        result_code=codes.get("transaction") or "tx_failed",
        operation_result_codes=tuple(str(c) for c in ops),
    )


class Submitter:
    async def submit(self, signed: SignedEnvelope, horizon: HorizonClient) -> SubmissionOutcome:
        """One ``POST /transactions``; the outcome is never an exception."""
        try:
            resp = await horizon.submit_transaction(signed.to_xdr())
        except NetworkError as e:
            logger.warning("submission did not reach horizon: %s", e)
            return NetworkFailure(cause=str(e))

        if resp.status_code >= 500:
            logger.warning("horizon answered HTTP %d to submission", resp.status_code)
            return NetworkFailure(cause=f"horizon answered HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            rejected = _rejection_from_horizon(body)
            if rejected.result_code == "tx_failed" and not rejected.operation_result_codes and body is None:
                rejected = Rejected(result_code=f"http_{resp.status_code}")
            logger.warning("transaction rejected: %s %s", rejected.result_code,
                           list(rejected.operation_result_codes))
            return rejected

        body = body or {}
        accepted = Accepted(
            hash=body.get("hash", ""),
            ledger=body.get("ledger"),
            ledger_close_time=body.get("created_at"),
        )
        logger.info("transaction %s accepted in ledger %s", accepted.hash[:12], accepted.ledger)
        return accepted

    async def submit_rpc(self, signed: SignedEnvelope, rpc: SorobanRpcClient) -> SubmissionOutcome:
        """Submit through Soroban RPC ``sendTransaction``.

        PENDING means the server queued it; the caller polls for the
        final result if it needs one.
        """
        try:
            result = await rpc.send_transaction(signed)
        except (NetworkError, RpcError, HttpError) as e:
            logger.warning("submission did not reach rpc: %s", e)
            return NetworkFailure(cause=str(e))

        result = result or {}
        status = result.get("status")
        if status in ("PENDING", "DUPLICATE"):
            logger.info("transaction %s %s", str(result.get("hash", ""))[:12], status.lower())
            return Accepted(
                hash=result.get("hash", ""),
                ledger=result.get("latestLedger"),
                ledger_close_time=str(result["latestLedgerCloseTime"]) if result.get("latestLedgerCloseTime") else None,
            )
        if status == "TRY_AGAIN_LATER":
            return Rejected(result_code="try_again_later")
        if status == "ERROR":
            try:
                code = transaction_result_code(result.get("errorResultXdr"))
            except XdrError as e:
                logger.debug("undecodable errorResultXdr: %s", e)
                code = "unknown"
            logger.warning("transaction rejected: %s", code)
            return Rejected(result_code=code)
        return NetworkFailure(cause=f"unexpected sendTransaction status {status!r}")
