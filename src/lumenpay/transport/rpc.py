"""
Soroban RPC client (JSON-RPC 2.0): account reads, simulation and
submission.
"""

import logging
from typing import Any, Optional

import httpx
from stellar_sdk import Keypair
from stellar_sdk import xdr as stellar_xdr

from lumenpay.errors import AccountNotFound, RpcError, XdrError
from lumenpay.models.account import LedgerAccount
from lumenpay.models.outcome import SimulationResult
from lumenpay.models.transaction import NATIVE, ResourceFootprint, SignedEnvelope, TransactionEnvelope
from lumenpay.scval import decode as decode_scval
from lumenpay.strkey import AccountAddress
from lumenpay.transport.envelope import decode_xdr
from lumenpay.transport.http import HttpClient

logger = logging.getLogger(__name__)


def account_ledger_key(address: AccountAddress) -> str:
    key = stellar_xdr.LedgerKey(
        stellar_xdr.LedgerEntryType.ACCOUNT,
        account=stellar_xdr.LedgerKeyAccount(Keypair.from_public_key(str(address)).xdr_account_id()),
    )
    return key.to_xdr()


def decode_account_entry(entry_xdr: str) -> tuple[int, int]:
    """(native balance, sequence) from base64 LedgerEntryData for an account."""
    data = decode_xdr(stellar_xdr.LedgerEntryData, entry_xdr, "ledger entry")
    if data.type != stellar_xdr.LedgerEntryType.ACCOUNT or data.account is None:
        raise XdrError(f"expected an account entry, got {data.type.name}")
    return data.account.balance.int64, data.account.seq_num.sequence_number.int64


def parse_simulation(result: dict[str, Any]) -> SimulationResult:
    latest = result.get("latestLedger")
    if result.get("error"):
        return SimulationResult(success=False, diagnostic=str(result["error"]), latest_ledger=latest)
    if result.get("restorePreamble"):
        return SimulationResult(
            success=False,
            diagnostic="contract state is archived and must be restored before this call",
            latest_ledger=latest,
        )
    if not result.get("transactionData"):
        return SimulationResult(success=False, diagnostic="simulation returned no resource data", latest_ledger=latest)

    min_fee = int(result.get("minResourceFee") or 0)
    results = result.get("results") or []
    first = results[0] if results else {}
    return_value = decode_scval(first["xdr"]) if first.get("xdr") else None
    return SimulationResult(
        success=True,
        return_value=return_value,
        footprint=ResourceFootprint(transaction_data=result["transactionData"], min_resource_fee=min_fee),
        min_resource_fee=min_fee,
        auth=tuple(first.get("auth") or ()),
        latest_ledger=latest,
    )


class SorobanRpcClient:
    def __init__(self, rpc_url: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30.0):
        self._http = HttpClient(rpc_url, timeout=timeout, transport=transport)
        self._request_id = 1

    @property
    def url(self) -> str:
        return self._http.base_url

    async def _call(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        request = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or {},
        }
        self._request_id += 1
        logger.debug("rpc %s", method)
        result = await self._http.post("", request)
        if not isinstance(result, dict):
            raise RpcError(-32700, "response is not a JSON-RPC object")
        if result.get("error"):
            error = result["error"]
            raise RpcError(error.get("code", -32603), error.get("message", "unknown error"))
        return result.get("result")

    async def get_health(self) -> dict[str, Any]:
        return await self._call("getHealth")

    async def get_network(self) -> dict[str, Any]:
        return await self._call("getNetwork")

    async def get_account(self, address: str) -> LedgerAccount:
        account_id = AccountAddress.parse(address)
        result = await self._call("getLedgerEntries", {"keys": [account_ledger_key(account_id)]})
        entries = (result or {}).get("entries") or []
        if not entries:
            raise AccountNotFound(account_id)
        balance, sequence = decode_account_entry(entries[0]["xdr"])
        return LedgerAccount(address=account_id, sequence=sequence, balances={NATIVE: balance})

    async def simulate_transaction(self, envelope: TransactionEnvelope) -> SimulationResult:
        result = await self._call("simulateTransaction", {"transaction": envelope.to_xdr()})
        simulation = parse_simulation(result or {})
        if not simulation.success:
            logger.info("simulation failed: %s", simulation.diagnostic)
        return simulation

    async def send_transaction(self, signed: SignedEnvelope) -> dict[str, Any]:
        return await self._call("sendTransaction", {"transaction": signed.to_xdr()})

    async def close(self) -> None:
        await self._http.close()
