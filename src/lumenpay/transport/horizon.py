"""
Horizon client — the ledger read endpoint (accounts, payments, fee stats)
and classic transaction submission.
"""

import logging
from typing import Any, Optional

import httpx

from lumenpay.config import DEFAULT_BASE_FEE
from lumenpay.errors import AccountNotFound, HttpError
from lumenpay.models.account import LedgerAccount
from lumenpay.models.history import PaymentRecord
from lumenpay.strkey import AccountAddress
from lumenpay.transport.http import HttpClient

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 200


class HorizonClient:
    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30.0):
        self._http = HttpClient(base_url, timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._http.base_url

    async def get_account(self, address: str) -> LedgerAccount:
        """Fresh account snapshot. Re-fetch before every new transaction."""
        account_id = AccountAddress.parse(address)
        try:
            data = await self._http.get(f"/accounts/{account_id}")
        except HttpError as e:
            if e.status_code == 404:
                raise AccountNotFound(account_id) from e
            raise
        return LedgerAccount.from_horizon(data)

    async def payments(self, address: str, order: str = "desc", limit: int = 100) -> list[dict[str, Any]]:
        """Raw payment-stream records for an account."""
        if order not in ("asc", "desc"):
            raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
        account_id = AccountAddress.parse(address)
        try:
            data = await self._http.get(
                f"/accounts/{account_id}/payments",
                params={"order": order, "limit": max(1, min(limit, MAX_PAGE_LIMIT))},
            )
        except HttpError as e:
            if e.status_code == 404:
                raise AccountNotFound(account_id) from e
            raise
        return list((data or {}).get("_embedded", {}).get("records", []))

    async def payment_log(self, address: str, limit: int = 100) -> list[PaymentRecord]:
        """Payments newest-first, skipping operation types that are not replayable."""
        records = []
        for raw in await self.payments(address, order="desc", limit=limit):
            record = PaymentRecord.from_horizon(raw)
            if record is not None:
                records.append(record)
        return records

    async def base_fee(self) -> int:
        data = await self._http.get("/fee_stats")
        try:
            return int(data["last_ledger_base_fee"])
        except (KeyError, TypeError, ValueError):
            logger.debug("fee_stats without last_ledger_base_fee, using %d", DEFAULT_BASE_FEE)
            return DEFAULT_BASE_FEE

    async def submit_transaction(self, envelope_xdr: str) -> httpx.Response:
        """POST /transactions. The raw response is returned for classification."""
        return await self._http.send("POST", "/transactions", data={"tx": envelope_xdr})

    async def close(self) -> None:
        await self._http.close()
