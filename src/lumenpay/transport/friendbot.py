"""
Friendbot — test-network funding. Repeated calls for the same address may
be refused.
"""

import logging
from typing import Optional

import httpx

from lumenpay.errors import NetworkError
from lumenpay.strkey import AccountAddress
from lumenpay.transport.http import HttpClient

logger = logging.getLogger(__name__)


class FriendbotClient:
    def __init__(self, url: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 60.0):
        self._http = HttpClient(url, timeout=timeout, transport=transport)

    async def fund(self, address: str) -> bool:
        """True when funded, False when refused (already funded, rate limited)."""
        account_id = AccountAddress.parse(address)
        resp = await self._http.send("GET", "", params={"addr": str(account_id)})
        if resp.status_code >= 500:
            raise NetworkError(f"friendbot answered HTTP {resp.status_code}")
        funded = resp.status_code < 400
        logger.info("friendbot %s for %s", "funded" if funded else "refused", account_id.short())
        return funded

    async def close(self) -> None:
        await self._http.close()
