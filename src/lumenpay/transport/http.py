"""
Shared async HTTP plumbing for Horizon, Soroban RPC, Friendbot and the
remote signer.

Transport failures and 5xx answers become NetworkError; 4xx answers
become HttpError carrying the parsed body.
"""

import logging
from typing import Any, Optional

import httpx

from lumenpay.errors import HttpError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "lumenpay/0.1.0"


class HttpClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    async def send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and return the raw response; only transport failures raise."""
        logger.debug("%s %s%s", method, self._base_url, path)
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(f"{method} {self._base_url}{path} failed: {e}", {"cause": type(e).__name__}) from e

    def _check(self, resp: httpx.Response) -> Any:
        body = self._json(resp)
        if resp.status_code >= 500:
            raise NetworkError(f"HTTP {resp.status_code} from {resp.request.url}: {resp.text[:200]}",
                               {"status_code": resp.status_code})
        if resp.status_code >= 400:
            detail = (body.get("detail") or body.get("title")) if isinstance(body, dict) else None
            raise HttpError(resp.status_code, detail or resp.text[:200], body)
        return body

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self._check(await self.send("GET", path, params=params))

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return self._check(await self.send("POST", path, json=body))

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
