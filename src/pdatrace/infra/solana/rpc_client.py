"""Solana JSON-RPC client — signatures, transactions and account info for the detector."""

import logging

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pdatrace.exceptions import ExternalServiceError, LookupFailure
from pdatrace.infra.http.rate_limited_client import RateLimitedClient
from pdatrace.parser.utils.types import AccountInfo

logger = logging.getLogger(__name__)


class SolanaRPCClient:
    """Minimal Solana JSON-RPC client: the external data provider for scans."""

    def __init__(self, rpc_url: str, http_client: RateLimitedClient) -> None:
        self._rpc_url = rpc_url
        self._http = http_client

    @retry(
        retry=retry_if_exception_type(ExternalServiceError),
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=2, min=3, max=30),
        reraise=True,
    )
    async def _call(self, method: str, params: list) -> dict | list | int | str | None:
        """Execute a JSON-RPC call and return the result field."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        try:
            resp = await self._http.post(self._rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Solana RPC transport error ({method}): {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalServiceError(f"Solana RPC returned non-JSON body ({method})") from e

        if "error" in data:
            error = data["error"]
            msg = error.get("message", str(error))
            raise ExternalServiceError(f"Solana RPC error ({method}): {msg}")

        return data.get("result")

    async def get_signatures(
        self,
        address: str,
        before: str | None = None,
        until: str | None = None,
        limit: int = 1000,
    ) -> list[dict]:
        """Fetch transaction signatures for an address.

        Returns list of {signature, slot, blockTime, err, ...} ordered newest-first.
        Uses `before` cursor for pagination; `until` stops at a known signature.
        """
        opts: dict = {"limit": limit}
        if before is not None:
            opts["before"] = before
        if until is not None:
            opts["until"] = until

        result = await self._call("getSignaturesForAddress", [address, opts])
        if result is None:
            return []
        return result  # type: ignore[return-value]

    async def get_transaction(self, signature: str) -> dict | None:
        """Fetch a transaction by signature with execution metadata.

        Uses json encoding so instruction data and account indexes come back raw;
        lookup-table keys arrive in meta.loadedAddresses.
        """
        opts = {
            "encoding": "json",
            "maxSupportedTransactionVersion": 0,
        }
        result = await self._call("getTransaction", [signature, opts])
        return result  # type: ignore[return-value]

    async def get_account_info(self, address: str) -> AccountInfo | None:
        """Current owner/lamports of an account, or None if it doesn't exist.

        Raises LookupFailure when the provider can't answer after retries.
        """
        try:
            result = await self._call("getAccountInfo", [address, {"encoding": "base64"}])
        except ExternalServiceError as e:
            raise LookupFailure(f"getAccountInfo failed for {address}") from e

        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            return None
        return AccountInfo(
            address=address,
            owner=value["owner"],
            lamports=value.get("lamports", 0),
            executable=value.get("executable", False),
        )
