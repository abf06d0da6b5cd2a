"""Lazy, restartable iteration over an address's signature history."""

import logging
from collections.abc import AsyncIterator

from pdatrace.infra.solana.rpc_client import SolanaRPCClient

logger = logging.getLogger(__name__)


class SignaturePager:
    """Async iterator over getSignaturesForAddress pages, newest-first.

    `cursor` is the last signature handed out; pass it back as `before` to resume a scan
    where a previous pager stopped.
    """

    def __init__(
        self,
        rpc: SolanaRPCClient,
        address: str,
        before: str | None = None,
        until: str | None = None,
        page_size: int = 1000,
    ) -> None:
        self._rpc = rpc
        self._address = address
        self._until = until
        self._page_size = page_size
        self._page_before = before
        self.cursor = before
        self.exhausted = False

    async def next_page(self) -> list[dict]:
        """Fetch the next page; empty once history (or `until`) is reached."""
        if self.exhausted:
            return []

        batch = await self._rpc.get_signatures(
            self._address, before=self._page_before, until=self._until, limit=self._page_size
        )
        if len(batch) < self._page_size:
            self.exhausted = True
        if batch:
            self._page_before = batch[-1]["signature"]
        logger.debug("Fetched %d signatures for %s", len(batch), self._address)
        return batch

    async def __aiter__(self) -> AsyncIterator[dict]:
        while True:
            batch = await self.next_page()
            if not batch:
                return
            for sig_info in batch:
                self.cursor = sig_info["signature"]
                yield sig_info
