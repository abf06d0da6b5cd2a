import pytest
from solders.pubkey import Pubkey
from tenacity import wait_none

from pdatrace.infra.solana.rpc_client import SolanaRPCClient


@pytest.fixture()
def no_retry_wait(monkeypatch):
    """Keep the RPC client's 5 retries but drop the exponential backoff between them."""
    monkeypatch.setattr(SolanaRPCClient._call.retry, "wait", wait_none())


@pytest.fixture()
def new_key():
    """Factory for fresh, valid base58 pubkeys."""
    return lambda: str(Pubkey.new_unique())
