"""Tests for SolanaRPCClient — JSON-RPC communication."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pdatrace.exceptions import ExternalServiceError, LookupFailure
from pdatrace.infra.solana.rpc_client import SolanaRPCClient


@pytest.fixture()
def mock_http():
    return AsyncMock()


@pytest.fixture()
def rpc(mock_http):
    return SolanaRPCClient(rpc_url="https://api.mainnet-beta.solana.com", http_client=mock_http)


def _mock_response(data: dict):
    resp = MagicMock()
    resp.json.return_value = data
    return resp


def _params(mock_http) -> list:
    call_args = mock_http.post.call_args
    payload = call_args[1]["json"] if "json" in call_args[1] else call_args[0][1]
    return payload["params"]


class TestGetSignatures:
    async def test_returns_signatures(self, rpc, mock_http):
        sigs = [
            {"signature": "sig1", "slot": 100, "blockTime": 1700000000, "err": None},
            {"signature": "sig2", "slot": 101, "blockTime": 1700000001, "err": None},
        ]
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": sigs})

        result = await rpc.get_signatures("SomeAddress123")
        assert len(result) == 2
        assert result[0]["signature"] == "sig1"
        assert result[1]["slot"] == 101

    async def test_none_result(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": None})

        result = await rpc.get_signatures("SomeAddress123")
        assert result == []

    async def test_pagination_params(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": []})

        await rpc.get_signatures("Addr", before="prevSig", until="oldSig", limit=500)
        params = _params(mock_http)
        assert params[0] == "Addr"
        assert params[1] == {"before": "prevSig", "until": "oldSig", "limit": 500}

    async def test_no_cursor_by_default(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": []})

        await rpc.get_signatures("Addr")
        assert _params(mock_http)[1] == {"limit": 1000}


class TestGetTransaction:
    async def test_requests_json_with_versioned_support(self, rpc, mock_http):
        tx_data = {
            "transaction": {"message": {"accountKeys": ["abc"]}},
            "meta": {"fee": 5000, "preBalances": [100], "postBalances": [95]},
        }
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": tx_data})

        result = await rpc.get_transaction("someSig123")
        assert result["meta"]["fee"] == 5000
        assert _params(mock_http)[1] == {"encoding": "json", "maxSupportedTransactionVersion": 0}

    async def test_not_found_returns_none(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({"jsonrpc": "2.0", "id": 1, "result": None})

        result = await rpc.get_transaction("missingTx")
        assert result is None


class TestGetAccountInfo:
    async def test_existing_account(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1,
            "result": {
                "context": {"slot": 1},
                "value": {
                    "owner": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
                    "lamports": 2039280,
                    "executable": False,
                    "data": ["", "base64"],
                },
            },
        })

        info = await rpc.get_account_info("AtaAddress")
        assert info is not None
        assert info.address == "AtaAddress"
        assert info.owner == "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
        assert info.lamports == 2039280

    async def test_missing_account_is_none(self, rpc, mock_http):
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 1}, "value": None},
        })

        assert await rpc.get_account_info("ClosedAccount") is None

    async def test_provider_error_raises_lookup_failure(self, rpc, mock_http, no_retry_wait):
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1,
            "error": {"code": -32005, "message": "Node is behind"},
        })

        with pytest.raises(LookupFailure):
            await rpc.get_account_info("SomeAccount")
        assert mock_http.post.call_count == 5


class TestRPCErrors:
    async def test_rpc_error_raises(self, rpc, mock_http, no_retry_wait):
        """RPC errors are retried 5 times, then the last ExternalServiceError is re-raised."""
        mock_http.post.return_value = _mock_response({
            "jsonrpc": "2.0", "id": 1,
            "error": {"code": -32600, "message": "Invalid request"},
        })

        with pytest.raises(ExternalServiceError, match="Invalid request"):
            await rpc.get_transaction("sig")

        assert mock_http.post.call_count == 5

    async def test_transport_error_retried(self, rpc, mock_http, no_retry_wait):
        ok = _mock_response({"jsonrpc": "2.0", "id": 1, "result": []})
        mock_http.post.side_effect = [httpx.ConnectError("refused"), ok]

        result = await rpc.get_signatures("Addr")
        assert result == []
        assert mock_http.post.call_count == 2

    async def test_non_json_body_retried(self, rpc, mock_http, no_retry_wait):
        bad = MagicMock()
        bad.json.side_effect = ValueError("Expecting value")
        ok = _mock_response({"jsonrpc": "2.0", "id": 1, "result": None})
        mock_http.post.side_effect = [bad, ok]

        assert await rpc.get_transaction("sig") is None
        assert mock_http.post.call_count == 2
