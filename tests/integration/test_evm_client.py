"""Integration tests for the EVM client: RPC fallback, batching and error handling."""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vault_risk.chains.evm import EvmRpcClient
from vault_risk.config import ChainConfig
from vault_risk.errors import RpcError

from tests.conftest import BASE_CHAIN_ID, FEED_ADDRESS

SESSION = "vault_risk.chains.evm.client.aiohttp.ClientSession"
CONNECTOR = "vault_risk.chains.evm.client.aiohttp.TCPConnector"


@pytest.fixture()
def client() -> EvmRpcClient:
    return EvmRpcClient(
        ChainConfig(
            chain_id=BASE_CHAIN_ID,
            rpc_endpoints=(
                "https://rpc1.example.com",
                "https://rpc2.example.com",
                "https://rpc3.example.com",
            ),
            rpc_timeout=5,
        )
    )


def _mock_response(response_data: Any) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.json = AsyncMock(return_value=response_data)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)
    return mock_response


def _mock_session(response_data: Any = None, error: Exception | None = None) -> AsyncMock:
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(
            return_value=_mock_response({} if response_data is None else response_data)
        )
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": "0x2105"})

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                result = await client.rpc_call("eth_chainId", [])

        assert result == "0x2105"
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "eth_chainId"
        assert payload["jsonrpc"] == "2.0"

    @pytest.mark.asyncio
    async def test_rpc_error_raises_without_fallback(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}}
        )

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                with pytest.raises(RpcError, match="execution reverted") as exc_info:
                    await client.rpc_call("eth_call", [])

        assert exc_info.value.rpc_code == 3
        assert mock_session.post.call_count == 1

    @pytest.mark.asyncio
    async def test_malformed_response(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session(["not", "an", "object"])

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                with pytest.raises(RuntimeError, match="Malformed RPC response"):
                    await client.rpc_call("eth_call", [])

    @pytest.mark.asyncio
    async def test_fallback_on_connection_error(self, client: EvmRpcClient) -> None:
        """When first endpoint fails, should try the next one."""
        call_count = 0
        success_response = _mock_response({"jsonrpc": "2.0", "id": 1, "result": "0x1"})

        def side_effect(*args, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise ConnectionError("first endpoint down")
            return success_response

        mock_session = AsyncMock()
        mock_session.post = MagicMock(side_effect=side_effect)
        mock_session.__aenter__ = AsyncMock(return_value=mock_session)
        mock_session.__aexit__ = AsyncMock(return_value=None)

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                result = await client.rpc_call("eth_blockNumber", [])

        assert result == "0x1"
        assert client.current_rpc_index == 1
        assert mock_session.post.call_args.args[0] == "https://rpc2.example.com"

    @pytest.mark.asyncio
    async def test_all_endpoints_fail(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session(error=ConnectionError("down"))

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                with pytest.raises(RuntimeError, match="All RPC endpoints failed"):
                    await client.rpc_call("eth_blockNumber", [])

        assert mock_session.post.call_count == 3


class TestRpcBatch:
    @pytest.mark.asyncio
    async def test_results_in_request_order(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session(
            [
                {"jsonrpc": "2.0", "id": 2, "result": "0xc"},
                {"jsonrpc": "2.0", "id": 0, "result": "0xa"},
                {"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "reverted"}},
            ]
        )

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                results = await client.rpc_batch(
                    [("m", []), ("m", []), ("m", [])]
                )

        assert results[0] == "0xa"
        assert isinstance(results[1], RpcError)
        assert results[2] == "0xc"
        payload = mock_session.post.call_args.kwargs["json"]
        assert [item["id"] for item in payload] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_missing_entry_is_error(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session([{"jsonrpc": "2.0", "id": 0, "result": "0x1"}])

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                results = await client.rpc_batch([("m", []), ("m", [])])

        assert results[0] == "0x1"
        assert isinstance(results[1], RpcError)

    @pytest.mark.asyncio
    async def test_whole_batch_error_object(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session(
            {"jsonrpc": "2.0", "id": None, "error": {"code": -32600, "message": "batch too large"}}
        )

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                results = await client.rpc_batch([("m", []), ("m", [])])

        assert all(isinstance(r, RpcError) for r in results)

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_request(self, client: EvmRpcClient) -> None:
        with patch(SESSION) as session_cls:
            assert await client.rpc_batch([]) == []
        session_cls.assert_not_called()


class TestEthCall:
    @pytest.mark.asyncio
    async def test_encodes_request_and_decodes_result(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": "0x" + "00" * 31 + "2a"})

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                result = await client.eth_call(FEED_ADDRESS, bytes.fromhex("feaf968c"))

        assert result == bytes(31) + b"\x2a"
        payload = mock_session.post.call_args.kwargs["json"]
        assert payload["method"] == "eth_call"
        assert payload["params"] == [{"to": FEED_ADDRESS, "data": "0xfeaf968c"}, "latest"]

    @pytest.mark.asyncio
    async def test_non_hex_result_raises(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": None})

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                with pytest.raises(ValueError):
                    await client.eth_call(FEED_ADDRESS, b"\x00")

    @pytest.mark.asyncio
    async def test_batch_maps_failures_to_none(self, client: EvmRpcClient) -> None:
        mock_session = _mock_session(
            [
                {"jsonrpc": "2.0", "id": 0, "error": {"code": 3, "message": "reverted"}},
                {"jsonrpc": "2.0", "id": 1, "result": "0x01"},
                {"jsonrpc": "2.0", "id": 2, "result": None},
            ]
        )

        with patch(SESSION, return_value=mock_session):
            with patch(CONNECTOR):
                results = await client.eth_call_batch(
                    [(FEED_ADDRESS, b"\x01"), (FEED_ADDRESS, b"\x02"), (FEED_ADDRESS, b"\x03")]
                )

        assert results == [None, b"\x01", None]
