"""Unit tests for the JSON-RPC transport and node liveness probe."""

import json

import pytest
import requests
import responses

from devchain_deploy.cancellation import CancellationToken
from devchain_deploy.exceptions import DeploymentCancelled, NodeUnreachable, RpcError
from devchain_deploy.probe import get_block_number, is_reachable, wait_until_reachable
from devchain_deploy.rpc import rpc_call

RPC_URL = "http://localhost:8545"


class TestRpcCall:
    """Test the rpc_call function."""

    @responses.activate
    def test_returns_result(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1, "result": "0x10"})

        assert rpc_call(RPC_URL, "eth_blockNumber") == "0x10"

    @responses.activate
    def test_request_format(self):
        """Test that the request is a JSON-RPC 2.0 envelope."""

        def request_callback(request):
            body = json.loads(request.body)
            assert body["jsonrpc"] == "2.0"
            assert body["method"] == "eth_getCode"
            assert body["params"] == ["0xabc", "latest"]
            assert isinstance(body["id"], int)
            return (200, {}, json.dumps({"jsonrpc": "2.0", "id": body["id"], "result": "0x"}))

        responses.add_callback(
            responses.POST, RPC_URL, callback=request_callback, content_type="application/json"
        )

        assert rpc_call(RPC_URL, "eth_getCode", ["0xabc", "latest"]) == "0x"

    @responses.activate
    def test_rpc_error_raises(self):
        responses.add(
            responses.POST,
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "nope"}},
        )

        with pytest.raises(RpcError, match="nope"):
            rpc_call(RPC_URL, "eth_fooBar")

    @responses.activate
    def test_http_error_raises(self):
        responses.add(responses.POST, RPC_URL, body="Internal error", status=500)

        with pytest.raises(RpcError, match="500"):
            rpc_call(RPC_URL, "eth_blockNumber")

    @responses.activate
    def test_non_json_body_raises(self):
        responses.add(responses.POST, RPC_URL, body="<html>not json</html>", status=200)

        with pytest.raises(RpcError):
            rpc_call(RPC_URL, "eth_blockNumber")

    @responses.activate
    def test_connection_error_raises(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))

        with pytest.raises(RpcError, match="Network error"):
            rpc_call(RPC_URL, "eth_blockNumber")

    def test_empty_url_is_programmer_error(self):
        with pytest.raises(ValueError):
            rpc_call("", "eth_blockNumber")


class TestIsReachable:
    """Test the is_reachable function."""

    @responses.activate
    def test_true_on_block_number(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1, "result": "0x0"})

        assert is_reachable(RPC_URL) is True

    @responses.activate
    def test_false_on_connection_refused(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))

        assert is_reachable(RPC_URL) is False

    @responses.activate
    def test_false_on_timeout(self):
        responses.add(responses.POST, RPC_URL, body=requests.Timeout("slow"))

        assert is_reachable(RPC_URL) is False

    @responses.activate
    def test_false_on_error_response(self):
        responses.add(
            responses.POST,
            RPC_URL,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -1, "message": "bad"}},
        )

        assert is_reachable(RPC_URL) is False

    @responses.activate
    def test_false_on_malformed_result(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1, "result": None})

        assert is_reachable(RPC_URL) is False

    @responses.activate
    def test_false_on_missing_result(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1})

        assert is_reachable(RPC_URL) is False

    def test_empty_url_raises(self):
        with pytest.raises(ValueError):
            is_reachable("")


class TestGetBlockNumber:
    """Test the get_block_number function."""

    @responses.activate
    def test_parses_hex_block_number(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1, "result": "0x2a"})

        assert get_block_number(RPC_URL) == 42

    @responses.activate
    def test_invalid_hex_raises(self):
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1, "result": "zz"})

        with pytest.raises(NodeUnreachable):
            get_block_number(RPC_URL)


class TestWaitUntilReachable:
    """Test the post-start reachability poll."""

    @responses.activate
    def test_returns_once_node_answers(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))
        responses.add(responses.POST, RPC_URL, json={"jsonrpc": "2.0", "id": 1, "result": "0x0"})

        wait_until_reachable(RPC_URL, attempts=3, delay=0)

        assert len(responses.calls) == 2

    @responses.activate
    def test_raises_after_last_attempt(self):
        responses.add(responses.POST, RPC_URL, body=requests.ConnectionError("refused"))

        with pytest.raises(NodeUnreachable, match="after 3 attempts"):
            wait_until_reachable(RPC_URL, attempts=3, delay=0)

        assert len(responses.calls) == 3

    def test_cancelled_token_stops_wait(self):
        token = CancellationToken()
        token.cancel("test")

        with pytest.raises(DeploymentCancelled):
            wait_until_reachable(RPC_URL, attempts=3, delay=0, token=token)
