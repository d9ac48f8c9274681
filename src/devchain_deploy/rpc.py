"""Minimal JSON-RPC transport for talking to the devchain node."""

import itertools
from typing import Any, List, Optional

import requests

from .exceptions import RpcError

_request_ids = itertools.count(1)


def rpc_call(
    rpc_url: str,
    method: str,
    params: Optional[List[Any]] = None,
    timeout: float = 30,
) -> Any:
    """
    Make a single JSON-RPC call and return its result.

    Args:
        rpc_url: RPC endpoint URL
        method: JSON-RPC method name, e.g. "eth_blockNumber"
        params: Positional parameters (defaults to none)
        timeout: Request timeout in seconds

    Returns:
        The "result" member of the response (may be None)

    Raises:
        ValueError: If rpc_url is empty
        RpcError: On transport errors, HTTP errors, malformed bodies or RPC errors
    """
    if not rpc_url:
        raise ValueError("rpc_url must not be empty")

    try:
        response = requests.post(
            rpc_url,
            json={
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": next(_request_ids),
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RpcError(f"Network error during {method} call to {rpc_url}: {e}") from e

    # Check for HTTP errors
    if response.status_code != 200:
        raise RpcError(f"{method} request failed with status {response.status_code}")

    try:
        body = response.json()
    except ValueError as e:
        raise RpcError(f"{method} returned a non-JSON response") from e

    if not isinstance(body, dict):
        raise RpcError(f"{method} returned a malformed response: {body!r}")

    # Check for RPC errors
    if body.get("error") is not None:
        raise RpcError(f"RPC error from {method}: {body['error']}")

    if "result" not in body:
        raise RpcError(f"{method} response has no result")

    return body["result"]
