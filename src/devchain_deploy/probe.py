"""Liveness checks against the node's JSON-RPC endpoint."""

import logging
import time
from typing import Optional

from .cancellation import CancellationToken
from .constants import PROBE_TIMEOUT, READY_POLL_ATTEMPTS, READY_POLL_DELAY
from .exceptions import NodeUnreachable, RpcError
from .rpc import rpc_call

logger = logging.getLogger(__name__)


def get_block_number(rpc_url: str, timeout: float = PROBE_TIMEOUT) -> int:
    """
    Fetch the node's current block number.

    Args:
        rpc_url: RPC endpoint URL
        timeout: Request timeout in seconds

    Returns:
        Current block number

    Raises:
        ValueError: If rpc_url is empty
        NodeUnreachable: If the node does not answer with a block number
    """
    try:
        result = rpc_call(rpc_url, "eth_blockNumber", timeout=timeout)
    except RpcError as e:
        raise NodeUnreachable(str(e)) from e

    if not isinstance(result, str):
        raise NodeUnreachable(f"Invalid eth_blockNumber result from {rpc_url}: {result!r}")

    try:
        return int(result, 16)
    except ValueError as e:
        raise NodeUnreachable(f"Invalid eth_blockNumber result from {rpc_url}: {result!r}") from e


def is_reachable(rpc_url: str, timeout: float = PROBE_TIMEOUT) -> bool:
    """
    Check whether a node answers a minimal RPC call.

    Args:
        rpc_url: RPC endpoint URL
        timeout: Request timeout in seconds

    Returns:
        True only on a well-formed successful eth_blockNumber response

    Raises:
        ValueError: If rpc_url is empty
    """
    try:
        get_block_number(rpc_url, timeout=timeout)
    except NodeUnreachable as e:
        logger.debug("Node at %s not reachable: %s", rpc_url, e)
        return False
    return True


def wait_until_reachable(
    rpc_url: str,
    attempts: int = READY_POLL_ATTEMPTS,
    delay: float = READY_POLL_DELAY,
    token: Optional[CancellationToken] = None,
    timeout: float = PROBE_TIMEOUT,
) -> None:
    """
    Poll the node until it answers, with a fixed delay between attempts.

    Args:
        rpc_url: RPC endpoint URL
        attempts: Maximum number of probes
        delay: Seconds to wait between probes
        token: Cancellation token; a cancelled token stops the wait
        timeout: Per-probe request timeout in seconds

    Raises:
        NodeUnreachable: If the node never answered
        DeploymentCancelled: If the token was cancelled while waiting
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        if token is not None:
            token.raise_if_cancelled()
        try:
            get_block_number(rpc_url, timeout=timeout)
            return
        except NodeUnreachable as e:
            last_error = e
            logger.debug("Probe %d/%d of %s failed: %s", attempt, attempts, rpc_url, e)

        if attempt < attempts:
            if token is not None:
                token.sleep(delay)
            else:
                time.sleep(delay)

    raise NodeUnreachable(
        f"Node not available at {rpc_url} after {attempts} attempts: {last_error}"
    )
