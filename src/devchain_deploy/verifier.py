"""On-chain confirmation that a contract exists at an address."""

import logging
from typing import Optional

from .constants import GET_CODE_TIMEOUT
from .exceptions import RpcError, VerificationInconclusive
from .rpc import rpc_call
from .types import VerificationResult

logger = logging.getLogger(__name__)

_EMPTY_CODE = {"", "0x", "0x0"}


def normalize_address(address: str) -> str:
    """Lowercase an address and make sure it carries the 0x prefix."""
    lowered = address.strip().lower()
    return lowered if lowered.startswith("0x") else "0x" + lowered


def classify_code(code: Optional[str]) -> VerificationResult:
    """
    Classify an eth_getCode result.

    Args:
        code: Hex bytecode string as returned by the node

    Returns:
        EMPTY for a missing, "0x" or "0x0" result, VERIFIED otherwise
    """
    if not isinstance(code, str) or code.lower() in _EMPTY_CODE or len(code) <= 2:
        return VerificationResult.EMPTY
    return VerificationResult.VERIFIED


def get_code(rpc_url: str, address: str, timeout: float = GET_CODE_TIMEOUT) -> Optional[str]:
    """
    Fetch the bytecode stored at an address.

    Raises:
        RpcError: If the call fails
    """
    return rpc_call(
        rpc_url, "eth_getCode", [normalize_address(address), "latest"], timeout=timeout
    )


def verify(rpc_url: str, address: str, timeout: float = GET_CODE_TIMEOUT) -> VerificationResult:
    """
    Check whether contract bytecode exists at an address.

    Args:
        rpc_url: Node RPC endpoint
        address: Contract address
        timeout: Request timeout in seconds

    Returns:
        VerificationResult.VERIFIED or VerificationResult.EMPTY

    Raises:
        RpcError: If the node cannot be queried
    """
    code = get_code(rpc_url, address, timeout=timeout)
    result = classify_code(code)
    if result is VerificationResult.VERIFIED:
        logger.info("Contract verified at %s (%d hex chars of code)", address, len(code))
    else:
        logger.info("No contract code at %s (code = %r)", address, code)
    return result


def ensure_deployed(rpc_url: str, address: str, timeout: float = GET_CODE_TIMEOUT) -> None:
    """
    Like verify, but report anything short of VERIFIED as an exception.

    Raises:
        VerificationInconclusive: If the code is empty or the node could not be queried
    """
    try:
        result = verify(rpc_url, address, timeout=timeout)
    except RpcError as e:
        raise VerificationInconclusive(f"Could not verify contract at {address}: {e}") from e

    if result is VerificationResult.EMPTY:
        raise VerificationInconclusive(
            f"No bytecode found at {address}",
            hint="This can happen if the node restarted; the next run will redeploy.",
        )
