"""Extraction of the deployed contract address from tool output or artifacts."""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .exceptions import AddressNotFound
from .types import is_address

logger = logging.getLogger(__name__)

_ADDRESS = r"(0x[a-fA-F0-9]{40})(?![a-fA-F0-9])"

# Most specific first
ADDRESS_PATTERNS = [
    re.compile(r"Contract deployed to:\s*" + _ADDRESS, re.IGNORECASE),
    re.compile(r"Deployed to:\s*" + _ADDRESS, re.IGNORECASE),
    re.compile(r"contract\s*address[\"'\s:]+" + _ADDRESS, re.IGNORECASE),
    re.compile(r"(?:deployed|contract|address)[:\s]+" + _ADDRESS, re.IGNORECASE),
]


@dataclass(frozen=True)
class Strategy:
    """One way of finding the address; ``find`` returns None to pass to the next."""

    name: str
    find: Callable[[str, Optional[Path]], Optional[str]]
    location: Callable[[Optional[Path]], str]


def _pattern_strategy(pattern: "re.Pattern[str]") -> Strategy:
    def find(output: str, artifact_dir: Optional[Path]) -> Optional[str]:
        match = pattern.search(output)
        return match.group(1) if match else None

    return Strategy(
        name=f"output:{pattern.pattern}",
        find=find,
        location=lambda artifact_dir: f"deployment output /{pattern.pattern}/",
    )


def latest_artifact(artifact_dir: Path) -> Optional[Path]:
    """
    Most recent broadcast artifact in a directory.

    Artifact file names sort chronologically, so the greatest name wins.

    Returns:
        Path to the newest *.json file, or None if there is none
    """
    if not artifact_dir.is_dir():
        return None
    candidates = sorted(
        (p for p in artifact_dir.glob("*.json") if p.is_file()),
        key=lambda p: p.name,
        reverse=True,
    )
    return candidates[0] if candidates else None


def parse_broadcast_artifact(data: Dict[str, Any]) -> Optional[str]:
    """
    Find the first contract address in a broadcast artifact.

    Looks at transactions[].contractAddress, then transactions[].transaction.contractAddress,
    then summary.transactions[].contractAddress.

    Args:
        data: Parsed artifact JSON

    Returns:
        Contract address, or None if the artifact has none
    """
    if not isinstance(data, dict):
        return None

    transactions = data.get("transactions")
    if isinstance(transactions, list):
        for tx in transactions:
            if not isinstance(tx, dict):
                continue
            if is_address(tx.get("contractAddress")):
                return tx["contractAddress"]
            inner = tx.get("transaction")
            if isinstance(inner, dict) and is_address(inner.get("contractAddress")):
                return inner["contractAddress"]

    summary = data.get("summary")
    if isinstance(summary, dict) and isinstance(summary.get("transactions"), list):
        for tx in summary["transactions"]:
            if isinstance(tx, dict) and is_address(tx.get("contractAddress")):
                return tx["contractAddress"]

    return None


def _find_in_artifacts(output: str, artifact_dir: Optional[Path]) -> Optional[str]:
    if artifact_dir is None:
        return None

    latest = latest_artifact(artifact_dir)
    if latest is None:
        logger.info("No broadcast artifacts in %s", artifact_dir)
        return None

    logger.info("Reading broadcast artifact %s", latest)
    try:
        with open(latest, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read broadcast artifact %s: %s", latest, e)
        return None

    return parse_broadcast_artifact(data)


def _artifact_location(artifact_dir: Optional[Path]) -> str:
    if artifact_dir is None:
        return "broadcast artifacts (no directory configured)"
    latest = latest_artifact(artifact_dir)
    if latest is None:
        return f"broadcast artifacts in {artifact_dir} (none found)"
    return f"broadcast artifact {latest}"


ARTIFACT_STRATEGY = Strategy(
    name="broadcast-artifact",
    find=_find_in_artifacts,
    location=_artifact_location,
)

DEFAULT_STRATEGIES: List[Strategy] = [
    *(_pattern_strategy(p) for p in ADDRESS_PATTERNS),
    ARTIFACT_STRATEGY,
]


def resolve_address(
    combined_output: str,
    artifact_dir: Union[Path, str, None] = None,
    strategies: Optional[List[Strategy]] = None,
) -> str:
    """
    Extract the deployed contract address; the first strategy that matches wins.

    Args:
        combined_output: Merged stdout/stderr of the deploy tool
        artifact_dir: Directory of broadcast artifacts used as a fallback
        strategies: Ordered strategies (defaults to DEFAULT_STRATEGIES)

    Returns:
        Contract address as found

    Raises:
        AddressNotFound: If no strategy yields an address
    """
    if strategies is None:
        strategies = DEFAULT_STRATEGIES
    directory = Path(artifact_dir) if artifact_dir is not None else None

    for strategy in strategies:
        address = strategy.find(combined_output or "", directory)
        if address is not None:
            logger.info("Contract address %s found via %s", address, strategy.name)
            return address

    searched = [strategy.location(directory) for strategy in strategies]
    raise AddressNotFound(
        "Could not find the deployed contract address. Searched:\n  "
        + "\n  ".join(searched),
        searched=searched,
    )
