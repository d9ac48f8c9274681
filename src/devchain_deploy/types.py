"""Data types and dataclasses for devchain-deploy."""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: Any) -> bool:
    """Return True if value is a 0x-prefixed 20-byte hex string."""
    return isinstance(value, str) and bool(ADDRESS_RE.match(value))


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment as ISO-8601 UTC with millisecond precision and a Z suffix."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass(frozen=True)
class DeploymentDescriptor:
    """Where the contract lives and how to reach the node."""

    contract_address: str
    rpc_url: str
    network: str
    chain_id: int
    deployed_at: str  # ISO-8601, e.g. "2024-05-01T12:00:00.000Z"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys clients expect."""
        return {
            "contractAddress": self.contract_address,
            "rpcUrl": self.rpc_url,
            "network": self.network,
            "chainId": self.chain_id,
            "deployedAt": self.deployed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentDescriptor":
        """
        Build a descriptor from its JSON form.

        Args:
            data: Parsed descriptor file

        Returns:
            DeploymentDescriptor

        Raises:
            ValueError: If a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Descriptor must be a JSON object")

        address = data.get("contractAddress")
        if not is_address(address):
            raise ValueError(f"Invalid contractAddress: {address!r}")

        try:
            return cls(
                contract_address=address,
                rpc_url=str(data["rpcUrl"]),
                network=str(data.get("network", "")),
                chain_id=int(data["chainId"]),
                deployed_at=str(data.get("deployedAt", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed descriptor: {e}") from e


@dataclass(frozen=True)
class ToolPath:
    """Resolved deploy tool executable."""

    path: str  # Absolute path or bare command name
    strategy: str  # "path", "which", "install-dir" or "fallback"

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class DeploymentOutput:
    """Result of a deploy tool invocation."""

    combined_output: str
    exit_code: int


class VerificationResult(Enum):
    """Outcome of an on-chain bytecode check."""

    VERIFIED = "verified"
    EMPTY = "empty"


class NodeState(Enum):
    """Lifecycle of a supervised node process."""

    NOT_STARTED = "not-started"
    STARTING = "starting"
    READY = "ready"
    START_FAILED = "start-failed"
    TIMED_OUT = "timed-out"


class OrchestratorState(Enum):
    """States of a single deployment run."""

    IDLE = "idle"
    PROBING_NODE = "probing-node"
    STARTING_NODE = "starting-node"
    WAITING_READY = "waiting-ready"
    CHECKING_EXISTING_DEPLOYMENT = "checking-existing-deployment"
    LOCATING_TOOL = "locating-tool"
    RUNNING_DEPLOYMENT = "running-deployment"
    EXTRACTING_ADDRESS = "extracting-address"
    VERIFYING_DEPLOYMENT = "verifying-deployment"
    PERSISTING_CONFIG = "persisting-config"
    DONE = "done"
    FAILED = "failed"
