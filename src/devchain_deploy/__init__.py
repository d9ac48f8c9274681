"""
devchain-deploy: deploy a smart contract to a local development chain exactly once
"""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    AddressNotFound,
    ConfigWriteFailed,
    DeploymentCancelled,
    DeploymentCommandFailed,
    DeploymentError,
    NodeStartFailed,
    NodeStartTimeout,
    NodeUnreachable,
    RpcError,
    ToolNotFound,
    VerificationInconclusive,
)
from .orchestrator import Orchestrator
from .settings import Settings
from .store import ConfigStore
from .types import DeploymentDescriptor

try:
    __version__ = version("devchain-deploy")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Orchestrator",
    "Settings",
    "ConfigStore",
    "DeploymentDescriptor",
    "DeploymentError",
    "RpcError",
    "NodeUnreachable",
    "NodeStartFailed",
    "NodeStartTimeout",
    "ToolNotFound",
    "DeploymentCommandFailed",
    "AddressNotFound",
    "VerificationInconclusive",
    "ConfigWriteFailed",
    "DeploymentCancelled",
]
