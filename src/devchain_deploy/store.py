"""Persistence of the deployment descriptor."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from . import probe, verifier
from .constants import DEFAULT_CONTRACT_ADDRESS, DEFAULT_NETWORK, DEFAULT_PORT, NETWORK_CONFIG
from .exceptions import ConfigWriteFailed, RpcError
from .paths import get_default_config_path
from .types import DeploymentDescriptor, VerificationResult

logger = logging.getLogger(__name__)


class ConfigStore:
    """Reads and atomically writes the deployment descriptor file."""

    def __init__(
        self,
        path: Union[Path, str, None] = None,
        reachable: Callable[[str], bool] = probe.is_reachable,
        verify: Callable[[str, str], VerificationResult] = verifier.verify,
    ):
        """
        Initialize the store.

        Args:
            path: Descriptor path (defaults to ./config/contract-config.json)
            reachable: Node liveness check
            verify: On-chain bytecode check
        """
        self.path = Path(path) if path is not None else get_default_config_path()
        self._reachable = reachable
        self._verify = verify

    def check_existing(self) -> Optional[DeploymentDescriptor]:
        """
        Load the previously persisted descriptor.

        Returns:
            DeploymentDescriptor, or None if the file is missing or unusable
        """
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s, a new contract will be deployed: %s", self.path, e)
            return None

        try:
            return DeploymentDescriptor.from_dict(data)
        except ValueError as e:
            logger.warning("Ignoring invalid descriptor %s: %s", self.path, e)
            return None

    def is_deployed(self, descriptor: DeploymentDescriptor, rpc_url: Optional[str] = None) -> bool:
        """
        Check that the node is up and the stored address holds bytecode.

        Args:
            descriptor: Previously persisted descriptor
            rpc_url: Node to check against (defaults to the descriptor's rpcUrl)

        Returns:
            True only if the contract is verifiably deployed
        """
        rpc_url = rpc_url or descriptor.rpc_url
        if not self._reachable(rpc_url):
            logger.info("Node at %s not reachable, cannot confirm existing deployment", rpc_url)
            return False

        try:
            result = self._verify(rpc_url, descriptor.contract_address)
        except RpcError as e:
            logger.warning("Could not check contract at %s: %s", descriptor.contract_address, e)
            return False

        return result is VerificationResult.VERIFIED

    def persist(self, descriptor: DeploymentDescriptor) -> Path:
        """
        Write the descriptor atomically.

        The JSON goes to a temporary file in the same directory which is then
        renamed over the target, so readers see either the old or the new file.

        Returns:
            Path written

        Raises:
            ConfigWriteFailed: If the directory or file cannot be written
        """
        content = json.dumps(descriptor.to_dict(), indent=2) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent),
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                # Drop the partial temp file
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise ConfigWriteFailed(
                f"Could not write deployment descriptor {self.path}: {e}",
                hint="Check that the config directory exists and is writable.",
            ) from e

        logger.info("Deployment descriptor written to %s", self.path)
        return self.path

    def load_or_default(self, environ: Optional[Mapping[str, str]] = None) -> DeploymentDescriptor:
        """
        Descriptor for clients: the stored one, or defaults before the first deployment.

        Args:
            environ: Mapping for DEVCHAIN_CONTRACT_ADDRESS / DEVCHAIN_RPC_URL (defaults to os.environ)

        Returns:
            DeploymentDescriptor (deployed_at is empty for defaults)
        """
        existing = self.check_existing()
        if existing is not None:
            return existing

        if environ is None:
            environ = os.environ
        return DeploymentDescriptor(
            contract_address=environ.get("DEVCHAIN_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
            rpc_url=environ.get("DEVCHAIN_RPC_URL", f"http://localhost:{DEFAULT_PORT}"),
            network=DEFAULT_NETWORK,
            chain_id=NETWORK_CONFIG[DEFAULT_NETWORK]["chain_id"],
            deployed_at="",
        )
