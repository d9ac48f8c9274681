"""Run settings for devchain-deploy, read from the environment."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .constants import (
    DEFAULT_HOST,
    DEFAULT_NETWORK,
    DEFAULT_PORT,
    DEFAULT_PRIVATE_KEY,
    DEFAULT_SCRIPT,
    DEPLOY_TOOL,
    NETWORK_CONFIG,
    NODE_BINARY,
)
from .paths import get_broadcast_dir, get_default_config_path, get_default_project_dir


@dataclass(frozen=True)
class Settings:
    """Everything a deployment run needs to know."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rpc_url: Optional[str] = None  # Derived from port when unset
    private_key: str = field(default=DEFAULT_PRIVATE_KEY, repr=False)
    script: str = DEFAULT_SCRIPT
    project_dir: Path = field(default_factory=get_default_project_dir)
    config_path: Path = field(default_factory=get_default_config_path)
    network: str = DEFAULT_NETWORK
    chain_id: Optional[int] = None  # Derived from network when unset
    deploy_tool: str = DEPLOY_TOOL
    node_binary: str = NODE_BINARY

    def __post_init__(self) -> None:
        if self.rpc_url is None:
            object.__setattr__(self, "rpc_url", f"http://localhost:{self.port}")
        if self.chain_id is None:
            if self.network not in NETWORK_CONFIG:
                raise ValueError(
                    f"Unknown network '{self.network}': set DEVCHAIN_CHAIN_ID explicitly"
                )
            object.__setattr__(self, "chain_id", NETWORK_CONFIG[self.network]["chain_id"])

    @property
    def broadcast_dir(self) -> Path:
        """Directory holding the deploy tool's broadcast artifacts for this script."""
        return get_broadcast_dir(self.project_dir, self.script, self.chain_id)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from DEVCHAIN_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings with unset variables falling back to defaults

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        if environ is None:
            environ = os.environ

        kwargs: Dict[str, Any] = {}
        if "DEVCHAIN_HOST" in environ:
            kwargs["host"] = environ["DEVCHAIN_HOST"]
        if "DEVCHAIN_PORT" in environ:
            kwargs["port"] = int(environ["DEVCHAIN_PORT"])
        if "DEVCHAIN_RPC_URL" in environ:
            kwargs["rpc_url"] = environ["DEVCHAIN_RPC_URL"]
        if "DEVCHAIN_PRIVATE_KEY" in environ:
            kwargs["private_key"] = environ["DEVCHAIN_PRIVATE_KEY"]
        if "DEVCHAIN_SCRIPT" in environ:
            kwargs["script"] = environ["DEVCHAIN_SCRIPT"]
        if "DEVCHAIN_PROJECT_DIR" in environ:
            kwargs["project_dir"] = Path(environ["DEVCHAIN_PROJECT_DIR"]).absolute()
        if "DEVCHAIN_CONFIG_PATH" in environ:
            kwargs["config_path"] = Path(environ["DEVCHAIN_CONFIG_PATH"]).absolute()
        if "DEVCHAIN_NETWORK" in environ:
            kwargs["network"] = environ["DEVCHAIN_NETWORK"]
        if "DEVCHAIN_CHAIN_ID" in environ:
            kwargs["chain_id"] = int(environ["DEVCHAIN_CHAIN_ID"])
        if "DEVCHAIN_FORGE" in environ:
            kwargs["deploy_tool"] = environ["DEVCHAIN_FORGE"]
        if "DEVCHAIN_ANVIL" in environ:
            kwargs["node_binary"] = environ["DEVCHAIN_ANVIL"]

        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "port" in changes and "rpc_url" not in changes and self.rpc_url == (
            f"http://localhost:{self.port}"
        ):
            # Keep the derived URL in step with the new port
            changes["rpc_url"] = f"http://localhost:{changes['port']}"
        return replace(self, **changes)
