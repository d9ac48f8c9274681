"""Shared pytest fixtures for devchain-deploy tests."""

import json
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

from devchain_deploy.settings import Settings
from devchain_deploy.types import DeploymentDescriptor

RPC_URL = "http://localhost:8545"
CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ARTIFACT_ADDRESS = "0xDef1c0ded9bec7f1a1670819833240f027b25eff"
DEPLOYED_CODE = "0x608060405234801561001057600080fd5b50600436106100"

FORGE_SUCCESS_OUTPUT = f"""\
[⠒] Compiling...
No files changed, compilation skipped
Script ran successfully.

== Logs ==
  Contract deployed to: {CONTRACT_ADDRESS}

ONCHAIN EXECUTION COMPLETE & SUCCESSFUL.
"""


@pytest.fixture
def fake_bin_dir() -> Path:
    """Return the directory holding the fake node/tool scripts."""
    return Path(__file__).parent / "fake_bin"


@pytest.fixture
def fake_node_argv(fake_bin_dir: Path):
    """Return a factory building argv for the fake node in a given mode."""

    def make(mode: str = "ready"):
        return [sys.executable, str(fake_bin_dir / "fake_node.py"), mode]

    return make


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def config_path(temp_config_dir: Path) -> Path:
    """Path of the deployment descriptor inside the temp config dir."""
    return temp_config_dir / "contract-config.json"


@pytest.fixture
def sample_descriptor() -> DeploymentDescriptor:
    """A descriptor as written by a previous successful run."""
    return DeploymentDescriptor(
        contract_address=CONTRACT_ADDRESS,
        rpc_url=RPC_URL,
        network="anvil",
        chain_id=31337,
        deployed_at="2024-05-01T12:00:00.000Z",
    )


@pytest.fixture
def existing_config(config_path: Path, sample_descriptor: DeploymentDescriptor) -> Path:
    """Write the sample descriptor to the temp config path."""
    with open(config_path, "w") as f:
        json.dump(sample_descriptor.to_dict(), f, indent=2)
    return config_path


@pytest.fixture
def sample_broadcast_artifact() -> Dict[str, Any]:
    """A minimal broadcast artifact with one contract creation."""
    return {
        "transactions": [
            {
                "hash": "0x" + "ab" * 32,
                "transactionType": "CREATE",
                "contractName": "FileHashStorage",
                "contractAddress": ARTIFACT_ADDRESS,
            }
        ],
        "receipts": [],
        "chain": 31337,
    }


@pytest.fixture
def settings(tmp_path: Path, config_path: Path) -> Settings:
    """Settings pointing at temp directories."""
    project_dir = tmp_path / "sc"
    project_dir.mkdir()
    return Settings(
        rpc_url=RPC_URL,
        project_dir=project_dir,
        config_path=config_path,
    )


@pytest.fixture
def fake_forge(tmp_path: Path, fake_bin_dir: Path) -> Path:
    """An executable wrapper around fake_forge.py (POSIX only)."""
    if sys.platform == "win32":
        pytest.skip("Executable script wrappers need a POSIX shell")
    wrapper = tmp_path / "bin" / "forge"
    wrapper.parent.mkdir(parents=True, exist_ok=True)
    wrapper.write_text(
        f'#!/bin/sh\nexec "{sys.executable}" "{fake_bin_dir / "fake_forge.py"}" "$@"\n'
    )
    wrapper.chmod(0o755)
    return wrapper
