"""Unit tests for the deploy tool runner."""

import json
from pathlib import Path

import pytest

from devchain_deploy.exceptions import DeploymentCommandFailed, ToolNotFound
from devchain_deploy.runner import build_command, run_deployment
from devchain_deploy.types import ToolPath

RPC_URL = "http://localhost:8545"
KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SCRIPT = "script/FileHashStorage.s.sol:FileHashStorageScript"


class TestBuildCommand:
    """Test the deploy command line."""

    def test_command_layout(self):
        command = build_command(ToolPath("/opt/forge", "which"), SCRIPT, RPC_URL, KEY)

        assert command == [
            "/opt/forge",
            "script",
            SCRIPT,
            "--rpc-url",
            RPC_URL,
            "--broadcast",
            "--private-key",
            KEY,
        ]


class TestRunDeployment:
    """Test run_deployment against a fake deploy tool."""

    def test_success_merges_stdout_and_stderr(self, fake_forge: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("FAKE_FORGE_MODE", "success")

        result = run_deployment(str(fake_forge), SCRIPT, RPC_URL, KEY, tmp_path)

        assert result.exit_code == 0
        assert "Contract deployed to:" in result.combined_output
        assert "Warning: EIP-3855" in result.combined_output

    def test_passes_arguments(self, fake_forge: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("FAKE_FORGE_MODE", "argv")

        result = run_deployment(ToolPath(str(fake_forge), "which"), SCRIPT, RPC_URL, KEY, tmp_path)

        assert json.loads(result.combined_output) == [
            "script",
            SCRIPT,
            "--rpc-url",
            RPC_URL,
            "--broadcast",
            "--private-key",
            KEY,
        ]

    def test_non_zero_exit_raises_with_output(self, fake_forge: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("FAKE_FORGE_MODE", "fail")

        with pytest.raises(DeploymentCommandFailed) as exc_info:
            run_deployment(str(fake_forge), SCRIPT, RPC_URL, KEY, tmp_path)

        assert exc_info.value.exit_code == 1
        assert "Compiling..." in exc_info.value.output
        assert "revert: not allowed" in exc_info.value.output

    def test_missing_executable_raises_tool_not_found(self, tmp_path: Path):
        with pytest.raises(ToolNotFound) as exc_info:
            run_deployment("definitely-not-forge", SCRIPT, RPC_URL, KEY, tmp_path)

        assert "foundryup" in exc_info.value.hint

    def test_missing_project_dir_is_reported(self, fake_forge: Path, tmp_path: Path):
        with pytest.raises(DeploymentCommandFailed, match="Project directory"):
            run_deployment(str(fake_forge), SCRIPT, RPC_URL, KEY, tmp_path / "missing")
