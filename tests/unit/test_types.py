"""Unit tests for data types."""

from datetime import datetime, timezone

import pytest

from devchain_deploy.types import DeploymentDescriptor, ToolPath, is_address, utc_timestamp


class TestIsAddress:
    """Test the is_address helper."""

    def test_accepts_mixed_case_address(self):
        assert is_address("0x5FbDB2315678afecb367f032d93F642f64180aa3")

    def test_rejects_short_address(self):
        assert not is_address("0x5FbDB2315678afecb367f032d93F642f64180a")

    def test_rejects_missing_prefix(self):
        assert not is_address("5FbDB2315678afecb367f032d93F642f64180aa3")

    def test_rejects_non_string(self):
        assert not is_address(None)
        assert not is_address(1234)


class TestUtcTimestamp:
    """Test ISO-8601 timestamp formatting."""

    def test_formats_with_z_suffix_and_milliseconds(self):
        moment = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert utc_timestamp(moment) == "2024-05-01T12:00:00.123Z"

    def test_defaults_to_now(self):
        stamp = utc_timestamp()

        assert stamp.endswith("Z")
        parsed = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
        assert parsed.tzinfo is not None


class TestDeploymentDescriptor:
    """Test descriptor serialization."""

    def test_to_dict_uses_camel_case_keys(self, sample_descriptor: DeploymentDescriptor):
        data = sample_descriptor.to_dict()

        assert set(data) == {"contractAddress", "rpcUrl", "network", "chainId", "deployedAt"}
        assert data["chainId"] == 31337

    def test_from_dict_parses_client_format(self):
        descriptor = DeploymentDescriptor.from_dict(
            {
                "contractAddress": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
                "rpcUrl": "http://localhost:8545",
                "network": "anvil",
                "chainId": 31337,
                "deployedAt": "2024-05-01T12:00:00.000Z",
            }
        )

        assert descriptor.contract_address == "0x5FbDB2315678afecb367f032d93F642f64180aa3"
        assert descriptor.chain_id == 31337

    def test_from_dict_rejects_bad_address(self):
        with pytest.raises(ValueError):
            DeploymentDescriptor.from_dict(
                {"contractAddress": "0x1234", "rpcUrl": "http://localhost:8545", "chainId": 1}
            )

    def test_from_dict_rejects_missing_rpc_url(self):
        with pytest.raises(ValueError):
            DeploymentDescriptor.from_dict(
                {"contractAddress": "0x5FbDB2315678afecb367f032d93F642f64180aa3", "chainId": 1}
            )

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError):
            DeploymentDescriptor.from_dict(["not", "a", "dict"])


def test_tool_path_str_is_path():
    """Test that a ToolPath renders as its path for command lines."""
    assert str(ToolPath("/usr/bin/forge", "which")) == "/usr/bin/forge"
