"""Configuration constants for devchain-deploy."""

# External binaries (Foundry toolchain)
NODE_BINARY = "anvil"
DEPLOY_TOOL = "forge"

# Node announces it is accepting connections with this line
READINESS_MARKER = "Listening on"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8545

# First pre-funded anvil account; only valid on a local devchain
DEFAULT_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEFAULT_SCRIPT = "script/FileHashStorage.s.sol:FileHashStorageScript"

# Placeholder used by clients before the first successful deployment
DEFAULT_CONTRACT_ADDRESS = "0x5fbdb2315678afecb367f032d93f642f64180aa3"

# Timeouts and delays, in seconds
PROBE_TIMEOUT = 3.0
VERSION_CHECK_TIMEOUT = 3.0
GET_CODE_TIMEOUT = 5.0
NODE_START_TIMEOUT = 10.0
NODE_STOP_TIMEOUT = 5.0
SETTLE_DELAY = 2.0

# Post-start reachability poll
READY_POLL_ATTEMPTS = 10
READY_POLL_DELAY = 1.0

# Local development networks
NETWORK_CONFIG = {
    "anvil": {
        "chain_id": 31337,
        "chain_name": "Anvil",
    },
}
DEFAULT_NETWORK = "anvil"

FOUNDRY_INSTALL_HINT = (
    "Install Foundry: https://book.getfoundry.sh/getting-started/installation, "
    "or run `foundryup`, then check that `forge --version` works."
)
NODE_INSTALL_HINT = "Anvil is not installed. Install it with `foundryup`."
NODE_START_HINT = "Start the node manually with `cd sc && anvil` and retry."
