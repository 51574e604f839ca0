"""Configuration constants for twitter-deployments."""

DEFAULT_CONTRACT_NAME = "Twitter"

# Compiler version pinned by the project (hardhat `solidity` field)
DEFAULT_SOLIDITY_VERSION = "0.8.24"

DEFAULT_NETWORK = "mumbai"

# Environment variable names.
# A network-specific variable and its generic alias must agree when both are set.
ENV_SOLIDITY_VERSION = "SOLIDITY_VERSION"
ENV_EXPLORER_API_KEY = "MUMBAI_API_KEY"

# Network metadata. `url_env`/`key_env` list (specific, generic) names.
NETWORK_CONFIG = {
    "mumbai": {
        "chain_id": 80001,
        "chain_name": "Polygon Mumbai",
        "url_env": ("ALCHEMY_MUMBAI_URL", "RPC_URL"),
        "key_env": ("MUMBAI_PRIVATE_KEY", "PRIVATE_KEY"),
        "default_url": None,
        "block_explorer_url": "https://mumbai.polygonscan.com",
        "explorer_api_url": "https://api-testnet.polygonscan.com/api",
    },
    "localhost": {
        "chain_id": 31337,
        "chain_name": "Hardhat Local",
        "url_env": ("LOCALHOST_RPC_URL",),
        "key_env": ("LOCALHOST_PRIVATE_KEY",),
        "default_url": "http://127.0.0.1:8545",
        "block_explorer_url": None,
        "explorer_api_url": None,
    },
}

# Seconds between eth_getTransactionReceipt polls
DEFAULT_POLL_INTERVAL = 2.0

# Per-request HTTP timeout for JSON-RPC and explorer calls
REQUEST_TIMEOUT = 30
