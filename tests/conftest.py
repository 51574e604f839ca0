"""Shared pytest fixtures for twitter-deployments tests."""

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import responses

from twitter_deployments.config import ToolchainConfig, load_config
from twitter_deployments.types import ContractArtifact

# Hardhat/Anvil default account #0
DEPLOYER_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
# CREATE address of DEPLOYER_ADDRESS at nonce 0
FIRST_CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

MUMBAI_URL = "https://mumbai-rpc.example.com/v2/test"
EXPLORER_API_URL = "https://api-testnet.polygonscan.com/api"
TX_HASH = "0x" + "ab" * 32

ENV_VARS = [
    "ALCHEMY_MUMBAI_URL",
    "RPC_URL",
    "MUMBAI_PRIVATE_KEY",
    "PRIVATE_KEY",
    "MUMBAI_API_KEY",
    "LOCALHOST_RPC_URL",
    "LOCALHOST_PRIVATE_KEY",
    "SOLIDITY_VERSION",
]


class FakeNode:
    """JSON-RPC node double served through `responses`."""

    def __init__(self, url: str, chain_id: int = 80001):
        self.url = url
        self.chain_id = chain_id
        self.calls: List[str] = []
        self.sent: List[str] = []
        self.nonce = 0
        self.pending_polls = 0
        self.receipt_status = "0x1"
        self.contract_address: Optional[str] = FIRST_CONTRACT_ADDRESS

    def register(self, rsps: responses.RequestsMock) -> None:
        rsps.add_callback(
            responses.POST,
            self.url,
            callback=self.handle,
            content_type="application/json",
        )

    def handle(self, request):
        body = json.loads(request.body)
        method = body["method"]
        self.calls.append(method)
        result = getattr(self, method)(body["params"])
        return (200, {}, json.dumps({"jsonrpc": "2.0", "id": body["id"], "result": result}))

    def eth_chainId(self, params):
        return hex(self.chain_id)

    def eth_getTransactionCount(self, params):
        return hex(self.nonce)

    def eth_gasPrice(self, params):
        return hex(2_000_000_000)

    def eth_estimateGas(self, params):
        return hex(250_000)

    def eth_sendRawTransaction(self, params):
        self.sent.append(params[0])
        return TX_HASH

    def eth_getTransactionReceipt(self, params):
        if self.pending_polls > 0:
            self.pending_polls -= 1
            return None
        return {
            "transactionHash": params[0],
            "blockNumber": "0x2a",
            "gasUsed": "0x3d090",
            "status": self.receipt_status,
            "contractAddress": self.contract_address.lower()
            if self.contract_address
            else None,
        }


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def contracts_dir(fixtures_dir: Path, tmp_path: Path) -> Path:
    """Copy the fixture contracts into a temporary directory."""
    target = tmp_path / "contracts"
    shutil.copytree(fixtures_dir / "contracts", target)
    return target


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Return a temporary artifacts directory (not created)."""
    return tmp_path / "artifacts"


@pytest.fixture
def clean_env(monkeypatch) -> None:
    """Remove every variable the configuration reads from os.environ."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mumbai_env() -> Dict[str, str]:
    """Environment for a fully configured Mumbai network."""
    return {
        "ALCHEMY_MUMBAI_URL": MUMBAI_URL,
        "MUMBAI_PRIVATE_KEY": DEPLOYER_KEY,
        "MUMBAI_API_KEY": "TESTAPIKEY",
    }


@pytest.fixture
def toolchain_config(mumbai_env: Dict[str, str]) -> ToolchainConfig:
    """Configuration loaded from `mumbai_env`."""
    return load_config(env=mumbai_env)


@pytest.fixture
def sample_artifact() -> ContractArtifact:
    """A compiled Twitter artifact with placeholder bytecode."""
    return ContractArtifact(
        contract_name="Twitter",
        source_name="contracts/Twitter.sol",
        abi=[
            {
                "type": "function",
                "name": "createTweet",
                "inputs": [{"name": "_tweet", "type": "string"}],
                "outputs": [],
                "stateMutability": "nonpayable",
            }
        ],
        bytecode="0x6080604052348015600f57600080fd5b50",
        deployed_bytecode="0x6080604052600080fd",
        solc_version="0.8.24+commit.e11b9ed9",
        input_hash="0" * 64,
        standard_input={"language": "Solidity", "sources": {}},
    )


@pytest.fixture
def fake_solc(monkeypatch) -> List[Dict[str, Any]]:
    """
    Replace solc with a canned compiler.

    Returns the list of standard inputs the fake compiler received.
    """
    import solcx

    received: List[Dict[str, Any]] = []

    def compile_standard(input_data, solc_version=None, **kwargs):
        received.append(input_data)
        contracts: Dict[str, Any] = {}
        for source_name, source in input_data["sources"].items():
            name = Path(source_name).stem
            contracts[source_name] = {
                name: {
                    "abi": [],
                    "evm": {
                        "bytecode": {"object": "6080604052348015600f57600080fd5b50"},
                        "deployedBytecode": {"object": "6080604052600080fd"},
                    },
                    "metadata": json.dumps(
                        {"compiler": {"version": f"{solc_version}+commit.e11b9ed9"}}
                    ),
                }
            }
        return {"contracts": contracts, "sources": {}}

    monkeypatch.setattr(solcx, "get_installed_solc_versions", lambda: ["0.8.24"])
    monkeypatch.setattr(solcx, "compile_standard", compile_standard)
    return received


@pytest.fixture
def mocked_responses():
    """Activate `responses`; unregistered URLs raise ConnectionError."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def fake_node(mocked_responses) -> FakeNode:
    """A Mumbai node double at MUMBAI_URL."""
    node = FakeNode(MUMBAI_URL)
    node.register(mocked_responses)
    return node
