"""Data types and dataclasses for twitter-deployments."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class NetworkProfile:
    """Parameters needed to address one target chain."""

    name: str  # e.g., "mumbai"
    url: str  # JSON-RPC endpoint
    accounts: Tuple[str, ...] = ()  # 0x-prefixed private keys, first one signs
    chain_id: Optional[int] = None  # Expected chain id, checked before broadcast
    explorer_url: Optional[str] = None  # e.g., "https://mumbai.polygonscan.com"
    explorer_api_url: Optional[str] = None  # Etherscan-compatible API endpoint

    def __repr__(self) -> str:
        # Keep signing keys out of logs and tracebacks
        return (
            f"NetworkProfile(name={self.name!r}, url={self.url!r}, "
            f"accounts=<{len(self.accounts)} keys>, chain_id={self.chain_id!r})"
        )

    def address_url(self, address: str) -> Optional[str]:
        """Block explorer link for an address, if the network has an explorer."""
        if self.explorer_url is None:
            return None
        return f"{self.explorer_url}/address/{address}"


@dataclass
class ContractArtifact:
    """Compiler output for one contract."""

    contract_name: str  # e.g., "Twitter"
    source_name: str  # e.g., "contracts/Twitter.sol"
    abi: List[Dict[str, Any]]
    bytecode: str  # 0x-prefixed creation code
    deployed_bytecode: str  # 0x-prefixed runtime code
    solc_version: str  # Long version, e.g., "0.8.24+commit.e11b9ed9"
    input_hash: str  # Hash of the standard JSON input + requested compiler version
    standard_input: Dict[str, Any] = field(default_factory=dict)

    @property
    def fully_qualified_name(self) -> str:
        return f"{self.source_name}:{self.contract_name}"


class DeploymentStatus(Enum):
    """
    Lifecycle of a deployment transaction.

    PENDING -> CONFIRMED | FAILED
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class DeploymentResult:
    """Outcome of a single contract deployment."""

    # Required fields
    contract_name: str
    address: str  # Checksummed address
    transaction_hash: str
    network: str
    status: DeploymentStatus = DeploymentStatus.PENDING

    # Filled in once the receipt is available
    block: Optional[int] = None
    gas_used: Optional[int] = None
    url: Optional[str] = None  # Block explorer URL
