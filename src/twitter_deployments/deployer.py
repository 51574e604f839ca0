"""Contract deployment for twitter-deployments."""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import rlp
from eth_abi import encode
from eth_account import Account
from eth_utils import keccak, to_checksum_address, to_hex

from .constants import DEFAULT_POLL_INTERVAL
from .exceptions import (
    ChainMismatchError,
    ConfigurationError,
    ConfirmationTimeoutError,
    TransactionRejectedError,
)
from .rpc import JsonRpcClient
from .types import ContractArtifact, DeploymentResult, DeploymentStatus, NetworkProfile

logger = logging.getLogger(__name__)


def compute_contract_address(sender: str, nonce: int) -> str:
    """
    Address of a contract created by `sender` at `nonce` (CREATE opcode).

    Address = keccak256(rlp([sender, nonce]))[-20:]
    """
    sender_bytes = bytes.fromhex(sender[2:] if sender.startswith("0x") else sender)
    address_bytes = keccak(rlp.encode([sender_bytes, nonce]))[-20:]
    return to_checksum_address("0x" + address_bytes.hex())


def encode_constructor_args(abi: List[Dict[str, Any]], args: Sequence[Any]) -> str:
    """
    ABI-encode constructor arguments as hex without 0x prefix.

    Raises:
        ValueError: If the argument count does not match the constructor
    """
    constructor = next((item for item in abi if item.get("type") == "constructor"), None)
    inputs = constructor.get("inputs", []) if constructor else []

    if len(inputs) != len(args):
        raise ValueError(
            f"Constructor expects {len(inputs)} argument(s), got {len(args)}"
        )
    if not inputs:
        return ""

    types = [item["type"] for item in inputs]
    return encode(types, list(args)).hex()


class PendingDeployment:
    """Handle for a broadcast deployment transaction that may not be mined yet."""

    def __init__(
        self,
        contract_name: str,
        target: str,
        transaction_hash: str,
        profile: NetworkProfile,
        client: JsonRpcClient,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.contract_name = contract_name
        self.target = target  # Predicted address, final once confirmed
        self.transaction_hash = transaction_hash
        self.profile = profile
        self.status = DeploymentStatus.PENDING
        self._client = client
        self._sleep = sleep
        self._clock = clock

    def __repr__(self) -> str:
        return (
            f"PendingDeployment({self.contract_name!r}, target={self.target!r}, "
            f"status={self.status.value!r})"
        )

    def wait_for_deployment(
        self,
        timeout: Optional[float] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> DeploymentResult:
        """
        Block until the deployment transaction is mined.

        Args:
            timeout: Seconds to wait; None waits indefinitely.
                     The receipt is always polled at least once.
            poll_interval: Seconds between receipt polls

        Returns:
            DeploymentResult with CONFIRMED status

        Raises:
            TransactionRejectedError: If the transaction was mined but reverted
            ConfirmationTimeoutError: If no receipt arrived before the deadline
            RPCError: If polling fails
        """
        deadline = None if timeout is None else self._clock() + timeout

        while True:
            receipt = self._client.get_transaction_receipt(self.transaction_hash)
            if receipt is not None:
                return self._settle(receipt)

            delay = poll_interval
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise ConfirmationTimeoutError(
                        f"Transaction {self.transaction_hash} not confirmed "
                        f"within {timeout} seconds"
                    )
                delay = min(poll_interval, remaining)
            logger.debug("Waiting for %s to be mined", self.transaction_hash)
            self._sleep(delay)

    def _settle(self, receipt: Dict[str, Any]) -> DeploymentResult:
        block = int(receipt["blockNumber"], 16)

        if int(receipt.get("status", "0x1"), 16) != 1:
            self.status = DeploymentStatus.FAILED
            raise TransactionRejectedError(
                f"Deployment of {self.contract_name} reverted in block {block} "
                f"(transaction {self.transaction_hash})"
            )

        address = to_checksum_address(receipt["contractAddress"])
        if address != self.target:
            logger.warning(
                "Receipt address %s differs from predicted address %s",
                address,
                self.target,
            )
        self.target = address
        self.status = DeploymentStatus.CONFIRMED

        return DeploymentResult(
            contract_name=self.contract_name,
            address=address,
            transaction_hash=self.transaction_hash,
            network=self.profile.name,
            status=self.status,
            block=block,
            gas_used=int(receipt["gasUsed"], 16),
            url=self.profile.address_url(address),
        )


def deploy_contract(
    contract_name: str,
    profile: NetworkProfile,
    artifact: ContractArtifact,
    client: Optional[JsonRpcClient] = None,
    constructor_args: Optional[Sequence[Any]] = None,
) -> PendingDeployment:
    """
    Sign and broadcast a contract-creation transaction.

    Uses the first account of the network profile as deployer.

    Args:
        contract_name: Name used in logs and the result
        profile: Target network
        artifact: Compiled contract
        client: JSON-RPC client (defaults to one for profile.url)
        constructor_args: Constructor arguments, if the contract takes any

    Returns:
        PendingDeployment handle

    Raises:
        ConfigurationError: If the profile has no signing account
        ChainMismatchError: If the endpoint serves a different chain
        RPCError: If any RPC call fails
    """
    if not profile.accounts:
        raise ConfigurationError(
            f"No signing account configured for network '{profile.name}'"
        )

    account = Account.from_key(profile.accounts[0])
    if client is None:
        client = JsonRpcClient(profile.url)

    chain_id = client.chain_id()
    if profile.chain_id is not None and chain_id != profile.chain_id:
        raise ChainMismatchError(
            f"Endpoint for '{profile.name}' reports chain id {chain_id}, "
            f"expected {profile.chain_id}"
        )

    data = artifact.bytecode + encode_constructor_args(artifact.abi, constructor_args or ())

    nonce = client.get_transaction_count(account.address)
    gas_price = client.gas_price()
    gas = client.estimate_gas({"from": account.address, "data": data})

    signed = account.sign_transaction(
        {
            "nonce": nonce,
            "gasPrice": gas_price,
            "gas": gas,
            "value": 0,
            "data": data,
            "chainId": chain_id,
        }
    )

    logger.info(
        "Deploying %s from %s on %s (nonce %d, gas %d)",
        contract_name,
        account.address,
        profile.name,
        nonce,
        gas,
    )
    transaction_hash = client.send_raw_transaction(to_hex(signed.raw_transaction))
    logger.info("Sent deployment transaction %s", transaction_hash)

    return PendingDeployment(
        contract_name=contract_name,
        target=compute_contract_address(account.address, nonce),
        transaction_hash=transaction_hash,
        profile=profile,
        client=client,
    )
