"""Deployment driver for twitter-deployments.

Usage:
    export ALCHEMY_MUMBAI_URL=https://polygon-mumbai.g.alchemy.com/v2/<key>
    export MUMBAI_PRIVATE_KEY=<hex key>
    twitter-deploy --network mumbai

Exit codes: 0 = deployed and confirmed; 1 = any failure.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from .compiler import compile_contract
from .config import ToolchainConfig, load_config
from .constants import DEFAULT_CONTRACT_NAME, DEFAULT_NETWORK, DEFAULT_POLL_INTERVAL
from .deployer import deploy_contract
from .exceptions import ConfigurationError
from .rpc import JsonRpcClient
from .types import DeploymentResult
from .verification import require_explorer_api, verify_contract, wait_for_verification

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def run_deployment(
    config: ToolchainConfig,
    network: str = DEFAULT_NETWORK,
    contract_name: str = DEFAULT_CONTRACT_NAME,
    *,
    timeout: Optional[float] = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    verify: bool = False,
    contracts_dir: Optional[Union[Path, str]] = None,
    artifacts_dir: Optional[Union[Path, str]] = None,
    client: Optional[JsonRpcClient] = None,
) -> DeploymentResult:
    """
    Compile, deploy and confirm one contract, then report its address.

    Prints "<Name> has been deployed to <address>" to stdout once the
    deployment is confirmed.

    Args:
        config: Toolchain configuration
        network: Network name from the configuration
        contract_name: Contract to deploy
        timeout: Seconds to wait for confirmation (None = no limit)
        poll_interval: Seconds between receipt polls
        verify: Submit sources to the block explorer after confirmation
        contracts_dir: Solidity sources directory
        artifacts_dir: Artifact cache directory
        client: JSON-RPC client (defaults to one for the network's endpoint)

    Returns:
        Confirmed DeploymentResult

    Raises:
        DeploymentError: On any failure in the pipeline
    """
    profile = config.network(network)
    if not profile.accounts:
        raise ConfigurationError(
            f"No signing account configured for network '{network}'"
        )
    if verify:
        if not config.etherscan_api_key:
            raise ConfigurationError("--verify needs an explorer API key")
        require_explorer_api(profile, config.etherscan_api_key)

    artifact = compile_contract(
        contract_name,
        config.solidity_version,
        contracts_dir=contracts_dir,
        artifacts_dir=artifacts_dir,
    )

    pending = deploy_contract(artifact.contract_name, profile, artifact, client=client)
    result = pending.wait_for_deployment(timeout=timeout, poll_interval=poll_interval)
    logger.info(
        "Confirmed in block %d (gas used %d)%s",
        result.block,
        result.gas_used,
        f", {result.url}" if result.url else "",
    )

    print(f"{result.contract_name} has been deployed to {result.address}", flush=True)

    if verify:
        guid = verify_contract(result, artifact, profile, config.etherscan_api_key)
        if guid is not None:
            wait_for_verification(guid, profile, config.etherscan_api_key)
            logger.info("Verified %s at %s", result.contract_name, result.address)

    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twitter-deploy",
        description="Compile and deploy a contract, then print its address.",
    )
    parser.add_argument("--network", default=DEFAULT_NETWORK, help="Target network")
    parser.add_argument(
        "--contract", default=DEFAULT_CONTRACT_NAME, help="Contract name to deploy"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Environment file (defaults to ./.env when present)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for confirmation (default: wait indefinitely)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help="Seconds between receipt polls",
    )
    parser.add_argument(
        "--verify", action="store_true", help="Verify sources on the block explorer"
    )
    parser.add_argument("--contracts-dir", type=Path, default=None)
    parser.add_argument("--artifacts-dir", type=Path, default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    env_file = args.env_file
    if env_file is None and Path(".env").is_file():
        env_file = Path(".env")

    try:
        config = load_config(env_file=env_file)
        run_deployment(
            config,
            network=args.network,
            contract_name=args.contract,
            timeout=args.timeout,
            poll_interval=args.poll_interval,
            verify=args.verify,
            contracts_dir=args.contracts_dir,
            artifacts_dir=args.artifacts_dir,
        )
    except Exception:
        logger.exception("Deployment failed")
        return 1

    return 0
