"""Path management utilities for twitter-deployments."""

from pathlib import Path
from typing import Optional, Union


def get_default_contracts_dir() -> Path:
    """
    Get default Solidity sources directory.

    Returns:
        Path to ./contracts
    """
    return Path.cwd() / "contracts"


def get_default_artifacts_dir() -> Path:
    """
    Get default compiler artifacts directory.

    Returns:
        Path to ./artifacts
    """
    return Path.cwd() / "artifacts"


def get_artifact_path(
    contract_name: str,
    source_name: str,
    artifacts_root: Optional[Union[Path, str]] = None,
) -> Path:
    """
    Get the artifact file path for a contract.

    Mirrors the hardhat layout: artifacts/<source_name>/<ContractName>.json

    Args:
        contract_name: Contract name, e.g. "Twitter"
        source_name: Source key, e.g. "contracts/Twitter.sol"
        artifacts_root: Custom artifacts directory (defaults to ./artifacts)

    Returns:
        Path to the artifact JSON file
    """
    if artifacts_root is None:
        artifacts_root = get_default_artifacts_dir()
    else:
        artifacts_root = Path(artifacts_root).absolute()

    return artifacts_root / source_name / f"{contract_name}.json"
