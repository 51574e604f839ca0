"""Solidity compilation for twitter-deployments.

Sources under ``contracts/`` are compiled together through solc's standard
JSON interface. Artifacts are cached under ``artifacts/`` and reused as long
as the compiler input and version are unchanged.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import solcx
from solcx.exceptions import SolcError, SolcInstallationError

from .exceptions import ArtifactNotFoundError, CompilationError, ContractNotFoundError
from .paths import get_artifact_path, get_default_artifacts_dir, get_default_contracts_dir
from .types import ContractArtifact

logger = logging.getLogger(__name__)

ARTIFACT_FORMAT = "twitter-deployments-artifact-1"

OUTPUT_SELECTION = [
    "abi",
    "evm.bytecode.object",
    "evm.deployedBytecode.object",
    "metadata",
]


def build_standard_input(contracts_dir: Path) -> Dict[str, Any]:
    """
    Collect all Solidity sources into a solc standard JSON input.

    Source keys are "contracts/<relative path>" so that fully qualified
    names match the hardhat convention.

    Raises:
        ArtifactNotFoundError: If the directory holds no .sol files
    """
    source_files = sorted(contracts_dir.rglob("*.sol")) if contracts_dir.is_dir() else []
    if not source_files:
        raise ArtifactNotFoundError(f"No Solidity sources found in {contracts_dir}")

    sources = {}
    for source_file in source_files:
        key = "contracts/" + source_file.relative_to(contracts_dir).as_posix()
        sources[key] = {"content": source_file.read_text()}

    return {
        "language": "Solidity",
        "sources": sources,
        "settings": {
            "optimizer": {"enabled": False, "runs": 200},
            "outputSelection": {"*": {"*": OUTPUT_SELECTION}},
        },
    }


def compute_input_hash(standard_input: Dict[str, Any], solidity_version: str) -> str:
    """Hash of the compiler input and the requested compiler version."""
    canonical = json.dumps(
        {"solc": solidity_version, "input": standard_input},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_artifact(path: Path) -> ContractArtifact:
    """
    Load an artifact JSON file.

    Raises:
        ArtifactNotFoundError: If the file does not exist
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(f"Artifact not found: {path}") from e

    return ContractArtifact(
        contract_name=data["contractName"],
        source_name=data["sourceName"],
        abi=data["abi"],
        bytecode=data["bytecode"],
        deployed_bytecode=data["deployedBytecode"],
        solc_version=data["solcLongVersion"],
        input_hash=data["inputHash"],
        standard_input=data.get("input", {}),
    )


def save_artifact(artifact: ContractArtifact, path: Path) -> None:
    """
    Save an artifact to disk.

    Creates parent directories if they don't exist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(
            {
                "_format": ARTIFACT_FORMAT,
                "contractName": artifact.contract_name,
                "sourceName": artifact.source_name,
                "abi": artifact.abi,
                "bytecode": artifact.bytecode,
                "deployedBytecode": artifact.deployed_bytecode,
                "solcLongVersion": artifact.solc_version,
                "inputHash": artifact.input_hash,
                "input": artifact.standard_input,
            },
            f,
            indent=2,
        )


def _find_cached_artifact(
    contract_name: str, artifacts_dir: Path, input_hash: str
) -> Optional[ContractArtifact]:
    """
    Return the cached artifact for `contract_name` built from `input_hash`.

    A qualified name only matches its own source's artifact. An unqualified
    name matches only if exactly one source defines it; otherwise the caller
    recompiles and gets the ambiguity error.
    """
    if not artifacts_dir.is_dir():
        return None

    source_name, _, short_name = contract_name.rpartition(":")
    if source_name:
        candidates = [get_artifact_path(short_name, source_name, artifacts_dir)]
    else:
        candidates = sorted(artifacts_dir.rglob(f"{short_name}.json"))

    matches = []
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            artifact = load_artifact(candidate)
        except (KeyError, json.JSONDecodeError):
            # Foreign or truncated file, recompile
            logger.debug("Ignoring unreadable artifact %s", candidate)
            continue
        if artifact.input_hash == input_hash:
            matches.append(artifact)

    if len(matches) > 1:
        logger.debug("%d cached artifacts define %s", len(matches), short_name)
        return None
    return matches[0] if matches else None


def _check_deployable(artifact: ContractArtifact) -> ContractArtifact:
    if artifact.bytecode in ("", "0x"):
        raise CompilationError(
            f"Contract '{artifact.contract_name}' has no creation bytecode "
            "(abstract or interface?)"
        )
    if "__$" in artifact.bytecode:
        raise CompilationError(
            f"Contract '{artifact.contract_name}' needs library linking, "
            "which is not supported"
        )
    return artifact


def _ensure_solc(solidity_version: str) -> None:
    installed = {str(v) for v in solcx.get_installed_solc_versions()}
    if solidity_version in installed:
        return

    logger.info("Installing solc %s", solidity_version)
    try:
        solcx.install_solc(solidity_version)
    except SolcInstallationError as e:
        raise CompilationError(f"Could not install solc {solidity_version}: {e}") from e


def _select_contract(contract_name: str, output: Dict[str, Any]) -> str:
    """Return the source key that defines `contract_name`."""
    contracts = output.get("contracts", {})

    if ":" in contract_name:
        source_name, _, name = contract_name.rpartition(":")
        if name in contracts.get(source_name, {}):
            return source_name
        candidates = []
    else:
        candidates = [src for src, defs in contracts.items() if contract_name in defs]

    if not candidates:
        raise ContractNotFoundError(
            f"Contract '{contract_name}' not found in compiled sources"
        )
    if len(candidates) > 1:
        raise ContractNotFoundError(
            f"Contract name '{contract_name}' is ambiguous, use one of: "
            + ", ".join(f"{src}:{contract_name}" for src in sorted(candidates))
        )
    return candidates[0]


def compile_contract(
    contract_name: str,
    solidity_version: str,
    contracts_dir: Optional[Union[Path, str]] = None,
    artifacts_dir: Optional[Union[Path, str]] = None,
    force: bool = False,
) -> ContractArtifact:
    """
    Compile a contract, reusing the cached artifact when nothing changed.

    Args:
        contract_name: Contract name ("Twitter") or fully qualified name
                       ("contracts/Twitter.sol:Twitter")
        solidity_version: solc version, e.g. "0.8.24"
        contracts_dir: Sources directory (defaults to ./contracts)
        artifacts_dir: Artifact cache directory (defaults to ./artifacts)
        force: Recompile even if a matching artifact exists

    Returns:
        ContractArtifact

    Raises:
        ArtifactNotFoundError: If there are no sources
        ContractNotFoundError: If the contract is not defined, or defined twice
        CompilationError: If solc fails or the contract has no creation code
    """
    contracts_dir = Path(contracts_dir) if contracts_dir else get_default_contracts_dir()
    artifacts_dir = Path(artifacts_dir) if artifacts_dir else get_default_artifacts_dir()
    short_name = contract_name.rpartition(":")[2]

    standard_input = build_standard_input(contracts_dir)
    input_hash = compute_input_hash(standard_input, solidity_version)

    if not force:
        cached = _find_cached_artifact(contract_name, artifacts_dir, input_hash)
        if cached is not None:
            logger.info("Nothing to compile, using cached artifact for %s", short_name)
            return _check_deployable(cached)

    _ensure_solc(solidity_version)
    logger.info(
        "Compiling %d Solidity file(s) with solc %s",
        len(standard_input["sources"]),
        solidity_version,
    )
    try:
        output = solcx.compile_standard(standard_input, solc_version=solidity_version)
    except SolcError as e:
        raise CompilationError(f"Compilation failed: {e}") from e

    source_name = _select_contract(contract_name, output)

    # Every contract in the output gets an artifact, not just the requested one
    selected = None
    for src, definitions in output["contracts"].items():
        for name, contract_output in definitions.items():
            metadata = json.loads(contract_output.get("metadata") or "{}")
            artifact = ContractArtifact(
                contract_name=name,
                source_name=src,
                abi=contract_output["abi"],
                bytecode="0x" + contract_output["evm"]["bytecode"]["object"],
                deployed_bytecode="0x"
                + contract_output["evm"]["deployedBytecode"]["object"],
                solc_version=metadata.get("compiler", {}).get("version", solidity_version),
                input_hash=input_hash,
                standard_input=standard_input,
            )
            artifact_path = get_artifact_path(name, src, artifacts_dir)
            save_artifact(artifact, artifact_path)
            logger.debug("Wrote artifact %s", artifact_path)

            if src == source_name and name == short_name:
                selected = artifact

    return _check_deployable(selected)
