"""
twitter-deployments: compile, deploy and verify the Twitter contract
"""

from importlib.metadata import PackageNotFoundError, version

from .cli import run_deployment
from .compiler import compile_contract
from .config import ToolchainConfig, load_config
from .deployer import PendingDeployment, deploy_contract
from .exceptions import (
    ArtifactNotFoundError,
    ChainMismatchError,
    CompilationError,
    ConfigurationError,
    ConfirmationTimeoutError,
    ContractNotFoundError,
    DeploymentError,
    NetworkNotFoundError,
    RPCError,
    TransactionRejectedError,
    VerificationError,
)
from .types import ContractArtifact, DeploymentResult, DeploymentStatus, NetworkProfile

try:
    __version__ = version("twitter-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "load_config",
    "compile_contract",
    "deploy_contract",
    "run_deployment",
    "ToolchainConfig",
    "NetworkProfile",
    "ContractArtifact",
    "PendingDeployment",
    "DeploymentResult",
    "DeploymentStatus",
    "DeploymentError",
    "ConfigurationError",
    "NetworkNotFoundError",
    "ContractNotFoundError",
    "ArtifactNotFoundError",
    "CompilationError",
    "RPCError",
    "ChainMismatchError",
    "TransactionRejectedError",
    "ConfirmationTimeoutError",
    "VerificationError",
]
