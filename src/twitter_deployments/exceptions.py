"""Custom exception classes for twitter-deployments."""

from typing import Optional


class DeploymentError(Exception):
    """Base exception for deployment-pipeline failures."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when an environment-sourced setting is missing or malformed."""

    pass


class NetworkNotFoundError(DeploymentError, ValueError):
    """Raised when the requested network is not configured."""

    pass


class ContractNotFoundError(DeploymentError, ValueError):
    """Raised when the requested contract is not in the compiler output."""

    pass


class ArtifactNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when no contract sources or artifacts can be found."""

    pass


class CompilationError(DeploymentError, RuntimeError):
    """Raised when solc reports errors."""

    pass


class RPCError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC request fails at the transport or protocol level."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class ChainMismatchError(DeploymentError, ValueError):
    """Raised when the endpoint reports a chain id other than the profile's."""

    pass


class TransactionRejectedError(DeploymentError, RuntimeError):
    """Raised when the deployment transaction is mined with a failed status."""

    pass


class ConfirmationTimeoutError(DeploymentError, TimeoutError):
    """Raised when confirmation does not arrive before the deadline."""

    pass


class VerificationError(DeploymentError, RuntimeError):
    """Raised when the block explorer rejects a verification request."""

    pass
