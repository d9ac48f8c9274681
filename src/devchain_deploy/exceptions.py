"""Custom exception classes for devchain-deploy."""

from typing import Optional


class DeploymentError(Exception):
    """Base exception for deployment orchestration errors."""

    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class RpcError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC call fails or returns an error."""

    pass


class NodeUnreachable(DeploymentError, ConnectionError):
    """Raised when the node does not answer after it was expected to be up."""

    pass


class NodeStartFailed(DeploymentError, RuntimeError):
    """Raised when the owned node could not be spawned or exited during startup."""

    pass


class NodeStartTimeout(DeploymentError, TimeoutError):
    """Raised when the owned node never announced readiness."""

    pass


class ToolNotFound(DeploymentError, FileNotFoundError):
    """Raised when the deploy tool cannot be executed."""

    pass


class DeploymentCommandFailed(DeploymentError, RuntimeError):
    """Raised when the deploy tool exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        output: str = "",
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message, hint=hint)
        self.output = output
        self.exit_code = exit_code


class AddressNotFound(DeploymentError, LookupError):
    """Raised when no contract address can be extracted from output or artifacts."""

    def __init__(self, message: str, searched: Optional[list] = None):
        super().__init__(message)
        self.searched = list(searched or [])


class VerificationInconclusive(DeploymentError, ValueError):
    """Raised when no bytecode could be confirmed at the deployed address."""

    pass


class ConfigWriteFailed(DeploymentError, OSError):
    """Raised when the deployment descriptor cannot be written."""

    pass


class DeploymentCancelled(DeploymentError):
    """Raised when the run is interrupted by a termination signal."""

    pass
