"""
Error taxonomy for cross-chain deployment runs.

Every failure is terminal for the current run. The CLI reports the error and
exits with the class's exit code.
"""


class DeploymentError(Exception):
    """Base class for all fatal run errors"""
    exit_code = 1


class ConfigurationError(DeploymentError):
    """Malformed or missing descriptor data, unresolved placeholder"""
    exit_code = 2


class SelectionError(DeploymentError):
    """Chain ordinal outside the presented list"""
    exit_code = 3


class CredentialError(DeploymentError):
    """Missing or unusable signing key"""
    exit_code = 4


class FundsError(DeploymentError):
    """Balance below gas or quoted delivery cost"""
    exit_code = 5


class NetworkError(DeploymentError):
    """RPC endpoint unreachable or timed out"""
    exit_code = 6


class ContractError(DeploymentError):
    """Constructor or call reverted, or address unavailable after deployment"""
    exit_code = 7


class PersistenceError(DeploymentError):
    """Deployment registry unreadable or unwritable"""
    exit_code = 8
