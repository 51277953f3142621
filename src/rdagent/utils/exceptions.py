"""
rdagent Exception Hierarchy

Provides a unified exception hierarchy for all agent components.
All custom exceptions should inherit from RDAgentError.
"""


class RDAgentError(Exception):
    """Base exception for all rdagent errors."""
    pass


# === Configuration Errors ===

class ConfigurationError(RDAgentError):
    """Raised when the agent is misconfigured."""
    pass


class PrivilegeError(ConfigurationError):
    """Raised when the process lacks administrative privilege."""
    pass


class ResolutionError(ConfigurationError):
    """Raised when Device or WireGuard resolution reaches a fatal state."""
    pass


# === Validation Errors ===

class ValidationError(RDAgentError):
    """Raised when data validation fails."""
    pass


class NotSetError(ValidationError):
    """Raised when a required field of a loaded entity is not set."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(kind.description)


# === Store Errors ===

class StoreError(RDAgentError):
    """Base class for entity document storage errors."""
    pass


class StoreIOError(StoreError):
    """Raised when an entity document cannot be read or written."""
    pass


class DecodeError(RDAgentError):
    """Raised when a document or response body cannot be parsed into an entity."""
    pass


# === Communication Errors ===

class CommunicationError(RDAgentError):
    """Raised when talking to the control plane fails."""
    pass


class NetworkError(CommunicationError):
    """Raised on transport failure (connection, DNS, timeout)."""
    pass


class ServerError(CommunicationError):
    """Raised when the control plane answers with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


# === Heartbeat Errors ===

class HeartbeatError(RDAgentError):
    """Raised when heartbeat addressing cannot be derived."""
    pass


class NoPeerError(HeartbeatError):
    """Raised when the WireGuard record has no peers."""
    pass


class NoEndpointError(HeartbeatError):
    """Raised when the first peer has no endpoint."""
    pass


# === Activation Errors ===

class ActivationError(RDAgentError):
    """Raised when the tunnel interface cannot be brought up."""
    pass
