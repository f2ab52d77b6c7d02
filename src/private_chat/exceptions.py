"""Unified exception hierarchy for private-chat."""


class PrivateChatError(Exception):
    """Base exception for all private-chat errors."""


# Local validation
class ValidationError(PrivateChatError):
    """Input rejected locally before it reaches the remote store."""


class PrincipalFormatError(ValidationError):
    """Text is not a well-formed principal."""


# Remote boundary
class UnavailableError(PrivateChatError):
    """The remote store is not ready (no session or identity unresolved)."""


class RemoteCallError(PrivateChatError):
    """The remote store rejected or failed a call."""


# Local consistency
class DataError(PrivateChatError):
    """Locally detected inconsistency in data returned by the store."""


# Configuration
class ConfigurationError(PrivateChatError):
    """Invalid settings value."""
