"""
Base classes and interfaces for Environment integrations.

This module defines the error taxonomy and the abstract contract shared by
the external services the bot talks to (Notion, LINE).

Error Taxonomy:
===============
- ConfigError: a required destination binding is missing (deployment defect)
- NotFoundError: a named destination or a preview token does not exist
- AuthError: the backing credential was rejected
- UpstreamError: transport or protocol failure against the external service

Every error is terminal for the request that raised it. Nothing here retries.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------


class IntegrationError(Exception):
    """Base exception for all integration errors."""
    pass


class ConfigError(IntegrationError):
    """Raised when a symbolic destination has no configured identifier."""
    pass


class NotFoundError(IntegrationError):
    """Raised when a destination or staged preview cannot be found."""
    pass


class AuthError(IntegrationError):
    """Raised when the external service rejects our credential."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class UpstreamError(IntegrationError):
    """Raised when an API call fails at the transport or protocol level."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


# ---------------------------------------------------------------------------
# ABSTRACT BASE CLASSES
# ---------------------------------------------------------------------------


class EnvironmentService(ABC):
    """
    Abstract base class for external API services.

    Each service (Notion, LINE) implements this interface so the
    readiness probe can check every credential the same way.
    """

    # Unique identifier for this service
    service_name: str = ""

    @abstractmethod
    async def validate_access(self) -> bool:
        """
        Verify the configured credential is accepted by the service.

        Returns:
            True if the credential is valid
        """
        pass
