"""
domain.exceptions - Custom exception hierarchy for the shop assistant.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ValidationError(DomainError):
    """Raised for a malformed request or malformed tool arguments. Never retried."""


class ConversationNotFoundError(ValidationError):
    """Raised when a supplied conversation id is unknown or owned by another user."""


class NotFoundError(DomainError):
    """Raised when a requested product does not exist."""


class UpstreamUnavailableError(DomainError):
    """Raised when the LLM upstream stays unreachable after the retry."""


class PersistenceError(DomainError):
    """Raised when loading history or appending the final turn fails."""


class RequestCancelledError(DomainError):
    """Raised when a request deadline expires before an answer is recorded."""


class ToolConfigurationError(DomainError):
    """Raised at startup for an invalid tool set (e.g. duplicate tool names)."""


class ProductSourceError(DomainError):
    """Raised when the downstream product source (scraping service) fails."""
