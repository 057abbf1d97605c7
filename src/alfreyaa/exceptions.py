"""Custom exceptions for the Alfreyaa assistant."""


class AlfreyaaError(Exception):
    """Base exception for Alfreyaa errors."""

    pass


class ConfigurationError(AlfreyaaError):
    """Raised when a required credential or setting is missing."""

    pass


class LLMProviderError(ConfigurationError):
    """Raised when LLM provider configuration is invalid."""

    pass


class TransportError(AlfreyaaError):
    """Raised when a network fetch fails."""

    pass


class FetchError(TransportError):
    """Raised when remote content cannot be retrieved."""

    pass


class ProviderError(AlfreyaaError):
    """Raised when a generative or search provider call fails."""

    pass


class GenerationError(ProviderError):
    """Raised when a provider returns no usable output."""

    pass


class MalformedResponseError(AlfreyaaError):
    """Raised when provider output does not match the expected schema."""

    pass


class DeploymentError(AlfreyaaError):
    """Base exception for deployment pipeline steps."""

    pass


class RepoCreateError(DeploymentError):
    """Raised when the repository host rejects identity lookup or repo creation."""

    pass


class FilePushError(DeploymentError):
    """Raised when a file write to the repository fails."""

    pass


class SiteCreateError(DeploymentError):
    """Raised when the site host rejects site creation."""

    pass


class SessionBusyError(AlfreyaaError):
    """Raised when a command is submitted while another is still in flight."""

    pass
