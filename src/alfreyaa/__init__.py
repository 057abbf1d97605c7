"""Alfreyaa: a conversational assistant that routes free-text commands to capabilities."""

from .config import settings
from .exceptions import (
    AlfreyaaError,
    ConfigurationError,
    FetchError,
    LLMProviderError,
    MalformedResponseError,
    ProviderError,
    RepoCreateError,
    SessionBusyError,
    SiteCreateError,
    TransportError,
)
from .intents import Classification, Intent, classify
from .providers import ModelGateway, build_gateway, get_llm
from .session import SessionController, create_session

__all__ = [
    "settings",
    "classify",
    "Classification",
    "Intent",
    "get_llm",
    "build_gateway",
    "ModelGateway",
    "SessionController",
    "create_session",
    "AlfreyaaError",
    "ConfigurationError",
    "LLMProviderError",
    "TransportError",
    "FetchError",
    "ProviderError",
    "MalformedResponseError",
    "RepoCreateError",
    "SiteCreateError",
    "SessionBusyError",
]
