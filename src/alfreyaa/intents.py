"""Ordered rule-based classification of free-text commands into capability intents.

Rules are evaluated top to bottom and the first match wins. The order is part of
the contract: a command with both a URL and a search phrase is a URL analysis,
and a command starting with a modification phrase is always a code proposal.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class Intent(str, Enum):
    """Capabilities a command can invoke."""

    PLAIN_TEXT = "plain_text"
    GROUNDED_SEARCH = "grounded_search"
    IMAGE_GENERATION = "image_generation"
    URL_ANALYSIS = "url_analysis"
    CODE_MODIFICATION = "code_modification"
    DEPLOYMENT = "deployment"


MODIFICATION_PHRASES = ("change your", "modify the", "update the", "add a feature", "implement a", "rewrite the")
IMAGE_PHRASES = ("generate image", "show me a picture")
SEARCH_PHRASES = ("search for", "what is", "who is", "find out", "latest", "look up", "tell me about", "what's new")
DEPLOY_PHRASES = ("deploy", "publish", "go live")

URL_PATTERN = re.compile(r"[a-z][a-z0-9+.-]*://\S+", re.IGNORECASE)


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a command."""

    intent: Intent
    url: str | None = None


@dataclass(frozen=True)
class Rule:
    """A named predicate over the lowercased command mapped to an intent."""

    name: str
    intent: Intent
    predicate: Callable[[str], bool]


def _starts_with_any(phrases: tuple[str, ...]) -> Callable[[str], bool]:
    return lambda text: text.startswith(phrases)


def _contains_any(phrases: tuple[str, ...]) -> Callable[[str], bool]:
    return lambda text: any(phrase in text for phrase in phrases)


def find_url(command: str) -> str | None:
    """Return the first URL in the command, preserving its original case."""
    match = URL_PATTERN.search(command)
    return match.group(0) if match else None


RULES: tuple[Rule, ...] = (
    Rule("modification", Intent.CODE_MODIFICATION, _starts_with_any(MODIFICATION_PHRASES)),
    Rule("image", Intent.IMAGE_GENERATION, _contains_any(IMAGE_PHRASES)),
    Rule("url", Intent.URL_ANALYSIS, lambda text: find_url(text) is not None),
    Rule("search", Intent.GROUNDED_SEARCH, _contains_any(SEARCH_PHRASES)),
    Rule("deploy", Intent.DEPLOYMENT, _contains_any(DEPLOY_PHRASES)),
)


def classify(command: str, rules: tuple[Rule, ...] = RULES) -> Classification:
    """Map a raw command to the intent of the first matching rule.

    Matching is case-insensitive. Commands matching no rule are plain text.
    """
    text = command.lower()
    for rule in rules:
        if rule.predicate(text):
            url = find_url(command) if rule.intent is Intent.URL_ANALYSIS else None
            return Classification(intent=rule.intent, url=url)
    return Classification(intent=Intent.PLAIN_TEXT)
