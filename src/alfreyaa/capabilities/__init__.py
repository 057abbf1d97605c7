"""Capability adapters and the website content extractor."""

from .adapters import (
    CapabilityAdapter,
    CodeModificationAdapter,
    GroundedSearchAdapter,
    ImageAdapter,
    TextAdapter,
    WebsiteAnalysisAdapter,
    dedupe_sources,
    parse_proposal,
    strip_image_phrases,
)
from .extractor import ContentExtractor, html_to_text

__all__ = [
    "CapabilityAdapter",
    "TextAdapter",
    "GroundedSearchAdapter",
    "ImageAdapter",
    "WebsiteAnalysisAdapter",
    "CodeModificationAdapter",
    "ContentExtractor",
    "dedupe_sources",
    "html_to_text",
    "parse_proposal",
    "strip_image_phrases",
]
