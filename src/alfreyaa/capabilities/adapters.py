"""Capability adapters: one wrapper per intent around a single provider capability.

Every adapter speaks with the same persona and converts provider failures into
a user-facing result instead of raising.
"""

import base64
import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, ValidationError

from ..deployment.project import ProjectSource
from ..exceptions import FetchError, GenerationError, MalformedResponseError
from ..intents import IMAGE_PHRASES, Classification, Intent, find_url
from ..models import (
    CapabilityResult,
    CodeModificationProposal,
    CodeModificationResult,
    ErrorResult,
    GroundedResult,
    ImageResult,
    Source,
    TextResult,
    WebsiteAnalysisResult,
)
from ..providers import CapabilityGateway
from .extractor import ContentExtractor
from .prompts import (
    CODE_MODIFICATION_FAILURE,
    CODE_MODIFICATION_SYSTEM_INSTRUCTION,
    IMAGE_CONFIRMATION,
    IMAGE_FAILURE,
    SEARCH_FAILURE,
    SYSTEM_INSTRUCTION,
    TEXT_FAILURE,
    WEBSITE_ANALYSIS_FAILURE,
    WEBSITE_FETCH_FAILURE,
    get_code_modification_prompt,
    get_image_prompt,
    get_website_analysis_prompt,
)

logger = logging.getLogger(__name__)


class CapabilityAdapter(ABC):
    """Base class for single-shot capabilities."""

    intent: Intent

    def __init__(self, gateway: CapabilityGateway, system_instruction: str = SYSTEM_INSTRUCTION):
        self.gateway = gateway
        self.system_instruction = system_instruction

    @abstractmethod
    async def run(self, command: str, classification: Classification) -> CapabilityResult:
        """Execute the capability for ``command``. Never raises for provider failures."""


class TextAdapter(CapabilityAdapter):
    intent = Intent.PLAIN_TEXT

    async def run(self, command: str, classification: Classification) -> CapabilityResult:
        try:
            text = await self.gateway.generate_text(command, self.system_instruction)
        except Exception as e:
            logger.error(f"Error generating text response: {e}")
            return TextResult(text=TEXT_FAILURE)
        return TextResult(text=text)


def dedupe_sources(sources: list[Source]) -> list[Source]:
    """Collapse sources sharing a URI.

    The first occurrence keeps its position, the last occurrence supplies the title.
    """
    by_uri: dict[str, Source] = {}
    for source in sources:
        by_uri[source.uri] = source
    return list(by_uri.values())


class GroundedSearchAdapter(CapabilityAdapter):
    intent = Intent.GROUNDED_SEARCH

    async def run(self, command: str, classification: Classification) -> CapabilityResult:
        try:
            response = await self.gateway.generate_grounded(command, self.system_instruction)
        except Exception as e:
            logger.error(f"Error generating grounded response: {e}")
            return GroundedResult(text=SEARCH_FAILURE, sources=[])

        sources = dedupe_sources(response.sources)
        if len(sources) != len(response.sources):
            logger.debug(f"Collapsed {len(response.sources)} citations into {len(sources)} sources")
        return GroundedResult(text=response.text, sources=sources)


def strip_image_phrases(command: str) -> str:
    """Remove the triggering phrase from an image request, leaving the subject."""
    cleaned = command.lower()
    for phrase in IMAGE_PHRASES:
        cleaned = cleaned.replace(phrase, "", 1)
    return cleaned.strip()


class ImageAdapter(CapabilityAdapter):
    intent = Intent.IMAGE_GENERATION

    async def generate(self, command: str) -> str:
        """Return a data URI for the first generated image.

        Raises:
            GenerationError: If the provider returns no images
        """
        prompt = get_image_prompt(strip_image_phrases(command))
        images = await self.gateway.generate_images(prompt)
        if not images:
            raise GenerationError("No image was generated.")
        encoded = base64.b64encode(images[0]).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"

    async def run(self, command: str, classification: Classification) -> CapabilityResult:
        try:
            image_url = await self.generate(command)
        except Exception as e:
            logger.error(f"Error generating image: {e}")
            return ErrorResult(text=IMAGE_FAILURE)
        return ImageResult(text=IMAGE_CONFIRMATION, image_url=image_url)


class WebsiteAnalysisAdapter(CapabilityAdapter):
    intent = Intent.URL_ANALYSIS

    def __init__(self, gateway: CapabilityGateway, extractor: ContentExtractor, system_instruction: str = SYSTEM_INSTRUCTION):
        super().__init__(gateway, system_instruction)
        self.extractor = extractor

    async def run(self, command: str, classification: Classification) -> CapabilityResult:
        url = classification.url or find_url(command)
        if not url:
            return ErrorResult(text=WEBSITE_FETCH_FAILURE)

        try:
            content = await self.extractor.extract(url)
        except FetchError as e:
            logger.error(f"Error fetching website content from {url}: {e}")
            return ErrorResult(text=WEBSITE_FETCH_FAILURE)

        try:
            text = await self.gateway.generate_text(get_website_analysis_prompt(command, content), self.system_instruction)
        except Exception as e:
            logger.error(f"Error generating website analysis: {e}")
            text = WEBSITE_ANALYSIS_FAILURE
        return WebsiteAnalysisResult(text=text, analyzed_url=url)


def parse_proposal(raw: object) -> CodeModificationProposal:
    """Validate provider output as a code-modification proposal.

    Unknown keys such as file contents are dropped by the model.

    Raises:
        MalformedResponseError: If the output does not match the schema
    """
    try:
        if isinstance(raw, CodeModificationProposal):
            return raw
        if isinstance(raw, BaseModel):
            raw = raw.model_dump()
        if isinstance(raw, (str, bytes)):
            return CodeModificationProposal.model_validate_json(raw)
        return CodeModificationProposal.model_validate(raw)
    except ValidationError as e:
        raise MalformedResponseError(f"Code modification response did not match schema: {e}") from e


class CodeModificationAdapter(CapabilityAdapter):
    intent = Intent.CODE_MODIFICATION

    def __init__(self, gateway: CapabilityGateway, project: ProjectSource, system_instruction: str = CODE_MODIFICATION_SYSTEM_INSTRUCTION):
        super().__init__(gateway, system_instruction)
        self.project = project

    async def propose(self, command: str) -> CodeModificationProposal:
        files = [(f.path, f.content) for f in self.project.load()]
        prompt = get_code_modification_prompt(command, files)
        raw = await self.gateway.generate_structured(prompt, self.system_instruction, CodeModificationProposal)
        return parse_proposal(raw)

    async def run(self, command: str, classification: Classification) -> CapabilityResult:
        try:
            proposal = await self.propose(command)
        except Exception as e:
            logger.error(f"Error generating code modification: {e}")
            proposal = CodeModificationProposal(explanation=CODE_MODIFICATION_FAILURE, changes=[])
        return CodeModificationResult(proposal=proposal)
