"""LLM provider factory and the model gateway shared by capability adapters."""

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

# Import available chat models from browser-use
from browser_use import ChatAnthropic, ChatGoogle, ChatGroq, ChatOllama, ChatOpenAI

# Available via direct import but not in __all__
from browser_use.llm.openrouter.chat import ChatOpenRouter
from google import genai
from google.genai import types
from pydantic import BaseModel

from .config import NO_KEY_PROVIDERS, STANDARD_ENV_VAR_NAMES, AppSettings
from .exceptions import LLMProviderError, ProviderError
from .models import Source

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel

logger = logging.getLogger(__name__)


def get_llm(
    provider: str,
    model: str,
    api_key: str | None = None,
    base_url: str | None = None,
) -> "BaseChatModel":
    """Create LLM instance using browser-use native providers.

    Supports:
    - google: Gemini models
    - openai: OpenAI GPT models (or any OpenAI-compatible base_url)
    - anthropic: Claude models
    - groq: Groq-hosted models
    - ollama: Local Ollama models (no API key required)
    - openrouter: OpenRouter API

    Raises:
        LLMProviderError: If provider is unsupported or API key is missing
    """
    requires_api_key = provider not in NO_KEY_PROVIDERS and not base_url
    if requires_api_key and not api_key:
        standard_var = STANDARD_ENV_VAR_NAMES.get(provider, "API key")
        raise LLMProviderError(f"API key required for provider '{provider}'. Set {standard_var} or ALFREYAA_LLM_API_KEY environment variable.")

    try:
        match provider:
            case "google":
                return ChatGoogle(model=model, api_key=api_key)

            case "openai":
                return ChatOpenAI(model=model, api_key=api_key, base_url=base_url)

            case "anthropic":
                return ChatAnthropic(model=model, api_key=api_key)

            case "groq":
                return ChatGroq(model=model, api_key=api_key)

            case "ollama":
                return ChatOllama(model=model, host=base_url)

            case "openrouter":
                return ChatOpenRouter(model=model, api_key=api_key)

            case _:
                raise LLMProviderError(f"Unsupported provider: {provider}")

    except LLMProviderError:
        raise
    except Exception as e:
        raise LLMProviderError(f"Failed to initialize {provider} LLM: {e}") from e


@dataclass
class GroundedResponse:
    """Raw grounded-search output; sources may contain duplicates."""

    text: str
    sources: list[Source] = field(default_factory=list)


class CapabilityGateway(Protocol):
    """What capability adapters need from the model providers."""

    async def generate_text(self, prompt: str, system_instruction: str) -> str: ...

    async def generate_structured(self, prompt: str, system_instruction: str, schema: type[BaseModel]) -> Any: ...

    async def generate_grounded(self, prompt: str, system_instruction: str) -> GroundedResponse: ...

    async def generate_images(self, prompt: str) -> list[bytes]: ...


def sources_from_grounding(response: Any) -> list[Source]:
    """Collect web citations from a google-genai response, in citation order."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web and web.uri and web.title:
            sources.append(Source(uri=web.uri, title=web.title))
    return sources


def _strip_code_fence(content: str) -> str:
    # Handle markdown code blocks
    if "```json" in content:
        return content.split("```json")[1].split("```")[0].strip()
    if "```" in content:
        return content.split("```")[1].split("```")[0].strip()
    return content.strip()


class ModelGateway:
    """Explicitly constructed provider handle passed to every adapter.

    Chat-style calls go through a browser-use chat model so any configured
    provider works. Google Search grounding and Imagen have no browser-use
    equivalent and go through a google-genai client, which is optional.
    """

    def __init__(
        self,
        llm: "BaseChatModel",
        genai_client: genai.Client | None = None,
        search_model: str = "gemini-2.5-flash",
        image_model: str = "imagen-3.0-generate-002",
    ):
        self.llm = llm
        self.genai_client = genai_client
        self.search_model = search_model
        self.image_model = image_model

    async def generate_text(self, prompt: str, system_instruction: str) -> str:
        from browser_use.llm.messages import SystemMessage, UserMessage

        messages = [SystemMessage(content=system_instruction), UserMessage(content=prompt)]
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise ProviderError(f"Text generation failed: {e}") from e
        return response.completion

    async def generate_structured(self, prompt: str, system_instruction: str, schema: type[BaseModel]) -> Any:
        """Request output matching ``schema``.

        Returns whatever the provider produced (a parsed model, a dict or JSON
        text); validating it is left to the caller.
        """
        from browser_use.llm.messages import SystemMessage, UserMessage

        schema_hint = json.dumps(schema.model_json_schema())
        messages = [
            SystemMessage(content=f"{system_instruction}\n\nJSON schema:\n{schema_hint}"),
            UserMessage(content=prompt),
        ]
        try:
            response = await self.llm.ainvoke(messages, output_format=schema)
        except Exception as e:
            raise ProviderError(f"Structured generation failed: {e}") from e

        completion = response.completion
        if isinstance(completion, str):
            return _strip_code_fence(completion)
        return completion

    def _require_genai(self, capability: str) -> genai.Client:
        if self.genai_client is None:
            raise ProviderError(f"{capability} requires a Google API key (set GEMINI_API_KEY or GOOGLE_API_KEY)")
        return self.genai_client

    async def generate_grounded(self, prompt: str, system_instruction: str) -> GroundedResponse:
        client = self._require_genai("Grounded search")
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
        try:
            response = await client.aio.models.generate_content(model=self.search_model, contents=prompt, config=config)
        except Exception as e:
            raise ProviderError(f"Grounded search failed: {e}") from e

        sources = sources_from_grounding(response)
        logger.debug(f"Grounded search returned {len(sources)} citations")
        return GroundedResponse(text=response.text or "", sources=sources)

    async def generate_images(self, prompt: str) -> list[bytes]:
        client = self._require_genai("Image generation")
        config = types.GenerateImagesConfig(
            number_of_images=1,
            output_mime_type="image/jpeg",
            aspect_ratio="1:1",
        )
        try:
            response = await client.aio.models.generate_images(model=self.image_model, prompt=prompt, config=config)
        except Exception as e:
            raise ProviderError(f"Image generation failed: {e}") from e

        images = response.generated_images or []
        return [generated.image.image_bytes for generated in images if generated.image and generated.image.image_bytes]


def build_gateway(app_settings: AppSettings) -> ModelGateway:
    """Wire a ModelGateway from configuration.

    Raises:
        LLMProviderError: If the chat provider cannot be initialized
    """
    llm = get_llm(
        provider=app_settings.llm.provider,
        model=app_settings.llm.model_name,
        api_key=app_settings.llm.get_api_key_for_provider(),
        base_url=app_settings.llm.base_url,
    )

    genai_client = None
    google_key = app_settings.genai.get_api_key()
    if google_key:
        genai_client = genai.Client(api_key=google_key)
    else:
        logger.warning("No Google API key configured; grounded search and image generation are unavailable")

    return ModelGateway(
        llm=llm,
        genai_client=genai_client,
        search_model=app_settings.genai.search_model,
        image_model=app_settings.genai.image_model,
    )
