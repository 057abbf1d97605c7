"""Tests for the LLM provider factory and the model gateway."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from alfreyaa.exceptions import LLMProviderError, ProviderError
from alfreyaa.models import CodeModificationProposal, Source
from alfreyaa.providers import ModelGateway, get_llm, sources_from_grounding


class TestGetLLM:
    """Test the get_llm factory function."""

    def test_google_provider(self):
        with patch("alfreyaa.providers.ChatGoogle") as mock:
            mock.return_value = MagicMock()
            get_llm("google", "gemini-2.5-flash", api_key="test-key")
            mock.assert_called_once_with(model="gemini-2.5-flash", api_key="test-key")

    def test_openai_with_base_url(self):
        with patch("alfreyaa.providers.ChatOpenAI") as mock:
            mock.return_value = MagicMock()
            get_llm("openai", "gpt-4o", api_key="test-key", base_url="http://localhost:8000")
            mock.assert_called_once_with(model="gpt-4o", api_key="test-key", base_url="http://localhost:8000")

    def test_anthropic_provider(self):
        with patch("alfreyaa.providers.ChatAnthropic") as mock:
            mock.return_value = MagicMock()
            get_llm("anthropic", "claude-sonnet-4-0", api_key="test-key")
            mock.assert_called_once_with(model="claude-sonnet-4-0", api_key="test-key")

    def test_groq_provider(self):
        with patch("alfreyaa.providers.ChatGroq") as mock:
            mock.return_value = MagicMock()
            get_llm("groq", "llama-3.3-70b", api_key="test-key")
            mock.assert_called_once_with(model="llama-3.3-70b", api_key="test-key")

    def test_ollama_no_key_required(self):
        with patch("alfreyaa.providers.ChatOllama") as mock:
            mock.return_value = MagicMock()
            get_llm("ollama", "llama3", base_url="http://localhost:11434")
            mock.assert_called_once_with(model="llama3", host="http://localhost:11434")

    def test_openrouter_provider(self):
        with patch("alfreyaa.providers.ChatOpenRouter") as mock:
            mock.return_value = MagicMock()
            get_llm("openrouter", "openai/gpt-4o", api_key="test-key")
            mock.assert_called_once_with(model="openai/gpt-4o", api_key="test-key")


class TestErrorHandling:
    def test_missing_api_key_error_names_env_var(self):
        with pytest.raises(LLMProviderError, match="OPENAI_API_KEY"):
            get_llm("openai", "gpt-4o")

    def test_unsupported_provider_error(self):
        with pytest.raises(LLMProviderError, match="Unsupported provider"):
            get_llm("invalid_provider", "model", api_key="key")

    def test_constructor_failure_is_wrapped(self):
        with patch("alfreyaa.providers.ChatAnthropic", side_effect=ValueError("bad model")):
            with pytest.raises(LLMProviderError, match="Failed to initialize anthropic"):
                get_llm("anthropic", "nope", api_key="key")


def make_llm(completion):
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=SimpleNamespace(completion=completion))
    return llm


class TestModelGateway:
    pytestmark = pytest.mark.anyio

    async def test_generate_text_sends_system_and_user_messages(self):
        llm = make_llm("Good evening, Kaarthi.")
        gateway = ModelGateway(llm)

        assert await gateway.generate_text("hello", "be formal") == "Good evening, Kaarthi."
        messages = llm.ainvoke.await_args.args[0]
        assert [m.content for m in messages] == ["be formal", "hello"]

    async def test_generate_text_wraps_failures(self):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))
        with pytest.raises(ProviderError, match="rate limited"):
            await ModelGateway(llm).generate_text("hello", "system")

    async def test_generate_structured_passes_schema(self):
        proposal = CodeModificationProposal(explanation="ok", changes=[])
        llm = make_llm(proposal)

        result = await ModelGateway(llm).generate_structured("change it", "system", CodeModificationProposal)
        assert result is proposal
        assert llm.ainvoke.await_args.kwargs["output_format"] is CodeModificationProposal
        assert "explanation" in llm.ainvoke.await_args.args[0][0].content

    async def test_generate_structured_strips_code_fence(self):
        llm = make_llm('```json\n{"explanation": "ok", "changes": []}\n```')
        result = await ModelGateway(llm).generate_structured("change it", "system", CodeModificationProposal)
        assert result == '{"explanation": "ok", "changes": []}'

    async def test_grounded_requires_genai_client(self):
        with pytest.raises(ProviderError, match="Google API key"):
            await ModelGateway(make_llm("")).generate_grounded("who is", "system")

    async def test_images_require_genai_client(self):
        with pytest.raises(ProviderError, match="Google API key"):
            await ModelGateway(make_llm("")).generate_images("a fox")

    async def test_grounded_collects_sources(self):
        web = SimpleNamespace(uri="https://a.example", title="A")
        response = SimpleNamespace(
            text="Answer, Kaarthi.",
            candidates=[SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=[SimpleNamespace(web=web)]))],
        )
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response)
        gateway = ModelGateway(make_llm(""), genai_client=client, search_model="search-model")

        grounded = await gateway.generate_grounded("who is", "persona")
        assert grounded.text == "Answer, Kaarthi."
        assert grounded.sources == [Source(uri="https://a.example", title="A")]

        kwargs = client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "search-model"
        assert kwargs["contents"] == "who is"
        assert kwargs["config"].tools[0].google_search is not None

    async def test_images_return_bytes(self):
        generated = [SimpleNamespace(image=SimpleNamespace(image_bytes=b"jpeg-bytes"))]
        client = MagicMock()
        client.aio.models.generate_images = AsyncMock(return_value=SimpleNamespace(generated_images=generated))
        gateway = ModelGateway(make_llm(""), genai_client=client)

        assert await gateway.generate_images("a fox") == [b"jpeg-bytes"]
        config = client.aio.models.generate_images.await_args.kwargs["config"]
        assert config.number_of_images == 1
        assert config.output_mime_type == "image/jpeg"
        assert config.aspect_ratio == "1:1"

    async def test_images_empty_response(self):
        client = MagicMock()
        client.aio.models.generate_images = AsyncMock(return_value=SimpleNamespace(generated_images=None))
        assert await ModelGateway(make_llm(""), genai_client=client).generate_images("a fox") == []


class TestSourcesFromGrounding:
    def test_no_candidates(self):
        assert sources_from_grounding(SimpleNamespace(candidates=None)) == []

    def test_chunks_without_web_or_title_are_skipped(self):
        chunks = [
            SimpleNamespace(web=None),
            SimpleNamespace(web=SimpleNamespace(uri="https://x", title=None)),
            SimpleNamespace(web=SimpleNamespace(uri="https://y", title="Y")),
        ]
        response = SimpleNamespace(candidates=[SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))])
        assert sources_from_grounding(response) == [Source(uri="https://y", title="Y")]
