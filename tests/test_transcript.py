"""Tests for the SQLite chat transcript."""

import pytest

from alfreyaa.models import (
    CodeChange,
    CodeModificationProposal,
    CodeModificationResult,
    DeploymentStatus,
    ErrorResult,
    GroundedResult,
    ImageResult,
    ProgressEvent,
    ProgressUpdate,
    ResultEvent,
    Source,
    TextResult,
    WebsiteAnalysisResult,
)
from alfreyaa.transcript import (
    ChatMessage,
    MessageType,
    Sender,
    TranscriptStore,
    message_from_event,
    user_message,
)
from alfreyaa.transcript.models import INITIAL_MESSAGE_ID, INITIAL_MESSAGE_TEXT

pytestmark = pytest.mark.anyio


@pytest.fixture
async def store(tmp_path):
    """Create a fresh transcript store for each test."""
    s = TranscriptStore(tmp_path / "history.db")
    await s.initialize()
    return s


def progress(submission_id, status, message, url=None):
    return ProgressUpdate(submission_id=submission_id, progress=ProgressEvent(status=status, message=message, url=url))


class TestMessageFromEvent:
    def test_text(self):
        message = message_from_event(ResultEvent("s1", TextResult(text="Hello, Kaarthi.")))
        assert message.id == "s1-ai-text"
        assert message.sender == Sender.AI
        assert message.type == MessageType.TEXT

    def test_grounded_keeps_sources(self):
        result = GroundedResult(text="Found it.", sources=[Source(uri="https://a", title="A")])
        message = message_from_event(ResultEvent("s1", result))
        assert message.type == MessageType.GROUNDED_TEXT
        assert [(s.uri, s.title) for s in message.sources] == [("https://a", "A")]

    def test_image_and_website(self):
        image = message_from_event(ResultEvent("s1", ImageResult(text="Here.", image_url="data:image/jpeg;base64,AA==")))
        assert image.image_url == "data:image/jpeg;base64,AA=="

        site = message_from_event(ResultEvent("s2", WebsiteAnalysisResult(text="Summary.", analyzed_url="https://x")))
        assert site.type == MessageType.WEBSITE_ANALYSIS
        assert site.analyzed_url == "https://x"

    def test_code_modification_uses_explanation(self):
        proposal = CodeModificationProposal(explanation="I will add it.", changes=[CodeChange(file="cli.py", reason="new")])
        message = message_from_event(ResultEvent("s1", CodeModificationResult(proposal=proposal)))
        assert message.text == "I will add it."
        assert message.code_modification == proposal

    def test_error(self):
        message = message_from_event(ResultEvent("s1", ErrorResult(text="Nope.")))
        assert message.type == MessageType.ERROR
        assert message.id == "s1-ai-error"

    def test_progress_updates_share_one_id(self):
        first = message_from_event(progress("s9", DeploymentStatus.INITIALIZING, "Initializing..."))
        last = message_from_event(progress("s9", DeploymentStatus.SUCCESS, "Live.", url="https://site"))
        assert first.id == last.id == "s9-ai-deploy"
        assert last.deployment_status == DeploymentStatus.SUCCESS
        assert last.deployment_url == "https://site"

    def test_unknown_event(self):
        with pytest.raises(TypeError):
            message_from_event("not an event")


class TestTranscriptStore:
    async def test_empty_transcript_shows_greeting(self, store):
        messages = await store.list_messages()
        assert len(messages) == 1
        assert messages[0].id == INITIAL_MESSAGE_ID
        assert messages[0].text == INITIAL_MESSAGE_TEXT

    async def test_append_preserves_order(self, store):
        for i in range(3):
            await store.append(user_message(f"u{i}", f"command {i}"))

        messages = await store.list_messages()
        assert [m.id for m in messages] == ["u0", "u1", "u2"]
        assert all(m.sender == Sender.USER for m in messages)

    async def test_limit_returns_latest_oldest_first(self, store):
        for i in range(5):
            await store.append(user_message(f"u{i}", "x"))
        assert [m.id for m in await store.list_messages(limit=2)] == ["u3", "u4"]

    async def test_upsert_rewrites_deployment_turn_in_place(self, store):
        await store.append(user_message("u1", "deploy"))
        await store.upsert(message_from_event(progress("s1", DeploymentStatus.INITIALIZING, "Initializing...")))
        await store.append(user_message("u2", "hello"))
        await store.upsert(message_from_event(progress("s1", DeploymentStatus.SUCCESS, "Live.", url="https://site")))

        messages = await store.list_messages()
        assert [m.id for m in messages] == ["u1", "s1-ai-deploy", "u2"]
        assert messages[1].deployment_status == DeploymentStatus.SUCCESS
        assert messages[1].deployment_url == "https://site"
        assert messages[1].text == "Live."

    async def test_payload_round_trip(self, store):
        proposal = CodeModificationProposal(explanation="Plan.", changes=[CodeChange(file="a.py", reason="r")])
        original = message_from_event(ResultEvent("s1", CodeModificationResult(proposal=proposal)))
        await store.append(original)

        loaded = await store.get_message("s1-ai-code_modification")
        assert loaded.code_modification == proposal
        assert loaded.created_at == original.created_at
        assert loaded.sources is None

    async def test_get_missing_message(self, store):
        assert await store.get_message("nope") is None

    async def test_clear_returns_count(self, store):
        await store.append(user_message("u1", "a"))
        await store.append(ChatMessage(id="a1", sender=Sender.AI, text="b"))

        assert await store.clear() == 2
        assert [m.id for m in await store.list_messages()] == [INITIAL_MESSAGE_ID]
