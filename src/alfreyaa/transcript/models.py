"""Data models for the persisted chat transcript."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..models import (
    CodeModificationProposal,
    CodeModificationResult,
    DeploymentStatus,
    ErrorResult,
    GroundedResult,
    ImageResult,
    ProgressUpdate,
    ResultEvent,
    SessionEvent,
    TextResult,
    WebsiteAnalysisResult,
)


class Sender(str, Enum):
    USER = "user"
    AI = "ai"


class MessageType(str, Enum):
    """How a transcript turn is rendered."""

    TEXT = "text"
    IMAGE = "image"
    ERROR = "error"
    GROUNDED_TEXT = "grounded_text"
    DEPLOYMENT = "deployment"
    WEBSITE_ANALYSIS = "website_analysis"
    CODE_MODIFICATION = "code_modification"


class SourceRecord(BaseModel):
    uri: str
    title: str


class ChatMessage(BaseModel):
    """One turn of the conversation with its type-specific payload."""

    id: str
    sender: Sender
    type: MessageType = MessageType.TEXT
    text: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Type-specific payload
    image_url: str | None = None
    sources: list[SourceRecord] | None = None
    deployment_status: DeploymentStatus | None = None
    deployment_url: str | None = None
    analyzed_url: str | None = None
    code_modification: CodeModificationProposal | None = None

    def payload(self) -> dict[str, Any]:
        """Type-specific fields for storage, without the common columns."""
        return self.model_dump(
            mode="json",
            exclude={"id", "sender", "type", "text", "created_at"},
            exclude_none=True,
        )


INITIAL_MESSAGE_ID = "alfreyaa-init"
INITIAL_MESSAGE_TEXT = "Greetings, Kaarthi. Alfreyaa is operational."


def initial_message() -> ChatMessage:
    return ChatMessage(id=INITIAL_MESSAGE_ID, sender=Sender.AI, type=MessageType.TEXT, text=INITIAL_MESSAGE_TEXT)


def user_message(message_id: str, text: str) -> ChatMessage:
    return ChatMessage(id=message_id, sender=Sender.USER, type=MessageType.TEXT, text=text)


def message_from_event(event: SessionEvent) -> ChatMessage:
    """Map a session event to the assistant turn that displays it.

    Progress updates for one deployment share the submission id, so storing
    them with ``upsert`` rewrites a single turn in place.
    """
    if isinstance(event, ProgressUpdate):
        progress = event.progress
        return ChatMessage(
            id=f"{event.submission_id}-ai-deploy",
            sender=Sender.AI,
            type=MessageType.DEPLOYMENT,
            text=progress.message,
            deployment_status=progress.status,
            deployment_url=progress.url,
        )

    if not isinstance(event, ResultEvent):
        raise TypeError(f"Unsupported session event: {type(event).__name__}")

    result = event.result
    message_id = f"{event.submission_id}-ai-{result.kind}"
    match result:
        case TextResult(text=text):
            return ChatMessage(id=message_id, sender=Sender.AI, type=MessageType.TEXT, text=text)
        case GroundedResult(text=text, sources=sources):
            return ChatMessage(
                id=message_id,
                sender=Sender.AI,
                type=MessageType.GROUNDED_TEXT,
                text=text,
                sources=[SourceRecord(uri=s.uri, title=s.title) for s in sources],
            )
        case ImageResult(text=text, image_url=image_url):
            return ChatMessage(id=message_id, sender=Sender.AI, type=MessageType.IMAGE, text=text, image_url=image_url)
        case WebsiteAnalysisResult(text=text, analyzed_url=url):
            return ChatMessage(id=message_id, sender=Sender.AI, type=MessageType.WEBSITE_ANALYSIS, text=text, analyzed_url=url)
        case CodeModificationResult(proposal=proposal):
            return ChatMessage(
                id=message_id,
                sender=Sender.AI,
                type=MessageType.CODE_MODIFICATION,
                text=proposal.explanation,
                code_modification=proposal,
            )
        case ErrorResult(text=text):
            return ChatMessage(id=message_id, sender=Sender.AI, type=MessageType.ERROR, text=text)
    raise TypeError(f"Unsupported capability result: {type(result).__name__}")
