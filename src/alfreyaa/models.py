"""Data models for capability results, deployment runs and session events."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel


@dataclass(frozen=True)
class Source:
    """A web citation returned by grounded search."""

    uri: str
    title: str


class CodeChange(BaseModel):
    """One file the assistant proposes to change, without its content."""

    file: str
    reason: str


class CodeModificationProposal(BaseModel):
    """Structured output requested from the code-modification provider."""

    explanation: str
    changes: list[CodeChange]


# --- Capability results (one variant per intent) ---


@dataclass
class TextResult:
    text: str
    kind: Literal["text"] = "text"


@dataclass
class GroundedResult:
    text: str
    sources: list[Source] = field(default_factory=list)
    kind: Literal["grounded_text"] = "grounded_text"


@dataclass
class ImageResult:
    text: str
    image_url: str
    kind: Literal["image"] = "image"


@dataclass
class WebsiteAnalysisResult:
    text: str
    analyzed_url: str
    kind: Literal["website_analysis"] = "website_analysis"


@dataclass
class CodeModificationResult:
    proposal: CodeModificationProposal
    kind: Literal["code_modification"] = "code_modification"

    @property
    def text(self) -> str:
        return self.proposal.explanation


@dataclass
class ErrorResult:
    """A failure with no capability payload, shown to the user as an error turn."""

    text: str
    kind: Literal["error"] = "error"


CapabilityResult = TextResult | GroundedResult | ImageResult | WebsiteAnalysisResult | CodeModificationResult | ErrorResult


# --- Deployment ---


class DeploymentStatus(str, Enum):
    """Deployment pipeline states, in the order a successful run visits them."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    CREATING_REPO = "creating_repo"
    PUSHING_FILES = "pushing_files"
    CREATING_SITE = "creating_site"
    DEPLOYING = "deploying"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentStatus.SUCCESS, DeploymentStatus.ERROR)


@dataclass(frozen=True)
class ProgressEvent:
    """Incremental update emitted by the deployment pipeline."""

    status: DeploymentStatus
    message: str
    url: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass
class DeploymentRun:
    """A single attempt at the deployment pipeline, mutated in place as it advances."""

    status: DeploymentStatus = DeploymentStatus.IDLE
    message: str = ""
    url: str | None = None
    repo_name: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        """Elapsed run time, up to now while the run is still active."""
        end = self.completed_at or datetime.now(UTC)
        return (end - self.started_at).total_seconds()

    def advance(self, status: DeploymentStatus, message: str, url: str | None = None) -> ProgressEvent:
        """Move to the given state and return the matching progress event."""
        if self.status.is_terminal:
            raise RuntimeError(f"Deployment run already finished with status {self.status.value}")
        self.status = status
        self.message = message
        if url is not None:
            self.url = url
        if status.is_terminal:
            self.completed_at = datetime.now(UTC)
        return ProgressEvent(status=status, message=message, url=url)


# --- Session events ---


@dataclass(frozen=True)
class ResultEvent:
    """Terminal event carrying the capability result of a submission."""

    submission_id: str
    result: CapabilityResult

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class ProgressUpdate:
    """Deployment progress correlated to its submission by a stable id."""

    submission_id: str
    progress: ProgressEvent

    @property
    def is_terminal(self) -> bool:
        return self.progress.is_terminal


SessionEvent = ResultEvent | ProgressUpdate
