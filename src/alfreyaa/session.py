"""Session controller: classifies one command at a time and streams its events."""

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from uuid import uuid4

import httpx

from .capabilities import (
    CapabilityAdapter,
    CodeModificationAdapter,
    ContentExtractor,
    GroundedSearchAdapter,
    ImageAdapter,
    TextAdapter,
    WebsiteAnalysisAdapter,
)
from .config import AppSettings
from .deployment import DeploymentOrchestrator, ProjectSource
from .exceptions import SessionBusyError
from .intents import Classification, Intent, classify
from .models import CapabilityResult, DeploymentStatus, ErrorResult, ProgressEvent, ProgressUpdate, ResultEvent, SessionEvent
from .observability import bind_submission_context, clear_submission_context, get_logger
from .providers import CapabilityGateway

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "An unknown error occurred."


def new_submission_id() -> str:
    return str(uuid4())[:8]  # Short ID for convenience


class SessionController:
    """Accepts a single in-flight command and turns it into a stream of events.

    Single-shot intents produce one ResultEvent. Deployment produces
    ProgressUpdates sharing the submission id, ending with a success or error
    update. The session is released as the terminal event is produced, so the
    consumer need not drain the stream. Submitting before that raises
    SessionBusyError on the first iteration of the new stream; there is no
    queueing or cancellation.
    """

    def __init__(
        self,
        adapters: Mapping[Intent, CapabilityAdapter],
        deployer: DeploymentOrchestrator,
        classifier: Callable[[str], Classification] = classify,
        id_factory: Callable[[], str] = new_submission_id,
    ):
        self.adapters = dict(adapters)
        self.deployer = deployer
        self.classifier = classifier
        self.id_factory = id_factory
        self._in_flight: object | None = None

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def _release(self, owner: object) -> None:
        # A stream finalized late must not clear a newer submission's flag
        if self._in_flight is owner:
            self._in_flight = None
            clear_submission_context()

    async def submit(self, command: str) -> AsyncIterator[SessionEvent]:
        """Process ``command`` and yield its events; the last event is terminal."""
        if self._in_flight is not None:
            raise SessionBusyError("A command is already being processed. Wait for it to finish.")
        owner = object()
        self._in_flight = owner

        try:
            submission_id = self.id_factory()
            classification = self.classifier(command)
            bind_submission_context(submission_id, classification.intent.value)
            get_logger(__name__).info("submission_started", command_length=len(command))

            if classification.intent is Intent.DEPLOYMENT:
                async for update in self._deploy(submission_id):
                    if update.is_terminal:
                        self._release(owner)
                    yield update
            else:
                result = await self._dispatch(command, classification)
                self._release(owner)
                yield ResultEvent(submission_id=submission_id, result=result)
        finally:
            self._release(owner)

    async def _dispatch(self, command: str, classification: Classification) -> CapabilityResult:
        adapter = self.adapters.get(classification.intent)
        if adapter is None:
            logger.error(f"No adapter registered for intent {classification.intent.value}")
            return ErrorResult(text=UNKNOWN_ERROR)

        try:
            return await adapter.run(command, classification)
        except Exception as e:
            logger.error(f"Adapter {type(adapter).__name__} failed: {e}")
            return ErrorResult(text=str(e) or UNKNOWN_ERROR)

    async def _deploy(self, submission_id: str) -> AsyncIterator[ProgressUpdate]:
        terminal_seen = False
        try:
            async for progress in self.deployer.run():
                terminal_seen = progress.is_terminal
                yield ProgressUpdate(submission_id=submission_id, progress=progress)
        except Exception as e:
            logger.error(f"Deployment stream failed: {e}")
            if not terminal_seen:
                error = ProgressEvent(status=DeploymentStatus.ERROR, message=str(e) or UNKNOWN_ERROR)
                yield ProgressUpdate(submission_id=submission_id, progress=error)


def build_adapters(gateway: CapabilityGateway, extractor: ContentExtractor, project: ProjectSource) -> dict[Intent, CapabilityAdapter]:
    """Register one adapter per single-shot intent."""
    adapters: list[CapabilityAdapter] = [
        TextAdapter(gateway),
        GroundedSearchAdapter(gateway),
        ImageAdapter(gateway),
        WebsiteAnalysisAdapter(gateway, extractor),
        CodeModificationAdapter(gateway, project),
    ]
    return {adapter.intent: adapter for adapter in adapters}


def create_session(app_settings: AppSettings, gateway: CapabilityGateway, client: httpx.AsyncClient) -> SessionController:
    """Wire a SessionController from configuration.

    The caller owns ``client`` and must keep it open for the session's lifetime.
    """
    project = ProjectSource(app_settings.project.get_root(), app_settings.project.files)
    extractor = ContentExtractor(
        client,
        proxy_url=app_settings.web.proxy_url,
        max_chars=app_settings.web.max_content_chars,
    )
    deployer = DeploymentOrchestrator.from_settings(client, project, app_settings.deploy)
    return SessionController(build_adapters(gateway, extractor, project), deployer)
