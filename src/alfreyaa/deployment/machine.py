"""Deployment state machine publishing progress events as an async stream.

    idle -> initializing -> creating_repo -> pushing_files -> creating_site -> deploying -> success
                                                                                     \\-> error (from any state)

Each step yields its progress event before doing its work. Any failure ends the
run in ``error``; nothing is retried and resources created by earlier steps
(the repository, already pushed files) are left in place.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable

import httpx

from ..config import DeploySettings
from ..exceptions import RepoCreateError, SiteCreateError
from ..models import DeploymentRun, DeploymentStatus, ProgressEvent
from .hosts import GitHubClient, NetlifyClient
from .project import ProjectSource

logger = logging.getLogger(__name__)

CREDENTIALS_MISSING = (
    "My apologies, Kaarthi. I lack the required deployment credentials "
    "(GITHUB_TOKEN or NETLIFY_TOKEN) in my environment to proceed."
)
ALREADY_RUNNING = "My apologies, Kaarthi. A deployment is already in progress."
FAILURE_PREFIX = "I have failed in my deployment task, Kaarthi. An error occurred: "


class DeploymentOrchestrator:
    """Runs the repository -> files -> site -> build pipeline, one run at a time."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        project: ProjectSource,
        github_token: str | None,
        netlify_token: str | None,
        github_api_url: str = "https://api.github.com",
        netlify_api_url: str = "https://api.netlify.com/api/v1",
        repo_prefix: str = "alfreyaa-deployment",
        repo_description: str = "Automated deployment of Alfreyaa AI Assistant",
        build_wait_seconds: float = 10.0,
        request_timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.project = project
        self.github_token = github_token
        self.netlify_token = netlify_token
        self.github_api_url = github_api_url
        self.netlify_api_url = netlify_api_url
        self.repo_prefix = repo_prefix
        self.repo_description = repo_description
        self.build_wait_seconds = build_wait_seconds
        self.request_timeout = request_timeout
        self.clock = clock
        self.current_run: DeploymentRun | None = None
        self._active_run: DeploymentRun | None = None

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, project: ProjectSource, deploy: DeploySettings) -> "DeploymentOrchestrator":
        return cls(
            client=client,
            project=project,
            github_token=deploy.get_github_token(),
            netlify_token=deploy.get_netlify_token(),
            github_api_url=deploy.github_api_url,
            netlify_api_url=deploy.netlify_api_url,
            repo_prefix=deploy.repo_prefix,
            repo_description=deploy.repo_description,
            build_wait_seconds=deploy.build_wait_seconds,
            request_timeout=deploy.request_timeout,
        )

    @property
    def active(self) -> bool:
        return self._active_run is not None

    def _finish(self, run: DeploymentRun) -> None:
        if self._active_run is run:
            self._active_run = None
            logger.info(f"Deployment {run.repo_name} ended in {run.status.value} after {run.duration_seconds:.1f}s")

    def _repo_name(self) -> str:
        return f"{self.repo_prefix}-{int(self.clock() * 1000)}"

    async def run(self) -> AsyncIterator[ProgressEvent]:
        """Execute one deployment run, yielding a progress event per state transition.

        The stream always ends with a ``success`` or ``error`` event.
        """
        if self._active_run is not None:
            yield ProgressEvent(status=DeploymentStatus.ERROR, message=ALREADY_RUNNING)
            return

        run = DeploymentRun()
        self.current_run = run

        if not self.github_token or not self.netlify_token:
            logger.warning("Deployment requested without GitHub or Netlify credentials")
            yield run.advance(DeploymentStatus.ERROR, CREDENTIALS_MISSING)
            return

        self._active_run = run
        try:
            async for event in self._steps(run):
                if event.is_terminal:
                    self._finish(run)
                yield event
        except Exception as e:
            logger.error(f"Deployment failed: {e}")
            error = run.advance(DeploymentStatus.ERROR, f"{FAILURE_PREFIX}{e}")
            self._finish(run)
            yield error
        finally:
            if not run.status.is_terminal:
                # Consumer stopped listening mid-run
                run.advance(DeploymentStatus.ERROR, "Deployment interrupted.")
            self._finish(run)

    async def _steps(self, run: DeploymentRun) -> AsyncIterator[ProgressEvent]:
        github = GitHubClient(self.client, self.github_token, base_url=self.github_api_url, timeout=self.request_timeout)
        netlify = NetlifyClient(self.client, self.netlify_token, base_url=self.netlify_api_url, timeout=self.request_timeout)

        # Step 1: Initialize
        yield run.advance(DeploymentStatus.INITIALIZING, "Initializing deployment sequence...")
        run.repo_name = self._repo_name()
        logger.info(f"Starting deployment {run.repo_name}")

        # Step 2: Resolve the owner and create the repository
        yield run.advance(DeploymentStatus.CREATING_REPO, f"Creating new GitHub repository: {run.repo_name}")
        user = await github.get_user()
        owner = user.get("login")
        if not owner:
            raise RepoCreateError("GitHub did not return an account login.")
        repo = await github.create_repo(run.repo_name, self.repo_description)
        logger.info(f"Created repository {repo.get('full_name', run.repo_name)}")

        # Step 3: Push project files, one commit per file
        yield run.advance(DeploymentStatus.PUSHING_FILES, "Uploading application source code...")
        files = [f for f in self.project.load() if not f.is_empty]
        for i, project_file in enumerate(files):
            logger.debug(f"Uploading ({i + 1}/{len(files)}): {project_file.path}")
            await github.put_file(owner, run.repo_name, project_file.path, project_file.content)
        logger.info(f"Uploaded {len(files)} files")

        # Step 4: Create the site wired to the repository
        yield run.advance(DeploymentStatus.CREATING_SITE, "Configuring deployment with Netlify...")
        site = await netlify.create_site(
            full_name=repo.get("full_name", f"{owner}/{run.repo_name}"),
            private=bool(repo.get("private", False)),
            branch=repo.get("default_branch", "main"),
        )
        site_url = NetlifyClient.site_url(site)
        if not site_url:
            raise SiteCreateError("Netlify did not return a site URL.")

        # Step 5: Fixed wait in place of build status polling
        yield run.advance(DeploymentStatus.DEPLOYING, "Deploying... This may take a moment.")
        await asyncio.sleep(self.build_wait_seconds)

        logger.info(f"Deployment {run.repo_name} live at {site_url}")
        yield run.advance(DeploymentStatus.SUCCESS, "Deployment complete. The application is now live.", url=site_url)
