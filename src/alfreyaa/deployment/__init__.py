"""Deployment pipeline: repository creation, file push, site creation and build wait."""

from .hosts import GitHubClient, NetlifyClient
from .machine import DeploymentOrchestrator
from .project import ProjectFile, ProjectSource

__all__ = [
    "DeploymentOrchestrator",
    "GitHubClient",
    "NetlifyClient",
    "ProjectFile",
    "ProjectSource",
]
