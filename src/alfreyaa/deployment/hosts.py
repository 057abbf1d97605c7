"""REST clients for the repository host (GitHub) and the site host (Netlify)."""

import base64
import logging
from typing import Any

import httpx

from ..exceptions import FilePushError, RepoCreateError, SiteCreateError

logger = logging.getLogger(__name__)


def encode_content(text: str) -> str:
    """Base64-encode file text as UTF-8, as the contents API expects."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class GitHubClient:
    """Minimal GitHub REST client for creating a repository and writing files."""

    def __init__(self, client: httpx.AsyncClient, token: str, base_url: str = "https://api.github.com", timeout: float = 30.0):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
        }

    async def get_user(self) -> dict[str, Any]:
        """Resolve the account that owns the token."""
        response = await self.client.get(f"{self.base_url}/user", headers=self.headers, timeout=self.timeout)
        if not response.is_success:
            raise RepoCreateError("Failed to authenticate with GitHub.")
        return response.json()

    async def create_repo(self, name: str, description: str) -> dict[str, Any]:
        response = await self.client.post(
            f"{self.base_url}/user/repos",
            headers=self.headers,
            timeout=self.timeout,
            json={"name": name, "description": description},
        )
        if not response.is_success:
            raise RepoCreateError(f"Failed to create GitHub repository. Status: {response.status_code}")
        return response.json()

    async def put_file(self, owner: str, repo: str, path: str, content: str, message: str | None = None) -> None:
        """Write one file as its own commit."""
        response = await self.client.put(
            f"{self.base_url}/repos/{owner}/{repo}/contents/{path}",
            headers=self.headers,
            timeout=self.timeout,
            json={"message": message or f"feat: add {path}", "content": encode_content(content)},
        )
        if not response.is_success:
            raise FilePushError(f"Failed to upload {path}. Status: {response.status_code}")


class NetlifyClient:
    """Minimal Netlify REST client for creating a repository-backed site."""

    def __init__(self, client: httpx.AsyncClient, token: str, base_url: str = "https://api.netlify.com/api/v1", timeout: float = 30.0):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {token}"}

    async def create_site(self, full_name: str, private: bool, branch: str) -> dict[str, Any]:
        response = await self.client.post(
            f"{self.base_url}/sites",
            headers=self.headers,
            timeout=self.timeout,
            json={
                "repo": {
                    "provider": "github",
                    "repo": full_name,
                    "private": private,
                    "branch": branch,
                },
                "build_settings": {},
            },
        )
        if not response.is_success:
            raise SiteCreateError(f"Failed to create Netlify site. Status: {response.reason_phrase or response.status_code}")
        return response.json()

    @staticmethod
    def site_url(site: dict[str, Any]) -> str | None:
        return site.get("ssl_url") or site.get("url")
