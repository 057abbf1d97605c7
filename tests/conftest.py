"""Pytest configuration and fixtures for Alfreyaa tests."""

import json

import httpx
import pytest

from alfreyaa.deployment import ProjectSource
from alfreyaa.providers import GroundedResponse


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: Tests touching real external services")


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeGateway:
    """Records calls and returns canned provider output."""

    def __init__(self, text="Certainly, Kaarthi.", grounded=None, images=None, structured=None, error=None):
        self.text = text
        self.grounded = grounded or GroundedResponse(text="Grounded answer, Kaarthi.")
        self.images = [b"\xff\xd8jpeg"] if images is None else images
        self.structured = structured
        self.error = error
        self.calls: list[tuple[str, str, str | None]] = []

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    async def generate_text(self, prompt, system_instruction):
        self.calls.append(("text", prompt, system_instruction))
        self._maybe_fail()
        return self.text

    async def generate_structured(self, prompt, system_instruction, schema):
        self.calls.append(("structured", prompt, system_instruction))
        self._maybe_fail()
        return self.structured

    async def generate_grounded(self, prompt, system_instruction):
        self.calls.append(("grounded", prompt, system_instruction))
        self._maybe_fail()
        return self.grounded

    async def generate_images(self, prompt):
        self.calls.append(("images", prompt, None))
        self._maybe_fail()
        return self.images


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def project(tmp_path):
    """A small project with one nested file, one empty file and one missing file."""
    root = tmp_path / "project"
    (root / "pkg").mkdir(parents=True)
    (root / "app.py").write_text("print('hello')\n", encoding="utf-8")
    (root / "pkg" / "core.py").write_text("VALUE = 1\n", encoding="utf-8")
    (root / "empty.py").write_text("   \n", encoding="utf-8")
    return ProjectSource(root, ["app.py", "pkg/core.py", "empty.py", "missing.py"])


class FakeHosts:
    """httpx handler emulating the GitHub and Netlify endpoints used by deployment."""

    def __init__(self, fail: dict[tuple[str, str], int] | None = None, site_url="https://alfreyaa-test.netlify.app", login="kaarthi"):
        self.fail = fail or {}
        self.site_url = site_url
        self.login = login
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, method, path = request.url.host, request.method, request.url.path

        if host == "api.github.com" and method == "PUT" and path.startswith("/repos/"):
            status = self.fail.get(("PUT", "/repos"), 201)
            return httpx.Response(status, json={})

        status = self.fail.get((method, path))
        if status is not None:
            return httpx.Response(status, json={"message": "nope"})

        if host == "api.github.com" and method == "GET" and path == "/user":
            return httpx.Response(200, json={"login": self.login} if self.login else {"id": 1})
        if host == "api.github.com" and method == "POST" and path == "/user/repos":
            name = json.loads(request.content)["name"]
            return httpx.Response(201, json={"full_name": f"kaarthi/{name}", "private": False, "default_branch": "main"})
        if host == "api.netlify.com" and method == "POST" and path == "/api/v1/sites":
            return httpx.Response(201, json={"id": "site-1", "ssl_url": self.site_url})
        if host == "api.allorigins.win":
            return httpx.Response(200, text="<html><body><h1>Example</h1>\n<p>Hello there.</p></body></html>")
        return httpx.Response(404)

    def matching(self, method: str, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(prefix)]


@pytest.fixture
def hosts():
    return FakeHosts()


@pytest.fixture
async def http_client(hosts):
    async with httpx.AsyncClient(transport=httpx.MockTransport(hosts)) as client:
        yield client
