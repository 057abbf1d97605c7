"""Remote document retrieval and markup-to-text reduction."""

import logging
import re

import httpx

from ..exceptions import FetchError

logger = logging.getLogger(__name__)

DEFAULT_PROXY_URL = "https://api.allorigins.win/raw"
MAX_CONTENT_CHARS = 15000

_STYLE_BLOCK = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


def html_to_text(html: str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """Reduce markup to whitespace-normalized plain text.

    Style and script blocks are dropped with their content, remaining tags are
    removed, and the result is cut at ``max_chars`` with no regard for word or
    sentence boundaries.
    """
    text = _STYLE_BLOCK.sub("", html)
    text = _SCRIPT_BLOCK.sub("", text)
    text = _TAG.sub("", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:max_chars]


class ContentExtractor:
    """Fetches pages through a pass-through retrieval endpoint and extracts their text."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        proxy_url: str = DEFAULT_PROXY_URL,
        max_chars: int = MAX_CONTENT_CHARS,
    ):
        self.client = client
        self.proxy_url = proxy_url
        self.max_chars = max_chars

    async def fetch(self, url: str) -> str:
        """Return the raw markup for ``url``.

        Raises:
            FetchError: On network failure or a non-2xx response
        """
        try:
            # httpx URL-encodes the target into the query string
            response = await self.client.get(self.proxy_url, params={"url": url})
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        if not response.is_success:
            raise FetchError(f"Failed to fetch the URL. Status: {response.status_code}")
        return response.text

    async def extract(self, url: str) -> str:
        """Fetch ``url`` and return at most ``max_chars`` characters of its text."""
        html = await self.fetch(url)
        text = html_to_text(html, self.max_chars)
        logger.info(f"Extracted {len(text)} characters from {url}")
        return text
