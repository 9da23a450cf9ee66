import base64
import logging
import re
import httpx
from typing import Any, Dict, Optional
from sourcemind.errors import NotFound, RateLimited, UpstreamError
from sourcemind.models.repository import LanguageBreakdown, RepositoryMetadata

logger = logging.getLogger(__name__)

GITHUB_REPOS_URL = "https://api.github.com/repos"

NO_README = "No README found."
README_DECODE_ERROR = "Error decoding README content. Content might be binary or invalid encoding."

_WHITESPACE = re.compile(r"\s")


def decode_readme_content(content: Optional[str]) -> str:
    """
    Decodes GitHub's base64 README payload as UTF-8. Never raises;
    undecodable payloads become a placeholder.
    """
    try:
        raw = base64.b64decode(_WHITESPACE.sub("", content), validate=True)
        return raw.decode("utf-8")
    except (ValueError, TypeError) as e:
        logger.error("Decoding error: %s", e)
        return README_DECODE_ERROR


class GithubProbe:
    """
    Read-only client for the three repository endpoints the analysis needs.
    """

    def __init__(self, token: Optional[str] = None, client: Optional[httpx.AsyncClient] = None,
                 base_url: str = GITHUB_REPOS_URL):
        self.token = token or None
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            self.headers["Authorization"] = f"token {self.token}"

    async def _get(self, path: str) -> httpx.Response:
        url = f"{self.base_url}/{path}"
        if self.client is not None:
            return await self.client.get(url, headers=self.headers)
        async with httpx.AsyncClient() as client:
            return await client.get(url, headers=self.headers)

    async def fetch_repository(self, owner: str, name: str) -> RepositoryMetadata:
        response = await self._get(f"{owner}/{name}")
        if response.status_code == 404:
            raise NotFound(f'Repository "{owner}/{name}" not found. Please check spelling or ensure it is public.')
        if response.status_code in (403, 429):
            raise RateLimited("GitHub API rate limit exceeded. Please provide an API Token.")
        if not response.is_success:
            raise UpstreamError(
                f"GitHub API Error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            return RepositoryMetadata.model_validate(response.json())
        except ValueError as e:
            # covers both undecodable JSON and pydantic ValidationError
            logger.error("Unexpected repository payload for %s/%s: %s", owner, name, e)
            raise UpstreamError(
                f'GitHub returned an unreadable record for "{owner}/{name}".',
                status_code=response.status_code,
            ) from e

    async def fetch_languages(self, owner: str, name: str) -> LanguageBreakdown:
        response = await self._get(f"{owner}/{name}/languages")
        if response.status_code == 404:
            # Languages are enrichment data; a missing record is not fatal.
            return {}
        if not response.is_success:
            raise UpstreamError(
                f"Failed to fetch languages: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        data: Dict[str, Any] = response.json() or {}
        return {lang: int(count) for lang, count in data.items()}

    async def fetch_readme(self, owner: str, name: str) -> str:
        response = await self._get(f"{owner}/{name}/readme")
        if response.status_code == 404:
            return NO_README
        if not response.is_success:
            raise UpstreamError(
                f"Failed to fetch README: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return decode_readme_content(response.json().get("content"))
