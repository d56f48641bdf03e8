"""
GitHub REST API client for release listings.

Async HTTP client built on aiohttp. A single request per invocation, no
retries: transport failures surface as GitHubApiError classified by HTTP
status so the next scheduled invocation can try again.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from core.errors import GitHubApiError
from core.logging.utilities import LoggedClass, get_logger
from runner_binaries_syncer.config import DEFAULT_GITHUB_API_URL
from runner_binaries_syncer.models import GitHubRelease

logger = get_logger(__name__)

RUNNER_OWNER = "actions"
RUNNER_REPO = "runner"

# Page size used by the GitHub API (and its client libraries) when none is given
DEFAULT_PER_PAGE = 30

USER_AGENT = "runner-binaries-syncer"


class GitHubReleasesClient(LoggedClass):
    """
    Async client for the GitHub releases API.

    Usage:
        async with GitHubReleasesClient(token=token) as client:
            releases = await client.list_releases()

        # Or share a session owned by the caller
        client = GitHubReleasesClient(session=session)
        releases = await client.list_releases()

    Configuration:
        api_url: API base URL (GitHub Enterprise: https://host/api/v3)
        token: Optional token; unauthenticated calls are heavily rate limited
        timeout_seconds: Request timeout
        per_page: Number of releases fetched (newest first)
    """

    log_component = "github_api"

    def __init__(
        self,
        api_url: str = DEFAULT_GITHUB_API_URL,
        token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: float = 30.0,
        per_page: int = DEFAULT_PER_PAGE,
    ):
        self.api_url = api_url.rstrip("/")
        self._token = token
        self._session = session
        self._owns_session = session is None
        self.timeout_seconds = timeout_seconds
        self.per_page = per_page
        super().__init__()

    async def __aenter__(self) -> "GitHubReleasesClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Create aiohttp session if not exists."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET an API endpoint and return the decoded JSON body.

        Raises:
            GitHubApiError: On non-200 status, transport failure or bad JSON
        """
        session = await self._ensure_session()
        url = f"{self.api_url}/{endpoint.lstrip('/')}"

        try:
            async with session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                if response.status != 200:
                    self._log(
                        logging.WARNING,
                        "GitHub API request failed",
                        api_endpoint=endpoint,
                        http_status=response.status,
                    )
                    raise GitHubApiError(
                        f"GitHub API returned HTTP {response.status}: {url}",
                        status_code=response.status,
                    )
                return await response.json(content_type=None)
        except GitHubApiError:
            raise
        except asyncio.TimeoutError as e:
            raise GitHubApiError(
                f"GitHub API request timed out after {self.timeout_seconds}s: {url}",
                cause=e,
            ) from e
        except aiohttp.ClientError as e:
            raise GitHubApiError(f"GitHub API request failed: {url}", cause=e) from e
        except ValueError as e:
            raise GitHubApiError(f"Invalid JSON from GitHub API: {url}", cause=e) from e

    async def list_releases(
        self,
        owner: str = RUNNER_OWNER,
        repo: str = RUNNER_REPO,
    ) -> List[GitHubRelease]:
        """
        List releases of a repository in the order returned by GitHub.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            Releases, newest first as ordered by the API

        Raises:
            GitHubApiError: On transport failure or unexpected payload
        """
        endpoint = f"repos/{owner}/{repo}/releases"
        payload = await self._get_json(endpoint, params={"per_page": self.per_page})

        if not isinstance(payload, list):
            raise GitHubApiError(f"Unexpected releases payload from {endpoint}")

        try:
            releases = [GitHubRelease.model_validate(item) for item in payload]
        except ValidationError as e:
            raise GitHubApiError(f"Malformed release in {endpoint}", cause=e) from e

        self._log(
            logging.DEBUG,
            "Listed releases",
            api_endpoint=endpoint,
            release_count=len(releases),
        )
        return releases
