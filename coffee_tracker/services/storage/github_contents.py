"""
Hosted Content API Client

Low-level access to a single file in a hosted repository through the
GitHub "contents" API. The file's blob SHA is the revision token:
a write must carry the SHA it is replacing, and GitHub rejects the
write if the file has moved on since.

Reads are retried on transport failures. Writes are never retried,
since a retried write after an ambiguous failure can only conflict.
"""

import base64
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import quote

import requests
import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from coffee_tracker.exceptions import (
    BackendConnectionError,
    ConflictError,
    StorageError,
)


GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

logger = structlog.get_logger(__name__)


class RemoteStoreConfig(BaseModel):
    """
    Everything needed to address the remote expense file.

    Passed explicitly to the client and store constructors; nothing
    here is read from the environment.
    """
    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1, description="Repository owner")
    repo: str = Field(..., min_length=1, description="Repository name")
    path: str = Field(
        default="data/coffee-expenses.json",
        min_length=1,
        description="Path of the JSON file inside the repository"
    )
    credential: SecretStr = Field(..., description="API token")
    branch: Optional[str] = Field(
        default=None,
        description="Branch to read and commit to (repository default if unset)"
    )
    api_url: str = Field(default=GITHUB_API_URL)


class RemoteContent(BaseModel):
    """A file's decoded text and the revision it was read at."""
    content: str
    revision: str


class HostedContentClient(ABC):
    """
    Abstract file-content API.

    Implementations: GitHubContentClient; in-memory fakes for tests.
    """

    @abstractmethod
    def get_content(self, path: str) -> Optional[RemoteContent]:
        """
        Fetch a file.

        Returns:
            The content, or None if the file does not exist
        """
        pass

    @abstractmethod
    def put_content(
        self,
        path: str,
        content: str,
        revision: Optional[str],
        message: str,
    ) -> str:
        """
        Create or replace a file.

        Args:
            revision: Revision being replaced; None to create the file

        Returns:
            The new revision

        Raises:
            ConflictError: If revision is not the file's current revision
        """
        pass


class GitHubContentClient(HostedContentClient):
    """GitHub contents API over requests."""

    def __init__(
        self,
        config: RemoteStoreConfig,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self._config = config
        self._session = session or requests.Session()
        self._timeout = timeout

    def _url(self, path: str) -> str:
        return (
            f"{self._config.api_url.rstrip('/')}/repos/"
            f"{self._config.owner}/{self._config.repo}/contents/{quote(path.lstrip('/'))}"
        )

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        return {
            "Accept": accept,
            "Authorization": f"Bearer {self._config.credential.get_secret_value()}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            response = self._session.request(
                method,
                self._url(path),
                timeout=self._timeout,
                **kwargs,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise BackendConnectionError(f"Cannot reach {self._config.api_url}: {e}") from e
        except requests.RequestException as e:
            raise StorageError(f"Request to {self._config.api_url} failed: {e}") from e

        if response.status_code >= 500:
            raise BackendConnectionError(
                f"GitHub returned {response.status_code} for {path}: {_error_message(response)}"
            )
        return response

    @retry(
        retry=retry_if_exception_type(BackendConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def get_content(self, path: str) -> Optional[RemoteContent]:
        """Fetch and base64-decode a file."""
        params = {"ref": self._config.branch} if self._config.branch else None
        response = self._request("GET", path, headers=self._headers(), params=params)

        if response.status_code == 404:
            return None
        _raise_for_status(response, path)

        data = response.json()
        if isinstance(data, list):
            # The path is a directory
            logger.warning("remote_path_is_directory", path=path)
            return None

        sha = data["sha"]
        if data.get("encoding") == "base64":
            content = base64.b64decode(data.get("content") or "").decode("utf-8")
        else:
            # Files over 1 MB come back without inline content
            raw = self._request(
                "GET",
                path,
                headers=self._headers("application/vnd.github.raw+json"),
                params=params,
            )
            _raise_for_status(raw, path)
            content = raw.content.decode("utf-8")

        return RemoteContent(content=content, revision=sha)

    def put_content(
        self,
        path: str,
        content: str,
        revision: Optional[str],
        message: str,
    ) -> str:
        """Commit new content for a file."""
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if revision:
            body["sha"] = revision
        if self._config.branch:
            body["branch"] = self._config.branch

        response = self._request("PUT", path, headers=self._headers(), json=body)

        # 409: sha does not match; 422: sha missing for an existing file
        if response.status_code in (409, 422):
            raise ConflictError(
                f"Remote file {path} changed since it was read: {_error_message(response)}",
                expected=revision,
            )
        _raise_for_status(response, path)

        return response.json()["content"]["sha"]


def _error_message(response: requests.Response) -> str:
    """Pull a useful message out of an error response."""
    try:
        payload = response.json() or {}
        return str(payload.get("message") or response.text)[:500]
    except ValueError:
        return response.text[:500]


def _raise_for_status(response: requests.Response, path: str) -> None:
    if response.status_code in (401, 403):
        raise StorageError(
            f"GitHub rejected the credentials for {path} "
            f"({response.status_code}): {_error_message(response)}"
        )
    if response.status_code == 404:
        raise StorageError(f"Repository or branch not found for {path}")
    if response.status_code // 100 != 2:
        raise StorageError(
            f"GitHub returned {response.status_code} for {path}: {_error_message(response)}"
        )
