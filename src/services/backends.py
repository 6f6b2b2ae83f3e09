"""
Blob storage backends for episode memory.

Every backend is key-addressed and supports conditional writes:
`get` returns the content plus an opaque version token (None when the key
does not exist), `put` takes the version last seen and fails with
VersionConflictError when it is stale.
"""
import base64
import logging
import os
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from services.database import Database
from services.errors import MemoryStoreError, VersionConflictError

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"


@dataclass(frozen=True)
class Blob:
    content: str
    version: str


class BlobBackend(Protocol):
    async def get(self, key: str) -> Optional[Blob]:
        ...

    async def put(self, key: str, content: str, version: Optional[str], message: str = "") -> None:
        ...


class GitHubContentsBackend:
    """
    Files on a branch of a GitHub repository, via the contents API.
    The file's blob sha is the version token.
    """

    def __init__(
        self,
        repository: str,
        token: Optional[str],
        branch: str = "gh-pages",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.repository = repository
        self.branch = branch
        self.timeout = timeout
        self._client = client
        self._headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def _url(self, key: str) -> str:
        return f"{GITHUB_API}/repos/{self.repository}/contents/{key}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.request(
                    method, url, headers=self._headers, timeout=self.timeout, **kwargs
                )
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            raise MemoryStoreError(f"GitHub request failed: {type(e).__name__}: {e}") from e

    async def get(self, key: str) -> Optional[Blob]:
        response = await self._request("GET", self._url(key), params={"ref": self.branch})
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise MemoryStoreError(f"GitHub read of {key} failed with HTTP {response.status_code}")

        data = response.json()
        content = base64.b64decode(data.get("content", "")).decode("utf-8")
        return Blob(content=content, version=data["sha"])

    async def put(self, key: str, content: str, version: Optional[str], message: str = "") -> None:
        body = {
            "message": message or f"Update {key}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if version:
            body["sha"] = version

        response = await self._request("PUT", self._url(key), json=body)
        # 409: sha does not match; 422: sha missing for an existing file
        if response.status_code in (409, 422):
            raise VersionConflictError(key, version)
        if response.status_code not in (200, 201):
            raise MemoryStoreError(f"GitHub write of {key} failed with HTTP {response.status_code}")
        logger.info(f"Committed {key} to {self.repository}@{self.branch}")


class SqliteBlobBackend:
    """Local SQLite storage, for development and for runs without GitHub."""

    def __init__(self, path: str):
        self.db = Database(path)
        self._initialized = False

    async def _ensure_tables(self) -> None:
        if self._initialized:
            return
        directory = os.path.dirname(self.db.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        await self.db.init_tables()
        self._initialized = True

    async def get(self, key: str) -> Optional[Blob]:
        await self._ensure_tables()
        row = await self.db.get_blob(key)
        if row is None:
            return None
        content, version = row
        return Blob(content=content, version=str(version))

    async def put(self, key: str, content: str, version: Optional[str], message: str = "") -> None:
        await self._ensure_tables()
        if version is None:
            written = await self.db.insert_blob(key, content)
        else:
            written = await self.db.update_blob(key, content, int(version))
        if not written:
            raise VersionConflictError(key, version)
        logger.debug(f"Stored {key} in {self.db.path}")
