# tests/conftest.py
from typing import Callable, Dict, List, Optional, Union

from core.entities import UsageRecord
from services.backends import Blob
from services.errors import MemoryStoreError, VersionConflictError
from services.llm import LLMResponse

Reply = Union[str, Exception, Callable[[str], str]]


class FakeLLM:
    """
    Stands in for LLMClient. Replies are consumed in order; the last one repeats.
    A reply may be text, an exception to raise, or a function of the prompt.
    """

    provider = "fake/model"

    def __init__(self, *replies: Reply, prompt_units: int = 10, completion_units: int = 5):
        self.replies: List[Reply] = list(replies) or ["ok"]
        self.prompts: List[str] = []
        self.prompt_units = prompt_units
        self.completion_units = completion_units

    async def complete(self, prompt: str) -> LLMResponse:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        text = reply(prompt) if callable(reply) else reply
        return LLMResponse(
            content=text,
            usage=UsageRecord(self.provider, self.prompt_units, self.completion_units),
            latency_ms=1,
        )


class FakeBackend:
    """In-memory blob backend with integer versions and conditional writes."""

    def __init__(self, fail_reads: bool = False):
        self.blobs: Dict[str, Blob] = {}
        self.puts: List[Dict[str, Optional[str]]] = []
        self.fail_reads = fail_reads
        self._version = 100

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def seed(self, key: str, content: str) -> str:
        """Simulate another writer committing `content`."""
        version = self._next_version()
        self.blobs[key] = Blob(content=content, version=version)
        return version

    async def get(self, key: str) -> Optional[Blob]:
        if self.fail_reads:
            raise MemoryStoreError("backend unreachable")
        return self.blobs.get(key)

    async def put(self, key: str, content: str, version: Optional[str], message: str = "") -> None:
        self.puts.append({"key": key, "content": content, "version": version, "message": message})
        current = self.blobs.get(key)
        if (current is None and version is not None) or (current is not None and current.version != version):
            raise VersionConflictError(key, version)
        self.blobs[key] = Blob(content=content, version=self._next_version())

