import time
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from langchain_ollama import ChatOllama
from langchain_core.messages import HumanMessage
import httpx

from core.entities import UsageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMResponse:
    content: str
    usage: Optional[UsageRecord]
    latency_ms: int


def usage_from_message(message: Any, provider: str) -> Optional[UsageRecord]:
    """
    Read token counts from a LangChain AIMessage's usage_metadata.
    Returns None when the provider reported nothing.
    """
    metadata = getattr(message, "usage_metadata", None)
    if not metadata:
        return None
    return UsageRecord(
        provider=provider,
        prompt_units=int(metadata.get("input_tokens") or 0),
        completion_units=int(metadata.get("output_tokens") or 0),
    )


# Failures worth another attempt; anything else is a bad request or a model error
TRANSIENT_ERRORS = (asyncio.TimeoutError, ConnectionError, httpx.TransportError)


class LLMClient:
    """
    Ollama chat model behind LangChain. Every call reports the token usage the
    server returned so the run's usage ledger can price it.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.1,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 120.0,
        llm: Any = None,
    ):
        # ChatOllama talks to the native API, not the OpenAI-compatible /v1 one
        self.base_url = base_url.rstrip("/").removesuffix("/v1")
        self.model = model
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.timeout = timeout

        self.llm = llm or ChatOllama(
            base_url=self.base_url,
            model=model,
            temperature=temperature,
            num_ctx=8192,  # Team scoreboards and article bodies are long
        )

    @property
    def provider(self) -> str:
        """Provider tag used as the usage ledger key."""
        return f"ollama/{self.model}"

    async def _invoke_with_retry(self, messages: List[HumanMessage]) -> Any:
        for attempt in range(1, self.max_retries + 1):
            try:
                return await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
            except TRANSIENT_ERRORS as e:
                if attempt == self.max_retries:
                    raise
                reason = f"timed out after {self.timeout}s" if isinstance(e, asyncio.TimeoutError) else str(e)
                logger.warning(f"{self.provider} attempt {attempt}/{self.max_retries} failed: {reason}")
                # Linear backoff
                await asyncio.sleep(self.retry_delay * attempt)

    async def complete(self, prompt: str) -> LLMResponse:
        """
        Send a single prompt and return the text with its token usage.
        Raises on failure; callers decide how to degrade.
        """
        start = time.time()
        message = await self._invoke_with_retry([HumanMessage(content=prompt)])
        content = message.content if isinstance(message.content, str) else str(message.content)

        return LLMResponse(
            content=content,
            usage=usage_from_message(message, self.provider),
            latency_ms=int((time.time() - start) * 1000),
        )

    async def health_check(self, client: Optional[httpx.AsyncClient] = None) -> bool:
        """
        True when the server answers /api/tags and lists the configured model.
        """
        url = f"{self.base_url}/api/tags"
        try:
            if client is None:
                async with httpx.AsyncClient(timeout=5.0) as own_client:
                    resp = await own_client.get(url)
            else:
                resp = await client.get(url, timeout=5.0)
        except httpx.HTTPError as e:
            logger.error(f"Ollama health check error: {e} (url={url})")
            return False

        if resp.status_code != 200:
            logger.error(f"Ollama health check failed: {resp.status_code} {resp.text}")
            return False

        try:
            names = {entry.get("name", "") for entry in resp.json().get("models", [])}
        except ValueError:
            names = set()
        # Ollama reports untagged pulls as "<model>:latest"
        if self.model not in names and f"{self.model}:latest" not in names:
            logger.warning(f"Model {self.model} not listed by {self.base_url}; requests may fail")
        return True
