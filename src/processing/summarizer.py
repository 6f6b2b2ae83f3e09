import logging
from dataclasses import dataclass
from typing import Optional

from core.entities import UsageRecord
from processing.extraction import ExtractionResult, decode_json_array
from services.llm import LLMClient

logger = logging.getLogger(__name__)

# Keeps scoreboard JSON and article bodies inside the model's context window
MAX_PAYLOAD_CHARS = 30000


@dataclass(frozen=True)
class SummaryResult:
    text: str = ""
    usage: Optional[UsageRecord] = None

    @property
    def ok(self) -> bool:
        return bool(self.text.strip())


class Summarizer:
    """
    Condenses raw source text with an LLM.
    Must NEVER raise: every failure degrades to an empty result.
    """

    def __init__(self, llm: Optional[LLMClient]):
        self.llm = llm

    @property
    def available(self) -> bool:
        return self.llm is not None

    @staticmethod
    def _build_prompt(raw_text: str, instruction: str) -> str:
        payload = raw_text[:MAX_PAYLOAD_CHARS]
        return f"{instruction.strip()}\n\n{payload}"

    async def summarize(self, raw_text: str, instruction: str) -> SummaryResult:
        """Return condensed text plus usage, or an empty result on any failure."""
        if self.llm is None or not raw_text.strip():
            return SummaryResult()

        try:
            response = await self.llm.complete(self._build_prompt(raw_text, instruction))
        except Exception as e:
            logger.warning(f"Summarization failed: {e}")
            return SummaryResult()

        return SummaryResult(text=response.content.strip(), usage=response.usage)

    async def extract(
        self,
        raw_text: str,
        instruction: str,
        limit: Optional[int] = None,
    ) -> ExtractionResult:
        """
        Ask the model for a JSON array and decode it.
        Usage is kept even when the answer cannot be decoded: the tokens were spent.
        """
        if self.llm is None or not raw_text.strip():
            return ExtractionResult.empty()

        try:
            response = await self.llm.complete(self._build_prompt(raw_text, instruction))
        except Exception as e:
            logger.warning(f"Structured extraction failed: {e}")
            return ExtractionResult.empty()

        items = decode_json_array(response.content)
        if items is None:
            logger.warning(f"Could not decode JSON array from model output ({len(response.content)} chars)")
            return ExtractionResult.empty(usage=response.usage)

        if limit is not None:
            items = items[:limit]
        return ExtractionResult.success(items, response.usage)
