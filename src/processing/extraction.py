"""
Best-effort decoding of JSON arrays out of free-text model responses.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from core.entities import UsageRecord

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r'^```(?:json)?\s*\n?(.*?)\n?```$', re.DOTALL | re.IGNORECASE)
_ARRAY_PATTERN = re.compile(r'\[.*\]', re.DOTALL)


def _extract_json(content: str) -> str:
    """
    Extract JSON from LLM response, stripping markdown code blocks if present.
    """
    content = content.strip()

    # Remove markdown code blocks (```json ... ``` or ``` ... ```)
    match = _FENCE_PATTERN.match(content)
    if match:
        return match.group(1).strip()

    # Try to find JSON array in the content
    array_match = _ARRAY_PATTERN.search(content)
    if array_match:
        return array_match.group(0)

    return content


def decode_json_array(content: Optional[str]) -> Optional[List[Any]]:
    """
    Decode a JSON array from model output.
    Returns None when no array can be recovered.
    """
    if not content or not content.strip():
        return None

    candidate = _extract_json(content)
    try:
        parsed = json.loads(candidate)
    except ValueError:
        # Fenced block with prose inside it: look for the array once more
        array_match = _ARRAY_PATTERN.search(candidate)
        if not array_match or array_match.group(0) == candidate:
            return None
        try:
            parsed = json.loads(array_match.group(0))
        except ValueError:
            return None

    return parsed if isinstance(parsed, list) else None


@dataclass(frozen=True)
class ExtractionResult:
    """
    Outcome of a structured extraction call.
    `decoded` is False for the empty variant (no model, call failed, or unparseable output).
    """
    items: List[Any] = field(default_factory=list)
    usage: Optional[UsageRecord] = None
    decoded: bool = False

    @classmethod
    def success(cls, items: List[Any], usage: Optional[UsageRecord]) -> "ExtractionResult":
        return cls(items=list(items), usage=usage, decoded=True)

    @classmethod
    def empty(cls, usage: Optional[UsageRecord] = None) -> "ExtractionResult":
        return cls(items=[], usage=usage, decoded=False)

    def __bool__(self) -> bool:
        return bool(self.items)
