"""
Pydantic schemas for the persisted episode memory.
Field names serialize in camelCase so existing memory files stay readable.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


MAX_EPISODES = 14
MAX_KEY_TOPICS = 8


class EpisodeRecord(BaseModel):
    """
    One persisted memory entry. `date` (YYYY-MM-DD) is unique within the store.
    """
    model_config = ConfigDict(populate_by_name=True)

    date: str
    summary: str = ""
    key_topics: List[str] = Field(default_factory=list, alias="keyTopics")
    articles: Optional[List[str]] = None


class EpisodeMemory(BaseModel):
    """
    Rolling episode history, newest first.
    """
    episodes: List[EpisodeRecord] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    @classmethod
    def from_json(cls, payload: str | bytes) -> "EpisodeMemory":
        return cls.model_validate_json(payload)
