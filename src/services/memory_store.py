"""
Rolling episode memory persisted through a blob backend with optimistic concurrency.
"""
import logging
from typing import Optional, Tuple

from pydantic import ValidationError

from core.schemas import MAX_EPISODES, EpisodeMemory, EpisodeRecord
from services.backends import BlobBackend
from services.errors import MemoryStoreError

logger = logging.getLogger(__name__)


def upsert_and_trim(
    memory: EpisodeMemory,
    record: EpisodeRecord,
    max_episodes: int = MAX_EPISODES,
) -> EpisodeMemory:
    """
    Replace any record for `record.date`, put `record` first, keep the newest
    `max_episodes`. Pure: `memory` is not modified.
    """
    remaining = [episode for episode in memory.episodes if episode.date != record.date]
    return EpisodeMemory(episodes=[record, *remaining][:max_episodes])


class MemoryStore:
    """
    Reads and writes EpisodeMemory under one key.

    The version token returned by `read` is opaque to callers and must be
    handed back to `write` unchanged (None on the very first write).
    """

    def __init__(self, backend: BlobBackend, key: str, commit_message: str = ""):
        self.backend = backend
        self.key = key
        self.commit_message = commit_message or f"Update {key}"

    async def read(self) -> Tuple[EpisodeMemory, Optional[str]]:
        """
        A missing key is the empty state, not an error.

        Raises:
            MemoryStoreError: On transport failures or unreadable content
        """
        try:
            blob = await self.backend.get(self.key)
        except MemoryStoreError:
            raise
        except Exception as e:
            raise MemoryStoreError(f"Failed to read {self.key}: {e}") from e

        if blob is None:
            logger.info(f"No episode memory at {self.key} yet, starting empty")
            return EpisodeMemory(), None

        try:
            memory = EpisodeMemory.from_json(blob.content)
        except ValidationError as e:
            raise MemoryStoreError(f"Episode memory at {self.key} is malformed: {e}") from e

        logger.info(f"Loaded {len(memory.episodes)} episode(s) from {self.key}")
        return memory, blob.version

    async def write(self, memory: EpisodeMemory, version: Optional[str]) -> None:
        """
        Raises:
            VersionConflictError: When `version` is stale
            MemoryStoreError: On any other backend failure
        """
        try:
            await self.backend.put(self.key, memory.to_json(), version, self.commit_message)
        except MemoryStoreError:
            raise
        except Exception as e:
            raise MemoryStoreError(f"Failed to write {self.key}: {e}") from e

        logger.info(f"Saved {len(memory.episodes)} episode(s) to {self.key}")
