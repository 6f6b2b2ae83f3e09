"""
Exception types shared across the briefing pipeline.
"""


class BriefingError(Exception):
    """Base class for errors raised by the briefing core."""


class ConfigurationError(BriefingError, ValueError):
    """
    Unknown category, league or source type, or missing wiring.
    Indicates a deployment defect: never retried, never swallowed.
    """


class MemoryStoreError(BriefingError):
    """Episode memory could not be read from or written to the backend."""


class VersionConflictError(MemoryStoreError):
    """The backend rejected a write because the version token was stale."""

    def __init__(self, key: str, expected_version: str | None):
        self.key = key
        self.expected_version = expected_version
        super().__init__(
            f"Version conflict writing {key} (expected version: {expected_version or 'none'})"
        )
