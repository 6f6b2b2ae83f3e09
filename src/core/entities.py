from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from services.errors import ConfigurationError

if TYPE_CHECKING:
    from ingestion.base import ContentItem


class Category(str, Enum):
    """
    Content categories. Every member is a bucket key in a ContentBundle.
    """
    AI_NEWS = "ai_news"
    NEWSLETTERS = "newsletters"
    NEWS = "news"
    SPORTS = "sports"
    REAL_ESTATE = "real_estate"
    INTERNATIONAL = "international"
    SURF = "surf"
    OLYMPICS = "olympics"
    WORLDCUP = "worldcup"
    ARTICLES = "articles"

    @classmethod
    def parse(cls, value: "str | Category") -> "Category":
        if isinstance(value, Category):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(f"Unknown category: {value}") from None


@dataclass(frozen=True)
class UsageRecord:
    """
    Token (or unit) usage for one provider call.
    Zero counts are valid; the zero record is the identity for addition.
    """
    provider: str
    prompt_units: int = 0
    completion_units: int = 0

    def __add__(self, other: UsageRecord) -> UsageRecord:
        return UsageRecord(
            provider=self.provider,
            prompt_units=self.prompt_units + other.prompt_units,
            completion_units=self.completion_units + other.completion_units,
        )

    @property
    def total_units(self) -> int:
        return self.prompt_units + self.completion_units

    @classmethod
    def zero(cls, provider: str) -> UsageRecord:
        return cls(provider=provider)


def merge_usage(
    records: Iterable[Optional[UsageRecord]],
    into: Optional[Dict[str, UsageRecord]] = None,
) -> Dict[str, UsageRecord]:
    """Sum usage records per provider. None entries are skipped."""
    totals: Dict[str, UsageRecord] = dict(into or {})
    for record in records:
        if record is None:
            continue
        current = totals.get(record.provider, UsageRecord.zero(record.provider))
        totals[record.provider] = current + record
    return totals


@dataclass
class ContentBundle:
    """
    Per-run aggregation result. Every category bucket exists, possibly empty.
    """
    buckets: Dict[Category, List[ContentItem]] = field(
        default_factory=lambda: {category: [] for category in Category}
    )
    usage: Dict[str, UsageRecord] = field(default_factory=dict)

    def __getitem__(self, category: "str | Category") -> List[ContentItem]:
        return self.buckets[Category.parse(category)]

    def __contains__(self, category: object) -> bool:
        try:
            return Category.parse(category) in self.buckets  # type: ignore[arg-type]
        except ValueError:
            return False

    def extend(self, category: Category, items: Iterable[ContentItem]) -> None:
        self.buckets[category].extend(items)

    def replace(self, category: Category, items: Iterable[ContentItem]) -> None:
        self.buckets[category] = list(items)

    def add_usage(self, records: Iterable[Optional[UsageRecord]]) -> None:
        self.usage = merge_usage(records, into=self.usage)

    @property
    def total_items(self) -> int:
        return sum(len(items) for items in self.buckets.values())

    def to_dict(self) -> Dict[str, object]:
        return {
            "buckets": {
                category.value: [item.model_dump() for item in items]
                for category, items in self.buckets.items()
            },
            "usage": {
                provider: {
                    "prompt_units": record.prompt_units,
                    "completion_units": record.completion_units,
                }
                for provider, record in self.usage.items()
            },
        }
