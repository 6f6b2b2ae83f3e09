"""
Loads and handles config from config.yml
GitHub credentials (GITHUB_TOKEN, GITHUB_REPOSITORY) are loaded from .env for security
"""
import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from core.entities import Category
from core.schemas import MAX_EPISODES
from services.errors import ConfigurationError

logger = logging.getLogger(__name__)


class FeedConfig(BaseModel):
    """A single RSS/Atom feed."""
    url: str
    name: Optional[str] = None
    focus: Optional[str] = None  # Free-text hint passed to summarization
    max_items: Optional[int] = None

    @property
    def label(self) -> str:
        return self.name or self.url


class SelectorConfig(BaseModel):
    """CSS selectors used to scrape a listing page."""
    container: str
    title: str
    summary: str = "p"
    date: str = "time, .date"
    link: Optional[str] = None


class SourceConfig(BaseModel):
    """Configuration for a single AI news source."""
    type: str  # rss, scrape, hackernews
    enabled: bool = True
    name: Optional[str] = None
    url: Optional[str] = None
    max_items: int = 5
    selectors: Optional[SelectorConfig] = None


class AINewsConfig(BaseModel):
    enabled: bool = False
    sources: List[SourceConfig] = []


class NewslettersConfig(BaseModel):
    enabled: bool = False
    feed_url: Optional[str] = None


class NewsConfig(BaseModel):
    enabled: bool = False
    feeds: List[FeedConfig] = []
    max_items_per_feed: int = 5


DEFAULT_REAL_ESTATE_FEEDS = [
    FeedConfig(url="https://www.zillow.com/research/feed/", name="Zillow Research"),
    FeedConfig(url="https://www.redfin.com/news/feed/", name="Redfin News"),
]


class RealEstateConfig(BaseModel):
    enabled: bool = False
    feeds: List[FeedConfig] = Field(default_factory=lambda: list(DEFAULT_REAL_ESTATE_FEEDS))
    max_items_per_feed: int = 3
    target_markets: List[str] = []
    price_range: Optional[str] = None


class TeamConfig(BaseModel):
    name: str
    league: str  # nba, mlb, nfl
    espn_news_id: Optional[str] = None
    rss_feed_url: Optional[str] = None


class LiveEventConfig(BaseModel):
    type: str  # olympics, worldcup
    enabled: bool = False
    only_during_event: bool = True
    feeds: List[FeedConfig] = []


class SportsConfig(BaseModel):
    enabled: bool = False
    teams: List[TeamConfig] = []
    include_team_news: bool = False
    team_feed_max_items: int = 3
    events: List[LiveEventConfig] = []

    def event(self, event_type: str) -> Optional[LiveEventConfig]:
        for event in self.events:
            if event.type.lower() == event_type:
                return event
        return None


DEFAULT_INTERNATIONAL_FEEDS = [
    FeedConfig(url="https://foreignpolicy.com/tag/iran/feed", name="Foreign Policy - Iran", max_items=3),
]


class InternationalConfig(BaseModel):
    enabled: bool = False
    feeds: List[FeedConfig] = Field(default_factory=lambda: list(DEFAULT_INTERNATIONAL_FEEDS))


class SurfConfig(BaseModel):
    enabled: bool = False
    spot_ids: List[str] = []
    location: str = ""


class ArticlesConfig(BaseModel):
    enabled: bool = False
    kill_the_newsletter_feed_url: Optional[str] = None
    feeds: List[FeedConfig] = []
    max_per_episode: int = 2
    lookback_days: int = 30


class ContentConfig(BaseModel):
    """Per-category content settings."""
    ai_news: AINewsConfig = AINewsConfig()
    newsletters: NewslettersConfig = NewslettersConfig()
    news: NewsConfig = NewsConfig()
    real_estate: RealEstateConfig = RealEstateConfig()
    sports: SportsConfig = SportsConfig()
    international: InternationalConfig = InternationalConfig()
    surf: SurfConfig = SurfConfig()
    articles: ArticlesConfig = ArticlesConfig()

    def enabled_categories(self) -> List[Category]:
        """
        Categories fetched by the aggregator. Articles are collected separately,
        after episode memory has been read.
        """
        enabled: List[Category] = []
        if self.ai_news.enabled:
            enabled.append(Category.AI_NEWS)
        if self.newsletters.enabled:
            enabled.append(Category.NEWSLETTERS)
        if self.news.enabled:
            enabled.append(Category.NEWS)
        if self.sports.enabled:
            enabled.append(Category.SPORTS)
        if self.real_estate.enabled:
            enabled.append(Category.REAL_ESTATE)
        if self.international.enabled:
            enabled.append(Category.INTERNATIONAL)
        if self.surf.enabled:
            enabled.append(Category.SURF)
        for event in self.sports.events:
            if event.enabled:
                enabled.append(Category.parse(event.type))
        return enabled


class LLMConfig(BaseModel):
    base_url: str = "http://localhost:11434"
    model: str = "llama3.1:8b"
    temperature: float = 0.1
    timeout: float = 120.0
    max_retries: int = 3
    enabled: bool = True


class MemoryConfig(BaseModel):
    backend: str = "github"  # github, sqlite
    path: str = "episode-memory.json"
    branch: str = "gh-pages"
    github_repository: Optional[str] = None
    github_token: Optional[str] = None
    sqlite_path: str = "data/memory.db"
    max_episodes: int = MAX_EPISODES
    continuity_days: int = 7


class RateConfig(BaseModel):
    """Cost per million units."""
    prompt: float = 0.0
    completion: float = 0.0


class Config(BaseModel):
    podcast_id: str = "briefing"
    timezone: str = "America/Los_Angeles"
    output_dir: str = "output"
    cost_log_path: str = "/tmp/briefing-costs.jsonl"

    llm: LLMConfig = Field(default_factory=LLMConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    rates: Dict[str, RateConfig] = {}


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    raise FileNotFoundError("Cannot find resources/config.yml")


def parse_config(data: Dict[str, Any]) -> Config:
    """Build a Config from already-loaded YAML data plus environment secrets."""
    try:
        config = Config.model_validate(data or {})
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    memory = config.memory
    memory.github_token = os.getenv("GITHUB_TOKEN", memory.github_token)
    memory.github_repository = os.getenv("GITHUB_REPOSITORY", memory.github_repository)

    config.llm.base_url = os.getenv("OLLAMA_BASE_URL", config.llm.base_url)
    config.llm.model = os.getenv("OLLAMA_MODEL", config.llm.model)

    return config


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and credentials from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config_path = path or _get_config_path()

    with open(config_path, 'r') as file:
        data = yaml.safe_load(file)

    config = parse_config(data)
    logger.info(f"Loaded configuration '{config.podcast_id}' from {config_path}")
    return config
