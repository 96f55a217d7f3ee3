"""YAML configuration loader for the crawler."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path

from dotenv import load_dotenv

from common.config import find_config_path, load_yaml
from crawl_engine.helpers import parse_seeds
from extractors import EXTRACTORS
from frontier.schema import validate_crawl_name

# Load .env file if it exists
load_dotenv()

# Config directory at the repository root
CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs"

DEFAULT_USER_AGENT = "news-crawler/1.0 (+https://www.detik.com)"


@dataclass
class CrawlConfig:
    name: str = "detik"
    data_dir: str = "data"
    extractor: str = "detik"
    max_in_progress: int = 20
    request_delay: float = 0.05  # seconds between fetches, process-wide
    dispatch_interval: float = 1.0  # seconds between dispatch ticks
    channel_size: int = 10
    fetch_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    stop_when_idle: bool = False
    seeds: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        validate_crawl_name(self.name)

        if self.extractor not in EXTRACTORS:
            raise ValueError(
                f"Invalid extractor: {self.extractor}. "
                f"Must be one of {list(EXTRACTORS.keys())}"
            )

        for attr in ("max_in_progress", "channel_size"):
            value = getattr(self, attr)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{attr} must be a positive integer, got {value!r}")

        if self.request_delay < 0:
            raise ValueError(f"request_delay must not be negative, got {self.request_delay}")
        if self.dispatch_interval <= 0:
            raise ValueError(f"dispatch_interval must be positive, got {self.dispatch_interval}")
        if self.fetch_timeout <= 0:
            raise ValueError(f"fetch_timeout must be positive, got {self.fetch_timeout}")

        self.seeds = parse_seeds(self.seeds)

    @property
    def db_path(self) -> Path:
        """SQLite file holding this crawl's frontier and results."""
        return Path(self.data_dir) / f"{self.name}.db"


def parse_config(data: dict) -> CrawlConfig:
    """Parse config dictionary into CrawlConfig, rejecting unknown keys."""
    known = {f.name for f in fields(CrawlConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    return CrawlConfig(**data)


def load_config(name: str | None = None) -> CrawlConfig:
    """Load crawl config by name (e.g., 'test' or 'prod') or path.

    If name is None, uses the CONFIG_ENV env var or "prod".
    """
    config_path = find_config_path(name, CONFIG_DIR, default_name="prod", env_var="CONFIG_ENV")
    return parse_config(load_yaml(config_path))
