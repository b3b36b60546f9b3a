"""
Loads and handles config from config.yml
Credentials (OPENROUTER_API_KEY, APIFY_API_TOKEN, ADMIN_DB_TOKEN, MCP_API_KEYS) are loaded from .env for security
"""
import os
from typing import Any, Dict, Optional, Set, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from services.errors import ConfigurationError


class Config(BaseModel):
    LOG_LEVEL: str = "INFO"

    # LLM
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_MODEL: str = "anthropic/claude-sonnet-4"
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 4000
    LLM_TIMEOUT: float = 120.0

    # Persistence
    DATABASE_BACKEND: str = "remote"
    DATABASE_URL: str = "https://api.decocms.com/deco-team/deco-news/mcp/tool/DATABASES_RUN_SQL"
    DATABASE_PATH: str = "data/content.db"

    # HTTP fetching
    FETCH_MAX_RETRIES: int = 3
    FETCH_RETRY_DELAY: float = 1.0

    # Pacing (milliseconds)
    BLOG_ITEM_DELAY_MS: int = 500
    LINKEDIN_ITEM_DELAY_MS: int = 300
    REDDIT_ITEM_DELAY_MS: int = 300
    SOURCE_DELAY_MS: int = 2000

    BLOG_MAX_AGE_DAYS: int = 7

    # LinkedIn
    LINKEDIN_MAX_POSTS: int = 5
    APIFY_ACTOR_ID: str = "harvestapi/linkedin-profile-posts"
    APIFY_POLL_INTERVAL: float = 2.0
    APIFY_MAX_POLL_ATTEMPTS: int = 60

    # Reddit
    REDDIT_LIMIT: int = 10
    REDDIT_SORT: str = "hot"

    # Scheduler / control endpoint
    CRON_SCHEDULE: str = "0 8 * * *"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8001

    # Secrets (from environment)
    OPENROUTER_API_KEY: Optional[str] = None
    APIFY_API_TOKEN: Optional[str] = None
    ADMIN_DB_TOKEN: Optional[str] = None
    MCP_API_KEYS: Optional[str] = None

    @property
    def api_keys(self) -> Set[str]:
        """Allowlist for the control endpoint. Empty set means auth is disabled."""
        if not self.MCP_API_KEYS:
            return set()
        return {key.strip() for key in self.MCP_API_KEYS.split(",") if key.strip()}

    @property
    def cron_time(self) -> Tuple[int, int]:
        """(hour, minute) taken from the first two CRON_SCHEDULE fields."""
        parts = self.CRON_SCHEDULE.split()
        minute = _int_or(parts[0] if parts else None, 0)
        hour = _int_or(parts[1] if len(parts) > 1 else None, 8)
        return hour, minute

    def require_openrouter_key(self) -> str:
        return _require(self.OPENROUTER_API_KEY, "OPENROUTER_API_KEY")

    def require_apify_token(self) -> str:
        return _require(self.APIFY_API_TOKEN, "APIFY_API_TOKEN")

    def require_db_token(self) -> str:
        return _require(self.ADMIN_DB_TOKEN, "ADMIN_DB_TOKEN")


def _require(value: Optional[str], name: str) -> str:
    if not value:
        raise ConfigurationError(f"{name} is not configured. Set the environment variable.")
    return value


def _int_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _get_config_path() -> Optional[str]:
    """Get the path to config.yml, handling different working directories."""
    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    return None


def load_config(path: Optional[str] = None) -> Config:
    """Load configuration from config.yml and credentials from .env."""
    # Load .env for sensitive credentials
    load_dotenv()

    config_path = path or _get_config_path()
    data: Dict[str, Any] = {}
    if config_path:
        with open(config_path, 'r') as file:
            data = yaml.safe_load(file) or {}

    known = {key: value for key, value in data.items() if key in Config.model_fields}

    return Config(
        **known,
        OPENROUTER_API_KEY=os.getenv("OPENROUTER_API_KEY"),
        APIFY_API_TOKEN=os.getenv("APIFY_API_TOKEN"),
        ADMIN_DB_TOKEN=os.getenv("ADMIN_DB_TOKEN"),
        MCP_API_KEYS=os.getenv("MCP_API_KEYS"),
    )
