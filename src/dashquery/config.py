"""
Configuration management for the extractor.

Settings come from ``DASHQUERY_*`` environment variables and are overridden
by command-line values. A single ExtractorConfig is built at startup and
handed to each component's constructor.
"""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings

from .util.errors import ConfigurationError
from .util.log import get_logger

logger = get_logger(__name__)

MAX_WORKERS = 50
DEFAULT_WORKERS = 5
DEFAULT_DEST_DIR = Path("dashboards")
DEFAULT_USER_AGENT = "cell getter 3000"


class ExtractorConfig(BaseSettings):
    """Extraction run configuration."""

    # Upstream access
    upstream: Optional[str] = Field(default=None, description="Upstream base URL")
    cookie: Optional[str] = Field(default=None, description="Auth cookie header value")
    user_agent: str = DEFAULT_USER_AGENT

    # Work shaping
    limit: int = Field(default=-1, description="Max dashboards to process; <= 0 is unlimited")
    workers: int = DEFAULT_WORKERS
    dest_dir: Path = DEFAULT_DEST_DIR

    # Transport
    request_timeout: Optional[float] = None
    max_inflight_requests: Optional[int] = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["text", "json"] = "text"

    @field_validator("upstream")
    @classmethod
    def strip_upstream(cls, v):
        """Drop trailing slashes so endpoint paths join cleanly."""
        if v is None:
            return v
        return v.strip().rstrip("/") or None

    @field_validator("cookie")
    @classmethod
    def blank_cookie_is_unset(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v):
        """Validate worker count is within the pool bound."""
        if v <= 0:
            raise ValueError("workers must be positive")
        if v > MAX_WORKERS:
            raise ValueError(f"workers should not exceed {MAX_WORKERS}")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @field_validator("max_inflight_requests")
    @classmethod
    def validate_inflight(cls, v):
        if v is not None and v <= 0:
            raise ValueError("max_inflight_requests must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def require_upstream_access(self):
        if not self.upstream:
            raise ValueError("upstream must be set")
        if not self.cookie:
            raise ValueError("cookie must be set")
        return self

    @property
    def effective_limit(self) -> Optional[int]:
        """Dashboard limit, or None when every dashboard is processed."""
        return self.limit if self.limit > 0 else None

    @property
    def dashboards_url(self) -> str:
        return f"{self.upstream}/api/v2/dashboards"

    def cell_url(self, view_link: str) -> str:
        return f"{self.upstream}{view_link}"

    model_config = {"env_prefix": "DASHQUERY_"}


def _config_key(error: dict) -> str:
    """Name the setting a pydantic error refers to."""
    loc = error.get("loc") or ()
    if loc:
        return str(loc[0])
    message = error.get("msg", "")
    for key in ("upstream", "cookie"):
        if key in message:
            return key
    return "config"


def load_config(**overrides: Any) -> ExtractorConfig:
    """Build the run configuration.

    Explicit overrides win over environment variables; ``None`` overrides are
    treated as not given.

    Raises:
        ConfigurationError: if any setting is missing or invalid
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        config = ExtractorConfig(**values)
    except ValidationError as e:
        first = e.errors()[0]
        message = str(first.get("msg", "invalid configuration"))
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")
        raise ConfigurationError(_config_key(first), message, cause=e) from e

    logger.debug(
        "Configuration loaded: upstream=%s workers=%d limit=%d dest_dir=%s",
        config.upstream, config.workers, config.limit, config.dest_dir,
    )
    return config
