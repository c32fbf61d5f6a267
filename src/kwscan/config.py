"""Configuration system.

YAML configuration files validated by Pydantic models. Every field has a
default, so an empty config (or no config at all) gives a working scanner.
Entry point: load_config().
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from kwscan.exceptions import ConfigError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Hard upper bound on concurrent scans, whatever the caller asks for
CONCURRENCY_CEILING = 50


class HttpTierConfig(BaseModel):
    """Plain HTTP fetch tier configuration.

    Headers mimic a desktop browser so that trivial bot filters let the
    request through.
    """

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Total timeout for one GET request in seconds",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Connect timeout in seconds",
    )
    max_redirects: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Maximum redirects to follow per request",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="User-Agent header sent with every request",
    )
    accept: str = Field(
        default="text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8",
        description="Accept header",
    )
    accept_language: str = Field(
        default="en-US,en;q=0.9",
        description="Accept-Language header",
    )
    http2: bool = Field(
        default=False,
        description="Negotiate HTTP/2 (requires the h2 package)",
    )


class BrowserConfig(BaseModel):
    """Headless browser tier configuration using Playwright.

    Requires the Chromium build: playwright install chromium
    """

    headless: bool = Field(
        default=True,
        description="Run Chromium without a window",
    )
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=1000,
        le=120000,
        description="Maximum time for page navigation in milliseconds (1s-120s)",
    )
    settle_ms: int = Field(
        default=3000,
        ge=0,
        le=30000,
        description="Pause after DOM ready so client-side scripts can render",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="User agent for browser contexts",
    )
    viewport_width: int = Field(
        default=1920,
        ge=320,
        le=3840,
        description="Browser viewport width in pixels",
    )
    viewport_height: int = Field(
        default=1080,
        ge=240,
        le=2160,
        description="Browser viewport height in pixels",
    )
    ignore_https_errors: bool = Field(
        default=True,
        description="Accept invalid or self-signed TLS certificates",
    )
    blocked_resource_types: list[str] = Field(
        default_factory=lambda: ["image", "media", "font", "stylesheet"],
        description="Playwright resource types aborted before they are requested",
    )
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--disable-blink-features=AutomationControlled",
            "--disable-features=IsolateOrigins,site-per-process",
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--disable-http2",
        ],
        description="Extra Chromium command line flags",
    )


class BatchConfig(BaseModel):
    """Batch runner configuration."""

    default_concurrency: int = Field(
        default=20,
        ge=1,
        le=CONCURRENCY_CEILING,
        description="Concurrent scans when the caller does not ask for a value",
    )
    max_concurrency: int = Field(
        default=CONCURRENCY_CEILING,
        ge=1,
        le=CONCURRENCY_CEILING,
        description="Cap applied to any requested concurrency",
    )


class KwscanConfig(BaseModel):
    """Root configuration model for kwscan."""

    http: HttpTierConfig = Field(
        default_factory=HttpTierConfig,
        description="HTTP fetch tier",
    )
    browser: BrowserConfig = Field(
        default_factory=BrowserConfig,
        description="Headless browser fetch tier",
    )
    batch: BatchConfig = Field(
        default_factory=BatchConfig,
        description="Batch runner",
    )


def load_config(path: Path) -> KwscanConfig:
    """Load and validate YAML configuration file.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated KwscanConfig instance

    Raises:
        ConfigError: If config file is not found, invalid YAML, or validation fails
    """
    try:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ValueError(f"Configuration path is not a file: {path}")

        with path.open("r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            return KwscanConfig()

        if not isinstance(config_dict, dict):
            raise ValueError(
                f"Configuration file must contain a YAML object/dict, "
                f"got {type(config_dict).__name__}"
            )

        return KwscanConfig(**config_dict)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed for {path}:\n{e}") from e
    except ValueError as e:
        raise ConfigError(str(e)) from e
