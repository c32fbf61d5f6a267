"""Shared HTTP client factory.

The HTTP tier reuses one httpx.AsyncClient for a whole batch so that
connections are pooled across concurrent scans. The client never retries:
a failed request falls through to the browser tier instead.
"""

import logging

import httpx

from kwscan.config import HttpTierConfig, KwscanConfig

logger = logging.getLogger(__name__)


def browser_headers(config: HttpTierConfig) -> dict[str, str]:
    """Header set of a desktop browser navigation request."""
    return {
        "User-Agent": config.user_agent,
        "Accept": config.accept,
        "Accept-Language": config.accept_language,
        "Accept-Encoding": "gzip, deflate, br",
        "Cache-Control": "no-cache",
    }


def create_http_client(
    config: KwscanConfig,
    *,
    max_connections: int = 100,
    max_keepalive_connections: int = 20,
    keepalive_expiry: float = 30.0,
) -> httpx.AsyncClient:
    """Create the httpx client used by the HTTP tier.

    Args:
        config: kwscan configuration
        max_connections: Maximum total connections (default: 100)
        max_keepalive_connections: Maximum keepalive connections (default: 20)
        keepalive_expiry: Keepalive expiry in seconds (default: 30.0)

    Returns:
        Configured httpx AsyncClient
    """
    http_config = config.http

    transport = httpx.AsyncHTTPTransport(
        http2=http_config.http2,
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
            keepalive_expiry=keepalive_expiry,
        ),
        retries=0,
    )

    logger.debug(
        f"Creating HTTP client (timeout={http_config.timeout_seconds}s, "
        f"max_redirects={http_config.max_redirects})"
    )

    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(
            http_config.timeout_seconds, connect=http_config.connect_timeout_seconds
        ),
        follow_redirects=True,
        max_redirects=http_config.max_redirects,
        headers=browser_headers(http_config),
    )
