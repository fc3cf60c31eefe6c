"""HTTP client routed through the local Tor SOCKS proxy."""

from __future__ import annotations

import logging

import httpx

from sdstatus.scanner import ScanSetupError

logger = logging.getLogger(__name__)

# Tor's default SOCKS port.  Hostnames are resolved by the proxy, which
# .onion addresses require.
DEFAULT_PROXY_URL = "socks5://127.0.0.1:9050"


def build_client(
    proxy_url: str = DEFAULT_PROXY_URL,
    timeout: float = 60.0,
) -> httpx.AsyncClient:
    """Return an :class:`httpx.AsyncClient` that sends everything via *proxy_url*.

    The client is safe to share between concurrent probes.  Close it with
    ``await client.aclose()`` (or use it as an async context manager).

    Raises:
        ScanSetupError: the proxy URL is invalid or SOCKS support
            (``httpx[socks]``) is not installed.
    """
    logger.debug("Building HTTP client via %s (timeout %gs)", proxy_url, timeout)
    try:
        return httpx.AsyncClient(proxy=proxy_url, timeout=timeout, follow_redirects=True)
    except ImportError as exc:
        raise ScanSetupError(
            f"SOCKS proxy support is missing; install httpx[socks]: {exc}"
        ) from exc
    except (ValueError, httpx.InvalidURL) as exc:
        raise ScanSetupError(f"Invalid proxy URL {proxy_url!r}: {exc}") from exc
