"""Shared async HTTP helpers for registry oracles.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts, user-agent headers, and error handling so that HTTP behaviour is
consistent and testable.

Unlike a best-effort scanner, a resolver cannot continue on missing data:
a 404 becomes ``UnknownLibraryError`` and any other failure is logged and
raised as ``RegistryError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from semver_resolver.config import DEFAULT_TIMEOUT, USER_AGENT
from semver_resolver.exceptions import RegistryError, UnknownLibraryError

logger = logging.getLogger(__name__)


def create_client(*, timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the shared defaults."""
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        follow_redirects=True,
    )


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    library: str,
) -> dict[str, Any]:
    """Fetch a URL and parse the response as a JSON object.

    Args:
        client: Client to issue the request with.
        url: The URL to fetch.
        library: Library the document describes, used in error reporting.

    Returns:
        Parsed JSON object.

    Raises:
        UnknownLibraryError: On HTTP 404.
        RegistryError: On other HTTP errors, timeouts, or invalid JSON.
    """
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        data = resp.json()
    except httpx.TimeoutException as exc:
        logger.warning("Timeout fetching %s", url)
        raise RegistryError(f"Timeout fetching {url}") from exc
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise UnknownLibraryError(library) from exc
        logger.warning("HTTP %d from %s", exc.response.status_code, url)
        raise RegistryError(
            f"HTTP {exc.response.status_code} fetching {url}"
        ) from exc
    except (httpx.RequestError, ValueError) as exc:
        logger.warning("Request error for %s: %s", url, exc)
        raise RegistryError(f"Request error for {url}: {exc}") from exc
    if not isinstance(data, dict):
        raise RegistryError(f"Unexpected payload from {url}")
    return data
