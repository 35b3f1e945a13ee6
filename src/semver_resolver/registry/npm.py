"""npm registry oracle.

Reads package documents ("packuments") from an npm-compatible registry. One
document lists every published version of a package together with each
version's declared ``dependencies``, so the oracle fetches it once per
library and answers both lookups from it.

Usage::

    async with NpmRegistryOracle() as oracle:
        resolution = await resolve({"express": "^4.18.0"}, oracle)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from semver_resolver.config import DEFAULT_REGISTRY_URL, DEFAULT_TIMEOUT
from semver_resolver.exceptions import UnknownVersionError
from semver_resolver.registry.base import VersionOracle
from semver_resolver.registry.http_client import create_client, fetch_json

logger = logging.getLogger(__name__)


def package_url(registry_url: str, library: str) -> str:
    """Return the packument URL of *library*; scoped names keep their ``@``."""
    return f"{registry_url.rstrip('/')}/{quote(library, safe='@')}"


class NpmRegistryOracle(VersionOracle):
    """Oracle backed by an npm registry.

    Args:
        registry_url: Base URL of the registry.
        client: Optional pre-configured ``httpx.AsyncClient``. When omitted
            the oracle creates one on first use and closes it in ``aclose``.
        timeout: Request timeout in seconds for an oracle-created client.
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.registry_url = registry_url
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._documents: dict[str, dict[str, Any]] = {}

    async def __aenter__(self) -> NpmRegistryOracle:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this oracle created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_client(timeout=self._timeout)
        return self._client

    async def _document(self, library: str) -> dict[str, Any]:
        document = self._documents.get(library)
        if document is None:
            url = package_url(self.registry_url, library)
            logger.debug("Fetching %s", url)
            document = await fetch_json(self._get_client(), url, library=library)
            self._documents[library] = document
        return document

    async def get_versions(self, library: str) -> list[str]:
        document = await self._document(library)
        return list(document.get("versions") or {})

    async def get_dependencies(self, library: str, version: str) -> dict[str, str]:
        document = await self._document(library)
        manifest = (document.get("versions") or {}).get(version)
        if manifest is None:
            raise UnknownVersionError(library, version)
        return dict(manifest.get("dependencies") or {})
