"""HTTP client for component repositories."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from ocmgraph.adapters.http_resilience import ResilientClient

from .schema import detect_schema_version

if TYPE_CHECKING:
    from collections.abc import Callable

    from ocmgraph.config.http_resilience import ResilienceConfig
    from ocmgraph.config.repository import RepositoryClientConfig
    from ocmgraph.domain.model import RepositoryRef, SecretRef

log = getLogger(__name__)

DESCRIPTOR_PATH = "component-descriptors"


class ComponentRepositoryAPIError(RuntimeError):
    """Raised when the component repository returns an unexpected response."""


class MissingCredentialsError(ComponentRepositoryAPIError):
    """Raised when a repository names a secret that cannot be resolved."""


class ComponentRepositoryClient:
    """Low-level HTTP client reading descriptors from a component repository.

    Descriptors live at ``<url>/component-descriptors/<component name>/<version>``
    and are served as JSON.
    """

    def __init__(
        self,
        *,
        config: RepositoryClientConfig,
        credentials: Callable[[SecretRef], str | None] | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._credentials = credentials
        self._client_factory = client_factory or ResilientClient

    def fetch_descriptor(
        self,
        *,
        repository: RepositoryRef,
        name: str,
        version: str,
    ) -> tuple[dict[str, Any], str | None]:
        """Return the descriptor payload and the schema version it declares."""

        return asyncio.run(
            self._fetch_descriptor_async(repository=repository, name=name, version=version)
        )

    def descriptor_url(self, repository: RepositoryRef, name: str, version: str) -> str:
        base = repository.url.rstrip("/")
        return f"{base}/{DESCRIPTOR_PATH}/{quote(name, safe='/')}/{quote(version, safe='')}"

    async def _fetch_descriptor_async(
        self,
        *,
        repository: RepositoryRef,
        name: str,
        version: str,
    ) -> tuple[dict[str, Any], str | None]:
        headers = self._auth_headers(repository)
        url = self.descriptor_url(repository, name, version)
        log.debug("GET %s", url)

        async with self._client_factory(self._resilience) as client:
            response = await client.get(url, headers=headers)
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise ComponentRepositoryAPIError(
                f"component repository returned invalid JSON for {name}@{version}"
            ) from exc
        if not isinstance(payload, dict):
            raise ComponentRepositoryAPIError(
                f"component repository returned a non-object descriptor for {name}@{version}"
            )

        schema_version = response.headers.get("X-Descriptor-Schema-Version")
        return payload, schema_version or detect_schema_version(payload)

    def _auth_headers(self, repository: RepositoryRef) -> dict[str, str] | None:
        if repository.secret_ref is None:
            return None
        token = self._credentials(repository.secret_ref) if self._credentials else None
        if token is None:
            raise MissingCredentialsError(
                f"no credentials found for secret {repository.secret_ref.name!r}"
            )
        return {"Authorization": f"Bearer {token}"}
