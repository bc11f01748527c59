"""Component fetcher port backed by the HTTP repository client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

import httpx

from ocmgraph.domain.errors import FetchError
from ocmgraph.domain.model import RawDescriptor

from .client import ComponentRepositoryAPIError, ComponentRepositoryClient
from .credentials import EnvCredentials

if TYPE_CHECKING:
    from typing import Any

    from ocmgraph.config.repository import RepositoryClientConfig
    from ocmgraph.domain.model import RepositoryRef

log = getLogger(__name__)


class DescriptorClient(Protocol):
    def fetch_descriptor(
        self,
        *,
        repository: RepositoryRef,
        name: str,
        version: str,
    ) -> tuple[dict[str, Any], str | None]: ...


class HttpComponentFetcher:
    """Fetch component versions, reporting every failure as a retryable ``FetchError``."""

    def __init__(self, client: DescriptorClient) -> None:
        self._client = client

    def __call__(
        self,
        *,
        repository: RepositoryRef,
        name: str,
        version: str,
    ) -> RawDescriptor:
        try:
            payload, schema_version = self._client.fetch_descriptor(
                repository=repository, name=name, version=version
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log.warning(
                "Repository %s answered %s for %s@%s", repository.url, status, name, version
            )
            raise FetchError(
                f"failed to get component version {name}@{version}: HTTP {status}",
                name=name,
                version=version,
            ) from exc
        except (httpx.HTTPError, ComponentRepositoryAPIError) as exc:
            log.warning("Fetching %s@%s from %s failed: %s", name, version, repository.url, exc)
            raise FetchError(
                f"failed to get component version {name}@{version}: {exc}",
                name=name,
                version=version,
            ) from exc

        log.debug("Fetched %s@%s (schema %s)", name, version, schema_version)
        return RawDescriptor(payload=payload, schema_version=schema_version)


def build_http_fetcher(config: RepositoryClientConfig) -> HttpComponentFetcher:
    client = ComponentRepositoryClient(
        config=config,
        credentials=EnvCredentials(config.secret_env_prefix),
    )
    return HttpComponentFetcher(client)
