from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from ocmgraph.adapters.http_resilience import ResilientClient
from ocmgraph.adapters.ocm import (
    ComponentRepositoryClient,
    EnvCredentials,
    HttpComponentFetcher,
)
from ocmgraph.config.http_resilience import ResilienceConfig, RetryPolicy
from ocmgraph.config.repository import RepositoryClientConfig
from ocmgraph.domain.errors import FetchError
from ocmgraph.domain.model import RepositoryRef, SecretRef
from tests.support.graph import v2_descriptor

if TYPE_CHECKING:
    from collections.abc import Callable


def _fetcher(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    credentials: Callable[[SecretRef], str | None] | None = None,
) -> HttpComponentFetcher:
    config = RepositoryClientConfig(resilience=ResilienceConfig(retry=RetryPolicy(total=0)))

    def client_factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    client = ComponentRepositoryClient(
        config=config, credentials=credentials, client_factory=client_factory
    )
    return HttpComponentFetcher(client)


def test_fetch_requests_descriptor_path() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=v2_descriptor("acme.org/app", "1.0.0"))

    fetcher = _fetcher(handler)
    raw = fetcher(
        repository=RepositoryRef(url="https://ocm.example.com/"),
        name="acme.org/app",
        version="1.0.0",
    )

    assert raw.schema_version == "v2"
    assert raw.payload["component"]["name"] == "acme.org/app"
    (request,) = seen
    assert str(request.url) == "https://ocm.example.com/component-descriptors/acme.org/app/1.0.0"
    assert "Authorization" not in request.headers


def test_secret_ref_adds_bearer_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=v2_descriptor("acme.org/app", "1.0.0"))

    fetcher = _fetcher(handler, credentials=lambda ref: f"token-for-{ref.name}")
    fetcher(
        repository=RepositoryRef(url="https://ocm.example.com", secret_ref=SecretRef("creds")),
        name="acme.org/app",
        version="1.0.0",
    )

    assert seen[0].headers["Authorization"] == "Bearer token-for-creds"


def test_missing_credentials_is_a_fetch_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, json={}), credentials=lambda ref: None)

    with pytest.raises(FetchError, match="no credentials found"):
        fetcher(
            repository=RepositoryRef(url="https://ocm.example.com", secret_ref=SecretRef("creds")),
            name="acme.org/app",
            version="1.0.0",
        )


def test_http_error_status_is_a_fetch_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(404, json={"message": "not found"}))

    with pytest.raises(FetchError, match="HTTP 404") as excinfo:
        fetcher(
            repository=RepositoryRef(url="https://ocm.example.com"),
            name="acme.org/app",
            version="1.0.0",
        )

    assert excinfo.value.retryable
    assert (excinfo.value.name, excinfo.value.version) == ("acme.org/app", "1.0.0")


def test_transport_failure_is_a_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = _fetcher(handler)

    with pytest.raises(FetchError, match="connection refused"):
        fetcher(
            repository=RepositoryRef(url="https://ocm.example.com"),
            name="acme.org/app",
            version="1.0.0",
        )


def test_non_object_payload_is_a_fetch_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, json=["not", "a", "descriptor"]))

    with pytest.raises(FetchError, match="non-object descriptor"):
        fetcher(
            repository=RepositoryRef(url="https://ocm.example.com"),
            name="acme.org/app",
            version="1.0.0",
        )


def test_env_credentials_normalise_secret_names(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OCMGRAPH_SECRET_MY_CREDS", " s3cret ")
    credentials = EnvCredentials()

    assert credentials.env_name(SecretRef("my-creds")) == "OCMGRAPH_SECRET_MY_CREDS"
    assert credentials(SecretRef("my-creds")) == "s3cret"
    assert credentials(SecretRef("other")) is None
