"""Reusable fakes and payload builders for component graph tests."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Literal

from ocmgraph.domain.errors import ConflictError, FetchError, VerificationError
from ocmgraph.domain.model import (
    ComponentDescriptor,
    ComponentVersion,
    ComponentVersionSpec,
    ConfigRef,
    PublicKeyRef,
    RawDescriptor,
    RepositoryRef,
    SecretRef,
    SignatureConfig,
    VerificationOutcome,
)
from ocmgraph.domain.ports import GraphRepositories

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from types import TracebackType

    from ocmgraph.domain.model import CanonicalDescriptor

REPOSITORY = RepositoryRef(url="https://ocm.example.com")

type RefSpec = tuple[str, str, str] | tuple[str, str, str, dict[str, str]]


def _reference_payload(ref: RefSpec) -> dict[str, Any]:
    payload: dict[str, Any] = {"name": ref[0], "componentName": ref[1], "version": ref[2]}
    if len(ref) == 4:
        payload["extraIdentity"] = ref[3]
    return payload


def v3_descriptor(
    name: str,
    version: str,
    *,
    references: Iterable[RefSpec] = (),
    resources: Iterable[dict[str, Any]] = (),
    provider: str = "acme.org",
    signatures: Iterable[dict[str, Any]] = (),
) -> dict[str, Any]:
    """Build an ``ocm.software/v3alpha1`` descriptor payload."""

    return {
        "apiVersion": "ocm.software/v3alpha1",
        "kind": "ComponentVersion",
        "metadata": {"name": name, "version": version, "provider": {"name": provider}},
        "repositoryContexts": [],
        "spec": {
            "resources": list(resources),
            "sources": [],
            "references": [_reference_payload(ref) for ref in references],
        },
        "signatures": list(signatures),
    }


def v2_descriptor(
    name: str,
    version: str,
    *,
    references: Iterable[RefSpec] = (),
    resources: Iterable[dict[str, Any]] = (),
    provider: str = "acme.org",
) -> dict[str, Any]:
    """Build a ``v2`` descriptor payload."""

    return {
        "meta": {"schemaVersion": "v2"},
        "component": {
            "name": name,
            "version": version,
            "provider": provider,
            "repositoryContexts": [],
            "sources": [],
            "resources": list(resources),
            "componentReferences": [_reference_payload(ref) for ref in references],
        },
    }


def make_spec(
    component: str,
    version: str,
    *,
    expand: bool = True,
    interval: timedelta = timedelta(minutes=10),
    extra_identity: dict[str, str] | None = None,
    reference_path: str | None = None,
    verify: Sequence[tuple[str, str]] = (),
) -> ComponentVersionSpec:
    return ComponentVersionSpec(
        interval=interval,
        repository=REPOSITORY,
        config_ref=ConfigRef(
            component=component,
            version=version,
            extra_identity=dict(extra_identity or {}),
            reference_path=reference_path,
        ),
        expand=expand,
        verify=tuple(
            SignatureConfig(name=name, public_key=PublicKeyRef(SecretRef(key)))
            for name, key in verify
        ),
    )


class FakeComponentFetcher:
    """Serve descriptor payloads from memory, keyed by ``(name, version)``."""

    def __init__(self, payloads: Iterable[dict[str, Any]] = ()) -> None:
        self.payloads: dict[tuple[str, str], dict[str, Any]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []
        for payload in payloads:
            self.register(payload)

    def register(self, payload: dict[str, Any]) -> None:
        if "component" in payload:
            key = (payload["component"]["name"], payload["component"]["version"])
        else:
            key = (payload["metadata"]["name"], payload["metadata"]["version"])
        self.payloads[key] = payload

    def __call__(self, *, repository: RepositoryRef, name: str, version: str) -> RawDescriptor:
        _ = repository
        self.calls.append((name, version))
        failure = self.failures.get((name, version))
        if failure is not None:
            raise failure
        payload = self.payloads.get((name, version))
        if payload is None:
            raise FetchError(f"{name}@{version} not found", name=name, version=version)
        return RawDescriptor(payload=copy.deepcopy(payload))


@dataclass
class FakeVerifier:
    verified: bool = True
    digest: str = "c0ffee"
    error: VerificationError | None = None
    calls: list[tuple[str, int]] = field(default_factory=list[tuple[str, int]])

    def __call__(
        self,
        descriptor: CanonicalDescriptor,
        signatures: Sequence[SignatureConfig],
    ) -> VerificationOutcome:
        self.calls.append((descriptor.name, len(signatures)))
        if self.error is not None:
            raise self.error
        return VerificationOutcome(verified=self.verified, digest=self.digest)


@dataclass
class InMemoryGraphStore:
    """Committed state shared by every ``FakeGraphUnitOfWork``.

    ``fail_commits`` makes the next N commits lose a simulated write race.
    """

    component_versions: dict[str, ComponentVersion] = field(
        default_factory=dict[str, ComponentVersion]
    )
    descriptors: dict[str, ComponentDescriptor] = field(
        default_factory=dict[str, ComponentDescriptor]
    )
    commits: int = 0
    fail_commits: int = 0
    on_commit: list[Any] = field(default_factory=list[Any])

    def uow_factory(self) -> FakeGraphUnitOfWork:
        return FakeGraphUnitOfWork(self)

    def add_root(self, name: str, spec: ComponentVersionSpec) -> ComponentVersion:
        root = ComponentVersion(name=name, spec=spec)
        self.component_versions[name] = root
        return root


class _FakeComponentVersionRepository:
    def __init__(self, uow: FakeGraphUnitOfWork) -> None:
        self._uow = uow

    def add(self, entity: ComponentVersion) -> None:
        self._uow.staged_versions[entity.name] = entity

    def get(self, name: str) -> ComponentVersion | None:
        if name in self._uow.staged_versions:
            return self._uow.staged_versions[name]
        stored = self._uow.store.component_versions.get(name)
        if stored is None:
            return None
        working = copy.deepcopy(stored)
        self._uow.staged_versions[name] = working
        return working

    def list(self) -> list[ComponentVersion]:
        stored = self._uow.store.component_versions
        return [copy.deepcopy(stored[name]) for name in sorted(stored)]

    def delete(self, entity: ComponentVersion) -> None:
        self._uow.staged_versions.pop(entity.name, None)
        self._uow.deleted_versions.add(entity.name)


class _FakeComponentDescriptorRepository:
    def __init__(self, uow: FakeGraphUnitOfWork) -> None:
        self._uow = uow

    def add(self, entity: ComponentDescriptor) -> None:
        self._uow.staged_descriptors[entity.key] = entity

    def get(self, key: str) -> ComponentDescriptor | None:
        if key in self._uow.staged_descriptors:
            return self._uow.staged_descriptors[key]
        stored = self._uow.store.descriptors.get(key)
        if stored is None:
            return None
        working = copy.deepcopy(stored)
        self._uow.staged_descriptors[key] = working
        return working

    def list_by_owner(self, owner_name: str) -> list[ComponentDescriptor]:
        return [
            copy.deepcopy(item)
            for _, item in sorted(self._uow.store.descriptors.items())
            if item.owner_name == owner_name
        ]

    def count(self) -> int:
        return len(self._uow.store.descriptors)


class FakeGraphUnitOfWork:
    """Snapshot-isolated unit of work over an ``InMemoryGraphStore``."""

    def __init__(self, store: InMemoryGraphStore) -> None:
        self.store = store
        self.staged_versions: dict[str, ComponentVersion] = {}
        self.staged_descriptors: dict[str, ComponentDescriptor] = {}
        self.deleted_versions: set[str] = set()
        self._repositories = GraphRepositories(
            component_versions=_FakeComponentVersionRepository(self),
            descriptors=_FakeComponentDescriptorRepository(self),
        )

    @property
    def repositories(self) -> GraphRepositories:
        return self._repositories

    def __enter__(self) -> FakeGraphUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.rollback()
        return False

    def commit(self) -> None:
        for hook in self.store.on_commit:
            hook(self)
        if self.store.fail_commits > 0:
            self.store.fail_commits -= 1
            self.rollback()
            raise ConflictError("simulated concurrent write")
        for name in self.deleted_versions:
            self.store.component_versions.pop(name, None)
            for key in [k for k, d in self.store.descriptors.items() if d.owner_name == name]:
                del self.store.descriptors[key]
        self.store.component_versions.update(copy.deepcopy(self.staged_versions))
        self.store.descriptors.update(copy.deepcopy(self.staged_descriptors))
        self.store.commits += 1
        self.rollback()

    def rollback(self) -> None:
        self.staged_versions.clear()
        self.staged_descriptors.clear()
        self.deleted_versions.clear()
