from __future__ import annotations

import pytest

from ocmgraph.domain.errors import ConflictError, OwnershipError, ReconcileCancelledError
from ocmgraph.domain.model import Operation
from ocmgraph.domain.reconciliation import DescriptorStore, NodePayload, ReconcileContext
from tests.support.graph import InMemoryGraphStore, make_spec

KEY = "acme.org-app-1.0.0-42"


def _payload(**overrides: object) -> NodePayload:
    values: dict[str, object] = {
        "name": "acme.org/app",
        "version": "1.0.0",
        "extra_identity": {},
        "component_spec": {"resources": [], "sources": [], "references": []},
    }
    values.update(overrides)
    return NodePayload(**values)  # type: ignore[arg-type]


@pytest.fixture
def store(graph_store: InMemoryGraphStore) -> DescriptorStore:
    graph_store.add_root("app", make_spec("acme.org/app", "1.0.0"))
    graph_store.add_root("other", make_spec("acme.org/other", "1.0.0"))
    return DescriptorStore(graph_store.uow_factory, max_attempts=3)


def test_upsert_creates_then_reports_unchanged(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    context = ReconcileContext()

    first = store.upsert(KEY, owner="app", payload=_payload(), context=context)
    commits = graph_store.commits
    second = store.upsert(KEY, owner="app", payload=_payload(), context=context)

    assert first.operation is Operation.CREATED
    assert first.created
    assert second.operation is Operation.UNCHANGED
    assert graph_store.commits == commits
    assert graph_store.descriptors[KEY].owner_name == "app"


def test_upsert_updates_changed_spec_in_place(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    context = ReconcileContext()
    store.upsert(KEY, owner="app", payload=_payload(), context=context)

    changed_spec = {
        "resources": [{"name": "chart", "type": "helmChart"}],
        "sources": [],
        "references": [],
    }
    result = store.upsert(
        KEY, owner="app", payload=_payload(component_spec=changed_spec), context=context
    )

    assert result.operation is Operation.UPDATED
    assert graph_store.descriptors[KEY].component_spec == changed_spec


def test_existing_node_keeps_its_first_owner(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    context = ReconcileContext()
    store.upsert(KEY, owner="app", payload=_payload(), context=context)

    result = store.upsert(KEY, owner="other", payload=_payload(), context=context)

    assert result.operation is Operation.UNCHANGED
    assert graph_store.descriptors[KEY].owner_name == "app"


def test_upsert_retries_conflicts_with_fresh_state(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    graph_store.fail_commits = 2

    result = store.upsert(KEY, owner="app", payload=_payload(), context=ReconcileContext())

    assert result.operation is Operation.CREATED
    assert graph_store.fail_commits == 0
    assert KEY in graph_store.descriptors


def test_upsert_gives_up_after_max_attempts(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    graph_store.fail_commits = 3

    with pytest.raises(ConflictError, match="still conflicting after 3 attempts"):
        store.upsert(KEY, owner="app", payload=_payload(), context=ReconcileContext())

    assert KEY not in graph_store.descriptors


def test_upsert_without_owner_raises_ownership_error(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    with pytest.raises(OwnershipError, match="no longer exists"):
        store.upsert(KEY, owner="missing", payload=_payload(), context=ReconcileContext())

    assert graph_store.descriptors == {}


def test_cancelled_context_stops_before_writing(
    store: DescriptorStore, graph_store: InMemoryGraphStore
) -> None:
    context = ReconcileContext()
    context.cancel()

    with pytest.raises(ReconcileCancelledError):
        store.upsert(KEY, owner="app", payload=_payload(), context=context)

    assert graph_store.commits == 0
