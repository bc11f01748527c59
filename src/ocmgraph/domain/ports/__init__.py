"""Domain port definitions for adapters."""

from __future__ import annotations

from .conversion import DescriptorConverter
from .fetching import ComponentFetcher
from .persistence import (
    ComponentDescriptorRepository,
    ComponentVersionRepository,
    Repository,
)
from .scheduling import WorkQueue
from .unit_of_work import (
    GraphRepositories,
    GraphUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)
from .verification import PublicKeyResolver, SignatureVerifier

__all__ = [
    "ComponentDescriptorRepository",
    "ComponentFetcher",
    "ComponentVersionRepository",
    "DescriptorConverter",
    "GraphRepositories",
    "GraphUnitOfWork",
    "PublicKeyResolver",
    "Repository",
    "RepositoryCollection",
    "SignatureVerifier",
    "UnitOfWork",
    "WorkQueue",
]
