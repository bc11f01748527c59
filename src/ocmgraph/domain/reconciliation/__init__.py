"""Graph resolution core.

Flow for one root intent:
1) fetch and convert the root descriptor
2) verify it against trusted signatures (fail closed)
3) upsert the root graph node
4) optionally expand references recursively, upserting every node
5) patch the resolved tree and verification outcome onto the root's status
"""

from __future__ import annotations

from .context import ReconcileContext
from .controller import Controller
from .engine import ComponentVersionReconciler, ReconcileResult
from .expand import GraphBuilder
from .persist import DescriptorStore, NodePayload, UpsertResult
from .status import StatusPatch, StatusWriter
from .verify import VerificationGate

__all__ = [
    "ComponentVersionReconciler",
    "Controller",
    "DescriptorStore",
    "GraphBuilder",
    "NodePayload",
    "ReconcileContext",
    "ReconcileResult",
    "StatusPatch",
    "StatusWriter",
    "UpsertResult",
    "VerificationGate",
]
