"""The user-declared intent to track one component version."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from .descriptor import Reference  # noqa: TC001
from .enums import ConditionStatus, ConditionType


@dataclass(frozen=True, slots=True)
class SecretRef:
    name: str


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Component repository endpoint plus an optional credentials reference."""

    url: str
    secret_ref: SecretRef | None = None


@dataclass(frozen=True, slots=True)
class PublicKeyRef:
    secret_ref: SecretRef


@dataclass(frozen=True, slots=True)
class SignatureConfig:
    """A trusted signature: its name on the descriptor and where to find the key."""

    name: str
    public_key: PublicKeyRef


@dataclass(frozen=True, slots=True)
class ConfigRef:
    """The tracked component: exact name and version, plus optional identity.

    ``reference_path`` names one reference declared on the root component; when set,
    only that reference is expanded at the top level.
    """

    component: str
    version: str
    extra_identity: dict[str, str] = field(default_factory=dict[str, str])
    reference_path: str | None = None


@dataclass(frozen=True, slots=True)
class ComponentVersionSpec:
    interval: timedelta
    repository: RepositoryRef
    config_ref: ConfigRef
    expand: bool = False
    verify: tuple[SignatureConfig, ...] = ()

    @property
    def component(self) -> str:
        return self.config_ref.component

    @property
    def version(self) -> str:
        return self.config_ref.version


@dataclass(frozen=True, slots=True)
class Condition:
    type: ConditionType
    status: ConditionStatus
    reason: str
    message: str = ""
    observed_generation: int = 0
    last_transition_time: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True, slots=True)
class ComponentVersionStatus:
    observed_generation: int = 0
    conditions: tuple[Condition, ...] = ()
    latest_resolved_digest: str = ""
    resolved_graph_root: Reference | None = None
    verified: bool = False

    def condition(self, condition_type: ConditionType) -> Condition | None:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def with_condition(self, condition: Condition) -> ComponentVersionStatus:
        """Return a copy with ``condition`` merged in by type.

        The transition time is kept when the status value did not change, so that
        re-applying an identical condition is a no-op.
        """

        merged: list[Condition] = []
        found = False
        for existing in self.conditions:
            if existing.type != condition.type:
                merged.append(existing)
                continue
            found = True
            if (
                existing.status == condition.status
                and existing.reason == condition.reason
                and existing.message == condition.message
                and existing.observed_generation == condition.observed_generation
            ):
                merged.append(existing)
            elif existing.status == condition.status:
                merged.append(
                    replace(condition, last_transition_time=existing.last_transition_time)
                )
            else:
                merged.append(condition)
        if not found:
            merged.append(condition)
        return replace(self, conditions=tuple(merged))


@dataclass(eq=False, kw_only=True)
class ComponentVersion:
    """Root intent record. ``generation`` moves only when ``spec`` changes."""

    name: str
    spec: ComponentVersionSpec
    status: ComponentVersionStatus = field(default_factory=ComponentVersionStatus)
    generation: int = 1
    resource_version: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def requeue_after(self) -> timedelta:
        return self.spec.interval

    def is_ready(self) -> bool:
        condition = self.status.condition(ConditionType.READY)
        return condition is not None and condition.status == ConditionStatus.TRUE
