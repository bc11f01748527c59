"""JSON manifests declaring component versions to track.

A manifest mirrors the Kubernetes resource shape::

    {
      "metadata": {"name": "podinfo"},
      "spec": {
        "interval": "10m",
        "component": "github.com/acme/podinfo",
        "version": "6.3.5",
        "repository": {"url": "https://ocm.example.com", "secretRef": {"name": "creds"}},
        "references": {"expand": true},
        "verify": [{"name": "acme", "publicKey": {"secretRef": {"name": "acme-key"}}}]
      }
    }
"""

from __future__ import annotations

import json
import re
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ocmgraph.domain.model import (
    ComponentVersionSpec,
    ConfigRef,
    PublicKeyRef,
    RepositoryRef,
    SecretRef,
    SignatureConfig,
)

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


class ManifestError(ValueError):
    """Raised when a manifest cannot be read or does not validate."""


def parse_duration(value: str | float) -> timedelta:
    """Parse seconds or a Go-style duration such as ``"1h30m"``."""

    if isinstance(value, int | float):
        seconds = float(value)
    else:
        text = value.strip()
        if not text:
            raise ValueError("empty duration")
        position = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != position:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            position = match.end()
        if position != len(text):
            try:
                seconds = float(text)
            except ValueError:
                raise ValueError(f"invalid duration {value!r}") from None
    if seconds <= 0:
        raise ValueError(f"duration must be positive, got {value!r}")
    return timedelta(seconds=seconds)


class _ManifestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class SecretRefModel(_ManifestModel):
    name: str = Field(min_length=1)


class RepositoryModel(_ManifestModel):
    url: str = Field(min_length=1)
    secret_ref: SecretRefModel | None = Field(default=None, alias="secretRef")


class PublicKeyModel(_ManifestModel):
    secret_ref: SecretRefModel = Field(alias="secretRef")


class VerifyModel(_ManifestModel):
    name: str = Field(min_length=1)
    public_key: PublicKeyModel = Field(alias="publicKey")


class ReferencesModel(_ManifestModel):
    expand: bool = False


class SpecModel(_ManifestModel):
    interval: timedelta | None = None
    component: str = Field(min_length=1)
    version: str = Field(min_length=1)
    extra_identity: dict[str, str] = Field(default_factory=dict, alias="extraIdentity")
    reference_path: str | None = Field(default=None, alias="referencePath")
    repository: RepositoryModel
    references: ReferencesModel = Field(default_factory=ReferencesModel)
    verify: list[VerifyModel] = Field(default_factory=list)

    @field_validator("interval", mode="before")
    @classmethod
    def _parse_interval(cls, value: Any) -> Any:
        if isinstance(value, str | int | float) and not isinstance(value, bool):
            return parse_duration(value)
        return value


class MetadataModel(_ManifestModel):
    name: str = Field(min_length=1)


class ComponentVersionManifest(_ManifestModel):
    metadata: MetadataModel
    spec: SpecModel

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_spec(self, *, default_interval: timedelta) -> ComponentVersionSpec:
        spec = self.spec
        repository = RepositoryRef(
            url=spec.repository.url,
            secret_ref=SecretRef(spec.repository.secret_ref.name)
            if spec.repository.secret_ref
            else None,
        )
        return ComponentVersionSpec(
            interval=spec.interval or default_interval,
            repository=repository,
            config_ref=ConfigRef(
                component=spec.component,
                version=spec.version,
                extra_identity=dict(spec.extra_identity),
                reference_path=spec.reference_path,
            ),
            expand=spec.references.expand,
            verify=tuple(
                SignatureConfig(
                    name=item.name,
                    public_key=PublicKeyRef(SecretRef(item.public_key.secret_ref.name)),
                )
                for item in spec.verify
            ),
        )


def parse_manifest(payload: Any) -> ComponentVersionManifest:
    try:
        return ComponentVersionManifest.model_validate(payload)
    except ValidationError as exc:
        raise ManifestError(f"invalid manifest: {exc}") from exc


def load_manifest(path: Path) -> ComponentVersionManifest:
    try:
        with path.open(encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"cannot read manifest {path}: {exc}") from exc
    log.debug("Loaded manifest from %s", path)
    return parse_manifest(payload)
