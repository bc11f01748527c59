"""Component descriptor schemas as published by component repositories."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type Identity = dict[str, str]


class OCMBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Component descriptor %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class Label(OCMBaseModel):
    name: str
    value: Any = None
    version: str | None = None
    signing: bool | None = None


class Digest(OCMBaseModel):
    hash_algorithm: str = Field(alias="hashAlgorithm")
    normalisation_algorithm: str = Field(alias="normalisationAlgorithm")
    value: str


class SignatureValue(OCMBaseModel):
    algorithm: str
    value: str
    media_type: str = Field(default="", alias="mediaType")
    issuer: str | None = None


class Signature(OCMBaseModel):
    name: str
    digest: Digest
    signature: SignatureValue


class ComponentReference(OCMBaseModel):
    name: str
    component_name: str = Field(alias="componentName")
    version: str
    extra_identity: Identity = Field(default_factory=dict[str, str], alias="extraIdentity")
    labels: list[Label] = Field(default_factory=list[Label])
    digest: Digest | None = None


class Resource(OCMBaseModel):
    name: str
    version: str | None = None
    type: str
    relation: str | None = None
    extra_identity: Identity | None = Field(default=None, alias="extraIdentity")
    access: dict[str, Any] | None = None
    digest: Digest | None = None
    labels: list[Label] = Field(default_factory=list[Label])


class Source(OCMBaseModel):
    name: str
    version: str | None = None
    type: str
    extra_identity: Identity | None = Field(default=None, alias="extraIdentity")
    access: dict[str, Any] | None = None
    labels: list[Label] = Field(default_factory=list[Label])


# v2 -------------------------------------------------------------------------


class MetaV2(OCMBaseModel):
    schema_version: Literal["v2"] = Field(alias="schemaVersion")


class ComponentV2(OCMBaseModel):
    name: str
    version: str
    provider: str = ""
    labels: list[Label] = Field(default_factory=list[Label])
    repository_contexts: list[dict[str, Any]] = Field(
        default_factory=list[dict[str, Any]], alias="repositoryContexts"
    )
    sources: list[Source] = Field(default_factory=list[Source])
    resources: list[Resource] = Field(default_factory=list[Resource])
    component_references: list[ComponentReference] = Field(
        default_factory=list[ComponentReference], alias="componentReferences"
    )


class ComponentDescriptorV2(OCMBaseModel):
    meta: MetaV2
    component: ComponentV2
    signatures: list[Signature] = Field(default_factory=list[Signature])


# ocm.software/v3alpha1 ------------------------------------------------------


class ProviderV3(OCMBaseModel):
    name: str
    labels: list[Label] = Field(default_factory=list[Label])


class MetadataV3(OCMBaseModel):
    name: str
    version: str
    provider: ProviderV3 | None = None
    labels: list[Label] = Field(default_factory=list[Label])


class SpecV3(OCMBaseModel):
    sources: list[Source] = Field(default_factory=list[Source])
    resources: list[Resource] = Field(default_factory=list[Resource])
    references: list[ComponentReference] = Field(default_factory=list[ComponentReference])


class ComponentDescriptorV3(OCMBaseModel):
    api_version: Literal["ocm.software/v3alpha1"] = Field(alias="apiVersion")
    kind: Literal["ComponentVersion"]
    metadata: MetadataV3
    repository_contexts: list[dict[str, Any]] = Field(
        default_factory=list[dict[str, Any]], alias="repositoryContexts"
    )
    spec: SpecV3 = Field(default_factory=SpecV3)
    signatures: list[Signature] = Field(default_factory=list[Signature])


def detect_schema_version(payload: object) -> str | None:
    """Return the schema version a raw descriptor payload declares, if any."""

    if not isinstance(payload, dict):
        return None
    meta = payload.get("meta")
    if isinstance(meta, dict):
        version = meta.get("schemaVersion")
        if isinstance(version, str):
            return version
    api_version = payload.get("apiVersion")
    if isinstance(api_version, str):
        return api_version
    return None
