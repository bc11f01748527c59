"""Open Component Model adapters: repository access, descriptor schemas, signatures."""

from .client import ComponentRepositoryAPIError, ComponentRepositoryClient, MissingCredentialsError
from .credentials import EnvCredentials
from .fetcher import HttpComponentFetcher, build_http_fetcher
from .keyring import FileKeyring, StaticKeyring
from .schema import detect_schema_version
from .translator import convert_descriptor
from .verifier import DescriptorVerifier, descriptor_digest, normalise_descriptor, sign_digest

__all__ = [
    "ComponentRepositoryAPIError",
    "ComponentRepositoryClient",
    "DescriptorVerifier",
    "EnvCredentials",
    "FileKeyring",
    "HttpComponentFetcher",
    "MissingCredentialsError",
    "StaticKeyring",
    "build_http_fetcher",
    "convert_descriptor",
    "descriptor_digest",
    "detect_schema_version",
    "normalise_descriptor",
    "sign_digest",
]
