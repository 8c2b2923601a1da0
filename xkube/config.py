"""Provider configuration types for talking to a Kubernetes API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class CredentialsSource(str, Enum):
    """Where credentials are read from."""

    NONE = "None"
    SECRET = "Secret"
    INJECTED_IDENTITY = "InjectedIdentity"
    ENVIRONMENT = "Environment"
    FILESYSTEM = "Filesystem"


class IdentityType(str, Enum):
    """Identity used to authenticate to the Kubernetes API."""

    GOOGLE_APPLICATION_CREDENTIALS = "GoogleApplicationCredentials"
    AZURE_SERVICE_PRINCIPAL_CREDENTIALS = "AzureServicePrincipalCredentials"
    AZURE_WORKLOAD_IDENTITY_CREDENTIALS = "AzureWorkloadIdentityCredentials"
    UPBOUND_TOKENS = "UpboundTokens"


@dataclass(frozen=True)
class SecretKeySelector:
    """A key within a named secret."""

    name: str
    namespace: str
    key: str


@dataclass(frozen=True)
class EnvSelector:
    """An environment variable holding credentials."""

    name: str


@dataclass(frozen=True)
class FsSelector:
    """A file holding credentials."""

    path: str


@dataclass
class ProviderCredentials:
    """Credentials source plus the selectors that locate them."""

    source: CredentialsSource
    secret_ref: SecretKeySelector | None = None
    env: EnvSelector | None = None
    fs: FsSelector | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProviderCredentials":
        if "source" not in data:
            raise ValueError("credentials source is required")
        secret_ref = data.get("secretRef")
        env = data.get("env")
        fs = data.get("fs")
        return cls(
            source=CredentialsSource(data["source"]),
            secret_ref=SecretKeySelector(
                name=secret_ref.get("name", ""),
                namespace=secret_ref.get("namespace", ""),
                key=secret_ref.get("key", ""),
            )
            if secret_ref
            else None,
            env=EnvSelector(env.get("name", "")) if env else None,
            fs=FsSelector(fs.get("path", "")) if fs else None,
        )


@dataclass
class Identity(ProviderCredentials):
    """An identity whose credentials supplement the kubeconfig."""

    type: IdentityType | str = IdentityType.GOOGLE_APPLICATION_CREDENTIALS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Identity":
        if "type" not in data:
            raise ValueError("identity type is required")
        creds = ProviderCredentials.from_dict(data)
        return cls(
            source=creds.source,
            secret_ref=creds.secret_ref,
            env=creds.env,
            fs=creds.fs,
            type=IdentityType(data["type"]),
        )


@dataclass
class ProviderConfigSpec:
    """Desired state of a provider configuration."""

    credentials: ProviderCredentials
    identity: Identity | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProviderConfigSpec":
        if "credentials" not in data:
            raise ValueError("credentials are required")
        identity = data.get("identity")
        return cls(
            credentials=ProviderCredentials.from_dict(data["credentials"]),
            identity=Identity.from_dict(identity) if identity else None,
        )