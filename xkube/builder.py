"""Build REST configs for a provider configuration, injecting identities."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping

from . import upbound
from .config import CredentialsSource, IdentityType, ProviderConfigSpec, ProviderCredentials
from .restconfig import RestConfig, TLSClientConfig, from_api_config, load_kubeconfig
from .tokens import ReuseSourceStore

ERR_GET_CREDS = "cannot get credentials"
ERR_CREATE_REST_CONFIG = "cannot create new REST config using provider secret"
ERR_EXTRACT_GOOGLE = "cannot extract Google Application Credentials"
ERR_INJECT_GOOGLE = "cannot wrap REST client with Google Application Credentials"
ERR_EXTRACT_AZURE = "failed to extract Azure Application Credentials"
ERR_INJECT_AZURE = "failed to wrap REST client with Azure Application Credentials"
ERR_EXTRACT_UPBOUND = "failed to extract Upbound token"
ERR_INJECT_UPBOUND = "failed to wrap REST client with Upbound token"

_SA_DIR = Path("/var/run/secrets/kubernetes.io/serviceaccount")

SecretReader = Callable[[str, str], Mapping[str, bytes]]


class BuilderError(RuntimeError):
    """Raised when a REST config cannot be built."""


def _wrapped(message: str, exc: Exception) -> BuilderError:
    err = BuilderError(f"{message}: {exc}")
    err.__cause__ = exc
    return err


class IdentityAwareBuilder:
    """Builds REST configs, adding identity credentials where configured.

    ``read_secret(namespace, name)`` returns secret data; ``google`` and
    ``azure`` are wrappers taking (rc, credentials[, identity type]);
    ``upbound_fetch(org, static_token)`` returns (access_token, expires_in).
    """

    def __init__(self, read_secret: SecretReader | None = None, *, google=None, azure=None,
                 upbound_fetch=None, environ: Mapping[str, str] | None = None) -> None:
        self.read_secret = read_secret
        self.google = google
        self.azure = azure
        self.upbound_fetch = upbound_fetch
        self.environ = os.environ if environ is None else environ
        self.store = ReuseSourceStore()

    def _extract(self, creds: ProviderCredentials) -> bytes | None:
        source = creds.source
        if source is CredentialsSource.SECRET:
            if creds.secret_ref is None:
                raise ValueError("cannot extract from secret key when none specified")
            if self.read_secret is None:
                raise ValueError("no secret reader configured")
            ref = creds.secret_ref
            return self.read_secret(ref.namespace, ref.name).get(ref.key)
        if source is CredentialsSource.ENVIRONMENT:
            if creds.env is None:
                raise ValueError("cannot extract from environment variable when none specified")
            return self.environ.get(creds.env.name, "").encode()
        if source is CredentialsSource.FILESYSTEM:
            if creds.fs is None:
                raise ValueError("cannot extract from filesystem when no path specified")
            return Path(creds.fs.path).read_bytes()
        raise ValueError(f"credentials source {source.value} is not currently supported")

    def _in_cluster(self) -> RestConfig:
        host = self.environ.get("KUBERNETES_SERVICE_HOST")
        port = self.environ.get("KUBERNETES_SERVICE_PORT")
        if not host or not port:
            raise ValueError("unable to load in-cluster configuration, "
                             "KUBERNETES_SERVICE_HOST and KUBERNETES_SERVICE_PORT must be defined")
        token_file = _SA_DIR / "token"
        ca_file = _SA_DIR / "ca.crt"
        return RestConfig(
            host=f"https://{host}:{port}",
            bearer_token=token_file.read_text(),
            bearer_token_file=str(token_file),
            tls_client_config=TLSClientConfig(ca_data=ca_file.read_bytes() if ca_file.exists() else b""),
        )

    def _identity_creds(self, identity, message: str) -> bytes | None:
        try:
            return self._extract(identity)
        except Exception as exc:
            raise _wrapped(message, exc) from exc

    def rest_for_provider_config(self, pc: ProviderConfigSpec) -> RestConfig:
        cd = pc.credentials
        if cd.source is CredentialsSource.INJECTED_IDENTITY:
            try:
                rc = self._in_cluster()
            except Exception as exc:
                raise _wrapped(ERR_CREATE_REST_CONFIG, exc) from exc
        else:
            try:
                kc = self._extract(cd)
            except Exception as exc:
                raise _wrapped(ERR_GET_CREDS, exc) from exc
            try:
                api = load_kubeconfig(kc or b"")
            except Exception as exc:
                raise _wrapped("failed to load kubeconfig", exc) from exc
            try:
                rc = from_api_config(api)
            except Exception as exc:
                raise _wrapped(ERR_CREATE_REST_CONFIG, exc) from exc

        identity = pc.identity
        if identity is None:
            return rc
        injected = identity.source is CredentialsSource.INJECTED_IDENTITY
        itype = identity.type
        if itype == IdentityType.GOOGLE_APPLICATION_CREDENTIALS:
            creds = None if injected else self._identity_creds(identity, ERR_EXTRACT_GOOGLE)
            try:
                if self.google is None:
                    raise ValueError("no Google credentials handler configured")
                self.google(rc, creds)
            except Exception as exc:
                raise _wrapped(ERR_INJECT_GOOGLE, exc) from exc
        elif itype in (IdentityType.AZURE_SERVICE_PRINCIPAL_CREDENTIALS,
                       IdentityType.AZURE_WORKLOAD_IDENTITY_CREDENTIALS):
            if injected:
                raise BuilderError(
                    f"{CredentialsSource.INJECTED_IDENTITY.value} is not supported as identity source "
                    f"for identity type {IdentityType.AZURE_SERVICE_PRINCIPAL_CREDENTIALS.value}")
            creds = self._identity_creds(identity, ERR_EXTRACT_AZURE)
            try:
                if self.azure is None:
                    raise ValueError("no Azure credentials handler configured")
                self.azure(rc, creds, itype)
            except Exception as exc:
                raise _wrapped(ERR_INJECT_AZURE, exc) from exc
        elif itype == IdentityType.UPBOUND_TOKENS:
            if injected:
                raise BuilderError(
                    f"{CredentialsSource.INJECTED_IDENTITY.value} is not supported as identity source "
                    f"for identity type {IdentityType.UPBOUND_TOKENS.value}")
            creds = self._identity_creds(identity, ERR_EXTRACT_UPBOUND)
            try:
                if self.upbound_fetch is None:
                    raise ValueError("no Upbound token exchange configured")
                static = (creds or b"").decode().strip()
                upbound.wrap_rest_config(rc, static, self.store, self.upbound_fetch)
            except Exception as exc:
                raise _wrapped(ERR_INJECT_UPBOUND, exc) from exc
        else:
            raise BuilderError(f"unknown identity type: {getattr(itype, 'value', itype)}")
        return rc