"""REST configuration built from a kubeconfig document."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

import yaml

from .transport import RoundTripper, default_send


class KubeconfigError(ValueError):
    """Raised for an unusable kubeconfig."""


@dataclass
class ExecEnvVar:
    name: str
    value: str


@dataclass
class ExecConfig:
    """An exec credential plugin."""

    command: str = ""
    args: list[str] = field(default_factory=list)
    env: list[ExecEnvVar] = field(default_factory=list)
    api_version: str = ""


@dataclass
class ImpersonationConfig:
    user_name: str = ""
    groups: list[str] = field(default_factory=list)
    extra: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class TLSClientConfig:
    insecure: bool = False
    server_name: str = ""
    cert_data: bytes = b""
    key_data: bytes = b""
    ca_data: bytes = b""


@dataclass
class RestConfig:
    """Connection settings for a Kubernetes API server."""

    host: str = ""
    username: str = ""
    password: str = ""
    bearer_token: str = ""
    bearer_token_file: str = ""
    impersonate: ImpersonationConfig = field(default_factory=ImpersonationConfig)
    auth_provider: dict[str, Any] | None = None
    exec_provider: ExecConfig | None = None
    tls_client_config: TLSClientConfig = field(default_factory=TLSClientConfig)
    qps: float = 0.0
    burst: int = 0
    wrappers: list[Callable[[RoundTripper], RoundTripper]] = field(default_factory=list)

    def wrap(self, fn: Callable[[RoundTripper], RoundTripper]) -> None:
        """Add a transport wrapper applied after those already present."""
        self.wrappers.append(fn)

    def transport(self, base: RoundTripper | None = None) -> RoundTripper:
        rt = base or default_send
        for fn in self.wrappers:
            rt = fn(rt)
        return rt


def _named(entries: Any, inner: str) -> dict[str, dict]:
    result = {}
    for entry in entries or []:
        if not isinstance(entry, Mapping) or "name" not in entry:
            raise KubeconfigError(f"invalid {inner} entry in kubeconfig")
        result[entry["name"]] = dict(entry.get(inner) or {})
    return result


def load_kubeconfig(data: bytes | str) -> dict[str, Any]:
    """Parse kubeconfig YAML into a dict of named contexts, clusters and users."""
    if isinstance(data, bytes):
        data = data.decode()
    try:
        doc = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise KubeconfigError(f"cannot parse kubeconfig: {exc}") from exc
    if doc is None:
        doc = {}
    if not isinstance(doc, Mapping):
        raise KubeconfigError("kubeconfig is not a mapping")
    return {
        "current_context": doc.get("current-context") or "",
        "contexts": _named(doc.get("contexts"), "context"),
        "clusters": _named(doc.get("clusters"), "cluster"),
        "users": _named(doc.get("users"), "user"),
    }


def _b64(value: str | None) -> bytes:
    return base64.b64decode(value) if value else b""


def from_api_config(config: Mapping[str, Any]) -> RestConfig:
    """Build a RestConfig from the current context of a loaded kubeconfig."""
    current = config.get("current_context")
    if not current:
        raise KubeconfigError("currentContext not set in kubeconfig")
    ctx = config.get("contexts", {}).get(current) or {}
    cluster = config.get("clusters", {}).get(ctx.get("cluster"))
    if cluster is None:
        raise KubeconfigError(f"cluster for currentContext ({current}) not found")
    # A user is optional: identity credentials may supply authentication.
    user = config.get("users", {}).get(ctx.get("user")) or {}
    exec_cfg = user.get("exec")
    exec_provider = None
    if exec_cfg:
        exec_provider = ExecConfig(
            command=exec_cfg.get("command", ""),
            args=list(exec_cfg.get("args") or []),
            env=[ExecEnvVar(e.get("name", ""), e.get("value", "")) for e in exec_cfg.get("env") or []],
            api_version=exec_cfg.get("apiVersion", ""),
        )
    return RestConfig(
        host=cluster.get("server", ""),
        username=user.get("username", ""),
        password=user.get("password", ""),
        bearer_token=user.get("token", ""),
        bearer_token_file=user.get("tokenFile", ""),
        impersonate=ImpersonationConfig(
            user_name=user.get("as", ""),
            groups=list(user.get("as-groups") or []),
            extra=dict(user.get("as-user-extra") or {}),
        ),
        auth_provider=user.get("auth-provider"),
        exec_provider=exec_provider,
        tls_client_config=TLSClientConfig(
            insecure=bool(cluster.get("insecure-skip-tls-verify", False)),
            server_name=cluster.get("tls-server-name", ""),
            cert_data=_b64(user.get("client-certificate-data")),
            key_data=_b64(user.get("client-key-data")),
            ca_data=_b64(cluster.get("certificate-authority-data")),
        ),
        qps=50,
        burst=300,
    )