"""Authenticate with org-scoped tokens exchanged from an Upbound token."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from .restconfig import ExecConfig, RestConfig
from .tokens import ReuseSourceStore, Token
from .transport import TokenTransport

AUTH_HOST = "auth.upbound.io"
ENV_VAR_ORGANIZATION = "ORGANIZATION"
EXEC_API_VERSION = "client.authentication.k8s.io/v1"

Fetch = Callable[[str, str], "tuple[str, int]"]


class UpboundTokenSource:
    """Exchanges a static token for an org-scoped access token."""

    def __init__(self, fetch: Fetch, org: str, static_token: str) -> None:
        self.fetch = fetch
        self.org = org
        self.static_token = static_token

    def token(self) -> Token:
        try:
            access_token, expires_in = self.fetch(self.org, self.static_token)
        except Exception as exc:
            raise RuntimeError(f"cannot get upbound org scoped token: {exc}") from exc
        return Token(access_token, datetime.now(timezone.utc) + timedelta(seconds=expires_in))


def organization_from_exec(exec_config: ExecConfig | None) -> str:
    """Validate an `up organization token` exec section and return its org."""
    if exec_config is None:
        raise ValueError(
            "an identity configuration was specified but the provided kubeconfig "
            "does not have execProvider section"
        )
    if exec_config.api_version != EXEC_API_VERSION:
        raise ValueError(f"execProvider APIVersion is not {EXEC_API_VERSION}")
    args = exec_config.args
    if (exec_config.command != "up" or len(args) < 2
            or args[0] not in ("org", "organization") or args[1] != "token"):
        raise ValueError("execProvider command is not up organization (org) token")
    org = args[2] if len(args) > 2 else ""
    # The environment variable wins over the positional argument.
    org = next((e.value for e in exec_config.env if e.name == ENV_VAR_ORGANIZATION), org)
    if not org:
        raise ValueError(
            "organization name not provided in execProvider args or ORGANIZATION env var"
        )
    return org


def wrap_rest_config(rc: RestConfig, token: str, store: ReuseSourceStore, fetch: Fetch) -> None:
    """Replace the exec provider of rc with Upbound token authentication."""
    org = organization_from_exec(rc.exec_provider)
    rc.exec_provider = None
    source = store.source_for_refresh_token(token, UpboundTokenSource(fetch, org, token))
    rc.wrap(lambda rt: TokenTransport(source, rt))