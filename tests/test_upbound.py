import pytest

from xkube.restconfig import ExecConfig, ExecEnvVar, RestConfig
from xkube.tokens import ReuseSourceStore
from xkube.transport import HttpRequest
from xkube.upbound import UpboundTokenSource, organization_from_exec, wrap_rest_config

V1 = "client.authentication.k8s.io/v1"


def test_org_from_args():
    assert organization_from_exec(ExecConfig("up", ["org", "token", "acme"], [], V1)) == "acme"


def test_env_takes_precedence():
    ex = ExecConfig("up", ["organization", "token", "acme"], [ExecEnvVar("ORGANIZATION", "other")], V1)
    assert organization_from_exec(ex) == "other"


@pytest.mark.parametrize(
    "ex, msg",
    [
        (None, "does not have execProvider"),
        (ExecConfig("up", ["org", "token", "a"], [], "v1beta1"), "APIVersion"),
        (ExecConfig("kubectl", ["org", "token"], [], V1), "not up organization"),
        (ExecConfig("up", ["org", "token"], [], V1), "organization name not provided"),
    ],
)
def test_invalid_exec(ex, msg):
    with pytest.raises(ValueError, match=msg):
        organization_from_exec(ex)


def test_wrap_rest_config_injects_token():
    calls = []

    def fetch(org, static):
        calls.append((org, static))
        return "token", 3600

    rc = RestConfig(exec_provider=ExecConfig("up", ["org", "token", "acme"], [], V1))
    wrap_rest_config(rc, "secret", ReuseSourceStore(), fetch)
    assert rc.exec_provider is None
    sent = []
    rc.transport(sent.append)(HttpRequest("GET", "http://localhost/"))
    assert sent[0].headers["Authorization"] == ["Bearer token"]
    assert calls == [("acme", "secret")]


def test_token_source_wraps_errors():
    def fetch(org, static):
        raise OSError("down")

    with pytest.raises(RuntimeError, match="cannot get upbound org scoped token"):
        UpboundTokenSource(fetch, "acme", "token").token()