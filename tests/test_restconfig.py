import base64

import pytest

from xkube.restconfig import KubeconfigError, RestConfig, from_api_config, load_kubeconfig

CA = base64.b64encode(b"ca-bytes").decode()

KUBECONFIG = f"""
current-context: main
contexts:
- name: main
  context: {{cluster: c1, user: u1}}
clusters:
- name: c1
  cluster:
    server: https://localhost:6443
    certificate-authority-data: {CA}
users:
- name: u1
  user:
    token: token
    exec:
      apiVersion: client.authentication.k8s.io/v1
      command: up
      args: [org, token, acme]
"""


def test_from_api_config_fields():
    rc = from_api_config(load_kubeconfig(KUBECONFIG))
    assert rc.host == "https://localhost:6443"
    assert rc.bearer_token == "token"
    assert rc.tls_client_config.ca_data == b"ca-bytes"
    assert rc.exec_provider.command == "up"
    assert rc.exec_provider.args == ["org", "token", "acme"]
    assert rc.qps == 50
    assert rc.burst == 300


def test_missing_current_context():
    with pytest.raises(KubeconfigError, match="currentContext not set"):
        from_api_config(load_kubeconfig("clusters: []"))


def test_missing_cluster():
    doc = "current-context: x\ncontexts:\n- name: x\n  context: {cluster: nope}\n"
    with pytest.raises(KubeconfigError, match=r"cluster for currentContext \(x\) not found"):
        from_api_config(load_kubeconfig(doc))


def test_user_optional():
    doc = KUBECONFIG.replace("user: u1", "user: missing")
    rc = from_api_config(load_kubeconfig(doc))
    assert rc.exec_provider is None
    assert rc.bearer_token == ""


def test_invalid_yaml():
    with pytest.raises(KubeconfigError):
        load_kubeconfig("a: [")


def test_wrap_order():
    rc = RestConfig()
    rc.wrap(lambda rt: lambda r: rt(r + ["a"]))
    rc.wrap(lambda rt: lambda r: rt(r + ["b"]))
    assert rc.transport(lambda r: r)([]) == ["b", "a"]