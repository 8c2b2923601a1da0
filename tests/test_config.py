import pytest

from xkube.config import (
    CredentialsSource,
    Identity,
    IdentityType,
    ProviderConfigSpec,
    ProviderCredentials,
)


def test_credentials_from_dict_secret():
    creds = ProviderCredentials.from_dict(
        {"source": "Secret", "secretRef": {"name": "n", "namespace": "ns", "key": "k"}}
    )
    assert creds.source is CredentialsSource.SECRET
    assert creds.secret_ref.name == "n"
    assert creds.secret_ref.namespace == "ns"
    assert creds.secret_ref.key == "k"
    assert creds.env is None


def test_identity_from_dict():
    ident = Identity.from_dict({"type": "UpboundTokens", "source": "Environment", "env": {"name": "TOK"}})
    assert ident.type is IdentityType.UPBOUND_TOKENS
    assert ident.env.name == "TOK"


def test_spec_without_identity():
    spec = ProviderConfigSpec.from_dict({"credentials": {"source": "InjectedIdentity"}})
    assert spec.identity is None
    assert spec.credentials.source is CredentialsSource.INJECTED_IDENTITY


def test_unknown_source_rejected():
    with pytest.raises(ValueError):
        ProviderCredentials.from_dict({"source": "Nowhere"})


def test_missing_credentials_rejected():
    with pytest.raises(ValueError):
        ProviderConfigSpec.from_dict({})