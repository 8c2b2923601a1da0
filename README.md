# xkube

Helpers for reaching Kubernetes clusters that a provider configuration
describes. The package builds REST connection settings and adds identity
credentials to them. It also caches the state and schema data used for
server-side apply.

## Modules

- **`xkube.config`**: the provider configuration types `ProviderConfigSpec`,
  `ProviderCredentials` and `Identity`, plus the enums `CredentialsSource`
  (`None`, `Secret`, `InjectedIdentity`, `Environment`, `Filesystem`) and
  `IdentityType`. Each configuration type has a `from_dict` that builds it
  from a plain dictionary. It raises `ValueError` when a required field is
  missing.
- **`xkube.restconfig`**:
  - `load_kubeconfig` parses kubeconfig YAML into named contexts, clusters
    and users.
  - `from_api_config` builds a `RestConfig` from the current context. It
    takes the host, basic and bearer credentials, impersonation, an exec
    provider, and TLS data decoded from base64.
  - QPS is set to 50 and burst to 300.
  - A missing current context or cluster raises `KubeconfigError`.
  - `RestConfig.wrap` adds a transport wrapper. `RestConfig.transport`
    applies the wrappers in order over a base sender.
- **`xkube.tokens`**:
  - `Token` is valid when it is non-empty and more than ten seconds from
    expiry.
  - `StaticTokenSource` always returns the same token.
  - `ReuseTokenSource` keeps a token until it stops being valid.
  - `ReuseSourceStore` keeps one reusing source per refresh token, keyed by
    `hash_token` (hex SHA-256).
- **`xkube.transport`**:
  - `HttpRequest` holds an outgoing request, and `clone_request` copies it.
  - `TokenTransport` sets `Authorization: Bearer ...` on a copy of the request
    and passes it to the base sender. The default base sender sends it with
    `requests`.
- **`xkube.upbound`**:
  - `organization_from_exec` checks an `up organization token` exec section
    and returns its organisation. An `ORGANIZATION` environment entry wins over
    the third argument.
  - `wrap_rest_config` removes the exec provider and adds a `TokenTransport`
    backed by an `UpboundTokenSource`.
- **`xkube.builder`**: `IdentityAwareBuilder.rest_for_provider_config` builds
  a `RestConfig` for a `ProviderConfigSpec`.
  - Credentials can come from a secret, through a `read_secret(namespace,
    name)` callable, from an environment variable or from a file.
  - `InjectedIdentity` builds an in-cluster configuration. It uses
    `KUBERNETES_SERVICE_HOST`/`KUBERNETES_SERVICE_PORT` and the service-account
    token.
  - It then applies the identity. Google and Azure use the `google` and
    `azure` callables; Upbound uses `upbound_fetch`.
  - Failures raise `BuilderError`.
- **`xkube.state_cache`**:
  - `DesiredStateCache` holds one extracted state. The state is returned only
    while the object's manifest hash matches (`manifest_hash`).
  - `DesiredStateCacheManager` keeps one cache per managed object `uid`.
- **`xkube.gvk`**:
  - `GroupVersion` and `GroupVersionKind` are identifiers.
  - `gv_relative_api_path` gives the discovery path, such as `api/v1` or
    `apis/apps/v1`.
  - `parse_group_version_kind` reads the `x-kubernetes-group-version-kind`
    extension.
  - `new_gvk_parser` builds a `GvkParser` that maps each kind to its
    component schema. Duplicate kinds raise `GvkParserError`.
- **`xkube.openapi`**:
  - `RestClient` issues GET requests and honours a path prefix in the host.
  - `discovery_paths` reads `/openapi/v3` and returns each path's
    `OpenAPIGroupVersion` and schema hash.
  - `collect_ref_errors` and `validate_ref` accept only
    `#/components/schemas/<name>` references that exist in the document.
  - `new_parser_from_openapi_group_version` fetches a schema, checks its
    references and builds a parser. Bad references raise
    `RefValidationError`.
- **`xkube.extractor`**:
  - `GVKParserCache` stores parsers per group version, tagged with their
    schema hash.
  - `GVKParserCacheManager` keeps one cache per provider configuration `uid`.
  - `CachingExtractor.get_parser_for_gv` first drops entries whose hash
    changed or that left discovery. It then reuses a cached parser or builds
    a new one. Concurrent builds for the same group version run only once.
  - A parser whose discovery hash is empty is never cached.
  - A group version missing from discovery raises `DiscoveryError`.

## What the package does not do

- It has no command-line program, and it runs no controller or reconcile
  loop.
- It does not fetch Google or Azure tokens itself. Those identity types work
  only through the `google` and `azure` callables given to
  `IdentityAwareBuilder`. The Upbound token exchange likewise needs an
  `upbound_fetch` callable that returns `(access_token, expires_in)`.
- `GvkParser.type` returns the named component schema as a `ParseableType`.
  The package does not extract the fields owned by a field manager from an
  object.

## Installation

```
pip install xkube
```

## Example

```python
from xkube.restconfig import load_kubeconfig, from_api_config

with open("kubeconfig.yaml", "rb") as fh:
    rc = from_api_config(load_kubeconfig(fh.read()))
print(rc.host)
```

Parser caching for a cluster:

```python
from xkube.extractor import GVKParserCache, CachingExtractor
from xkube.gvk import GroupVersion, GroupVersionKind
from xkube.openapi import RestClient

client = RestClient("https://cluster.example.com")
extractor = CachingExtractor(client, GVKParserCache())
parser = extractor.get_parser_for_gv(GroupVersion("apps", "v1"))
print(parser.type(GroupVersionKind("apps", "v1", "Deployment")))
```

## Running the tests

```
pip install -e ".[test]"
pytest
```