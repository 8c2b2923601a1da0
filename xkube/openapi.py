"""OpenAPI v3 discovery, schema retrieval and reference validation."""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import parse_qs, parse_qsl, unquote, urlsplit

import requests

from .gvk import GvkParser, new_gvk_parser

DISCOVERY_PATH = "/openapi/v3"
ERR_VALIDATE_REFERENCES = "cannot validate references in OpenAPI schemas"


class OpenAPIError(RuntimeError):
    """Raised when OpenAPI data cannot be fetched or understood."""


class ApiError(OpenAPIError):
    """Raised when the API server answers with an error status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"the server responded with status {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class RefValidationError(OpenAPIError):
    """Raised when schemas hold references outside the document."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        detail = errors[0] if len(errors) == 1 else "[" + ", ".join(errors) + "]"
        super().__init__(f"{ERR_VALIDATE_REFERENCES}: {detail}")


class RestClient:
    """Issues GET requests against an API server, honouring its path prefix."""

    def __init__(self, host: str, session: requests.Session | None = None,
                 timeout: float = 30.0) -> None:
        parts = urlsplit(host)
        self._root = f"{parts.scheme}://{parts.netloc}"
        self._prefix = parts.path.rstrip("/")
        self._session = session or requests.Session()
        self.timeout = timeout

    def get(self, path: str, params: Iterable[tuple[str, str]] | None = None,
            headers: Mapping[str, str] | None = None) -> bytes:
        """Fetch path beneath the client's prefix and return the body."""
        url = f"{self._root}{self._prefix}/{path.lstrip('/')}"
        return self._fetch(url, params, headers)

    def _fetch_uri(self, uri: str, headers: Mapping[str, str] | None = None) -> bytes:
        # A server-relative URI replaces the whole path, prefix included.
        return self._fetch(f"{self._root}/{uri.lstrip('/')}", None, headers)

    def _fetch(self, url: str, params, headers) -> bytes:
        response = self._session.get(
            url, params=list(params) if params else None,
            headers=dict(headers) if headers else None, timeout=self.timeout,
        )
        if not response.ok:
            raise ApiError(response.status_code, url)
        return response.content


class OpenAPIGroupVersion:
    """The OpenAPI document of one group version, as listed by discovery."""

    def __init__(self, client: RestClient, server_relative_url: str,
                 use_client_prefix: bool) -> None:
        self.client = client
        self.server_relative_url = server_relative_url
        self.use_client_prefix = use_client_prefix

    def schema(self, content_type: str) -> bytes:
        headers = {"Accept": content_type}
        if not self.use_client_prefix:
            return self.client._fetch_uri(self.server_relative_url, headers)
        locator = urlsplit(self.server_relative_url)
        params = parse_qsl(locator.query, keep_blank_values=True)
        return self.client.get(locator.path, params, headers)


def discovery_paths(
    client: RestClient,
) -> tuple[dict[str, OpenAPIGroupVersion], dict[str, str]]:
    """Map each discovered path to its group version and its schema hash."""
    data = client.get(DISCOVERY_PATH)
    try:
        doc = json.loads(data)
    except ValueError as exc:
        raise OpenAPIError(f"cannot decode OpenAPI discovery document: {exc}") from exc
    if not isinstance(doc, Mapping):
        raise OpenAPIError("OpenAPI discovery document is not an object")
    paths: dict[str, OpenAPIGroupVersion] = {}
    etags: dict[str, str] = {}
    for path, item in (doc.get("paths") or {}).items():
        url = (item or {}).get("serverRelativeURL", "")
        etags[path] = parse_qs(urlsplit(url).query).get("hash", [""])[0]
        paths[path] = OpenAPIGroupVersion(client, url, url.startswith(DISCOVERY_PATH))
    return paths, etags


def _pointer_tokens(fragment: str) -> list[str]:
    return [
        unquote(token).replace("~1", "/").replace("~0", "~")
        for token in fragment.split("/")[1:]
    ]


def validate_ref(ref: str, schemas: Mapping[str, Any]) -> str | None:
    """Describe why ref is not a reference to one of schemas, or return None."""
    if not ref:
        return None
    remote, _, fragment = ref.partition("#")
    if remote:
        return f"only local references are supported, got remote URI: {ref}"
    if fragment and not fragment.startswith("/"):
        return f"only local references are supported, got: {ref}"
    tokens = _pointer_tokens(fragment)
    if len(tokens) != 3 or tokens[0] != "components" or tokens[1] != "schemas":
        return f"expected local ref with #/components/schemas/{{componentName}}, got: {ref}"
    if tokens[2] not in schemas:
        return f"local reference {ref} cannot be found in OpenAPI schemas"
    return None


_SCHEMA_MAPS = ("properties", "patternProperties", "definitions", "dependencies")
_SCHEMA_LISTS = ("allOf", "anyOf", "oneOf")
_SCHEMA_SINGLE = ("not", "additionalProperties", "additionalItems")


def _walk(schema: Any, visit: Callable[[str], None]) -> None:
    if not isinstance(schema, Mapping):
        return
    ref = schema.get("$ref")
    if isinstance(ref, str):
        visit(ref)
    for key in _SCHEMA_MAPS:
        for sub in (schema.get(key) or {}).values():
            _walk(sub, visit)
    for key in _SCHEMA_LISTS:
        for sub in schema.get(key) or []:
            _walk(sub, visit)
    for key in _SCHEMA_SINGLE:
        _walk(schema.get(key), visit)
    items = schema.get("items")
    for sub in items if isinstance(items, list) else [items]:
        _walk(sub, visit)


def collect_ref_errors(schemas: Mapping[str, Any]) -> list[str]:
    """Every reference problem found while walking all schemas."""
    errors: list[str] = []

    def visit(ref: str) -> None:
        problem = validate_ref(ref, schemas)
        if problem:
            errors.append(problem)

    for schema in schemas.values():
        _walk(schema, visit)
    return errors


def new_parser_from_openapi_group_version(oapi_gv: OpenAPIGroupVersion) -> GvkParser:
    """Fetch a group version's schemas, check their references and build a parser."""
    try:
        raw = oapi_gv.schema("application/json")
    except (OpenAPIError, requests.RequestException) as exc:
        raise OpenAPIError(f"cannot get OpenAPI schema: {exc}") from exc
    try:
        doc = json.loads(raw)
    except ValueError as exc:
        raise OpenAPIError(f"cannot unmarshal OpenAPI schema: {exc}") from exc
    if not isinstance(doc, Mapping):
        raise OpenAPIError("cannot unmarshal OpenAPI schema: document is not an object")
    schemas = (doc.get("components") or {}).get("schemas") or {}
    errors = collect_ref_errors(schemas)
    if errors:
        raise RefValidationError(errors)
    return new_gvk_parser(schemas, False)