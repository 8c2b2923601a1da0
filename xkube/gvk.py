"""Group/version/kind identifiers and a parser that maps kinds to schemas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

GROUP_VERSION_KIND_EXTENSION_KEY = "x-kubernetes-group-version-kind"


class GvkParserError(ValueError):
    """Raised when a parser cannot be built from a set of schemas."""


@dataclass(frozen=True)
class GroupVersion:
    """An API group and version."""

    group: str
    version: str

    def __str__(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"


@dataclass(frozen=True)
class GroupVersionKind:
    """An API group, version and kind."""

    group: str
    version: str
    kind: str

    @property
    def group_version(self) -> GroupVersion:
        return GroupVersion(self.group, self.version)

    def __str__(self) -> str:
        return f"{self.group}/{self.version}, Kind={self.kind}"


@dataclass(frozen=True)
class ParseableType:
    """A named type together with the schema that defines it."""

    name: str
    schema: Mapping[str, Any] | None = None

    def is_valid(self) -> bool:
        return self.schema is not None


class GvkParser:
    """Looks up the schema type that describes a group/version/kind."""

    def __init__(
        self,
        gvks: Mapping[GroupVersionKind, str],
        types: Mapping[str, Mapping[str, Any]],
        preserve_unknown_fields: bool = False,
    ) -> None:
        self.gvks = dict(gvks)
        self.types = dict(types)
        self.preserve_unknown_fields = preserve_unknown_fields

    def type(self, gvk: GroupVersionKind) -> ParseableType | None:
        """The type for gvk, or None when the parser does not know the kind."""
        name = self.gvks.get(gvk)
        if name is None:
            return None
        return ParseableType(name, self.types.get(name))


def gv_relative_api_path(gv: GroupVersion) -> str:
    """The OpenAPI discovery path of a group version."""
    if not gv.group:
        return f"api/{gv.version}"
    return f"apis/{gv}"


def parse_group_version_kind(extensions: Mapping[str, Any] | None) -> list[GroupVersionKind]:
    """Read the group/version/kind list from a schema's extensions."""
    if not extensions:
        return []
    entries = extensions.get(GROUP_VERSION_KIND_EXTENSION_KEY)
    if not isinstance(entries, list):
        return []
    result = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        fields = [entry.get(key) for key in ("group", "version", "kind")]
        if not all(isinstance(value, str) for value in fields):
            continue
        result.append(GroupVersionKind(*fields))
    return result


def new_gvk_parser(
    component_name_to_schema: Mapping[str, Any], preserve_unknown_fields: bool
) -> GvkParser:
    """Build a parser from OpenAPI component schemas keyed by name."""
    types: dict[str, Mapping[str, Any]] = {}
    for name, schema in component_name_to_schema.items():
        if not isinstance(schema, Mapping):
            raise GvkParserError(
                f"failed to convert models to schema: schema {name!r} is not an object"
            )
        types[name] = schema
    gvks: dict[GroupVersionKind, str] = {}
    for name, schema in types.items():
        for gvk in parse_group_version_kind(schema):
            if not gvk.kind:
                continue
            if gvk in gvks:
                raise GvkParserError(f"duplicate entry for {gvk}")
            gvks[gvk] = name
    return GvkParser(gvks, types, preserve_unknown_fields)