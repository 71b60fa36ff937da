"""
Property definitions: the declarative schema of one record type.

A definition is written as a plain dictionary and checked against a
JSON Schema meta-schema before use:

```json
{
  "id_property": "SbId",                   // optional
  "fields": {                              // mandatory, ordered
    "StId": {
      "alias": "type",                     // optional
      "type": "integer",                   // string (default), integer, decimal, boolean, date, email
      "default": 1,                        // optional; null is a real default
      "required": true,                    // false (default), true or "always"
      "behavior": "assignedId"             // optional
    }
  },
  "objects": {                             // optional, ordered
    "KnSubjectLink": {
      "type": "KnSubjectLink",             // optional; defaults to the reference field name
      "alias": "subject_link",
      "multiple": false,
      "default": [{"...": "..."}],         // optional; null means "no default"
      "required": false
    }
  }
}
```

Other top-level keys are kept as-is in `extra` for type-specific containers
(e.g. "iso_country_fields").
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import copy

import jsonschema
from jsonschema import Draft202012Validator as DefaultValidator

from .errors import DefinitionError


VALUE_TYPES = ("string", "integer", "decimal", "boolean", "date", "email")
FIELD_BEHAVIORS = ("assignedId",)
# Generic alias for the id property in input.
ID_ALIAS = "@id"

_REQUIRED_SCHEMA = {"anyOf": [{"type": "boolean"}, {"const": "always"}]}

PROPERTY_DEFINITION_META_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["fields"],
    "properties": {
        "id_property": {"type": ["string", "null"]},
        "fields": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "alias": {"type": ["string", "null"]},
                    "type": {"enum": list(VALUE_TYPES)},
                    "default": {"type": ["string", "number", "boolean", "null"]},
                    "required": _REQUIRED_SCHEMA,
                    "behavior": {"enum": list(FIELD_BEHAVIORS) + [None]},
                },
            },
        },
        "objects": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "type": {"type": ["string", "null"]},
                    "alias": {"type": ["string", "null"]},
                    "multiple": {"type": "boolean"},
                    "default": {"type": ["array", "object", "null"]},
                    "required": _REQUIRED_SCHEMA,
                },
            },
        },
    },
}

_meta_validator = DefaultValidator(PROPERTY_DEFINITION_META_SCHEMA)


def format_validation_error(err: jsonschema.exceptions.ValidationError) -> str:
    loc = ".".join([str(p) for p in err.path])
    if loc:
        return f"{loc}: {err.message}"
    return err.message


def check_definition(type_name: str, definition: Any) -> None:
    """
    Check a raw property definition against the meta-schema.

    Raises:
        DefinitionError: If the definition does not conform.
    """
    if not isinstance(definition, dict):
        raise DefinitionError(f"'{type_name}' property definition must be a dictionary.")
    errors = [format_validation_error(e) for e in _meta_validator.iter_errors(definition)]
    if errors:
        raise DefinitionError(f"'{type_name}' property definition is invalid: " + "; ".join(errors))


def name_and_alias(name: str, alias: Optional[str]) -> str:
    """Describe a property for messages: 'Name' (alias)."""
    return f"'{name}'" + (f" ({alias})" if alias else "")


class FieldDef:
    """Definition of one field of a record type."""

    def __init__(self, name: str, properties: Dict[str, Any]) -> None:
        self.name = name
        self.alias: Optional[str] = properties.get("alias") or None
        self.value_type: str = properties.get("type", "string")
        # A default of None is a real default (null), distinct from no default.
        self.has_default: bool = "default" in properties
        self.default: Any = properties.get("default")
        self.required: Union[bool, str] = properties.get("required", False)
        self.behavior: Optional[str] = properties.get("behavior")

    @property
    def is_assigned_id(self) -> bool:
        return self.behavior == "assignedId"

    def describe(self) -> str:
        return name_and_alias(self.name, self.alias)

    def to_dict(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        if self.alias:
            properties["alias"] = self.alias
        if self.value_type != "string":
            properties["type"] = self.value_type
        if self.has_default:
            properties["default"] = self.default
        if self.required:
            properties["required"] = self.required
        if self.behavior:
            properties["behavior"] = self.behavior
        return properties


class ReferenceDef:
    """Definition of one reference field (embedded object) of a record type."""

    def __init__(self, name: str, properties: Dict[str, Any]) -> None:
        self.name = name
        self.target_type: str = properties.get("type") or name
        self.alias: Optional[str] = properties.get("alias") or None
        self.multiple: bool = bool(properties.get("multiple", False))
        # Unlike fields, a null default means "no default".
        self.default: Optional[Any] = copy.deepcopy(properties.get("default"))
        self.required: Union[bool, str] = properties.get("required", False)

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def describe(self) -> str:
        return name_and_alias(self.name, self.alias)

    def to_dict(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        if self.target_type != self.name:
            properties["type"] = self.target_type
        if self.alias:
            properties["alias"] = self.alias
        if self.multiple:
            properties["multiple"] = True
        if self.default is not None:
            properties["default"] = copy.deepcopy(self.default)
        if self.required:
            properties["required"] = self.required
        return properties


class PropertyDefinition:
    """Checked, ordered property definition for one record type."""

    def __init__(
        self,
        type_name: str,
        id_property: Optional[str],
        fields: Dict[str, FieldDef],
        objects: Dict[str, ReferenceDef],
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.type_name = type_name
        self.id_property = id_property or None
        self.fields = fields
        self.objects = objects
        self.extra: Dict[str, Any] = extra or {}
        self.__check_aliases()

    @classmethod
    def from_dict(cls, type_name: str, definition: Dict[str, Any]) -> "PropertyDefinition":
        """
        Build a property definition from its dictionary form.

        Raises:
            DefinitionError: If the definition is malformed.
        """
        check_definition(type_name, definition)
        fields = {name: FieldDef(name, props) for name, props in definition["fields"].items()}
        objects = {name: ReferenceDef(name, props) for name, props in (definition.get("objects") or {}).items()}
        extra = {
            key: copy.deepcopy(value)
            for key, value in definition.items()
            if key not in ("id_property", "fields", "objects")
        }
        return cls(type_name, definition.get("id_property"), fields, objects, extra)

    def to_dict(self) -> Dict[str, Any]:
        definition: Dict[str, Any] = {}
        if self.id_property:
            definition["id_property"] = self.id_property
        definition["fields"] = {name: field.to_dict() for name, field in self.fields.items()}
        if self.objects:
            definition["objects"] = {name: ref.to_dict() for name, ref in self.objects.items()}
        definition.update(copy.deepcopy(self.extra))
        return definition

    def with_field_properties(self, updates: Dict[str, Dict[str, Any]], removals: Optional[Dict[str, List[str]]] = None) -> "PropertyDefinition":
        """
        Return a copy with some field properties changed.

        Args:
            updates: {field_name: {property: value}} to set.
            removals: {field_name: [property, ...]} to remove.
        """
        definition = self.to_dict()
        for field_name, properties in updates.items():
            definition["fields"].setdefault(field_name, {}).update(properties)
        for field_name, properties in (removals or {}).items():
            for property_name in properties:
                definition["fields"].get(field_name, {}).pop(property_name, None)
        return PropertyDefinition.from_dict(self.type_name, definition)

    # ----------------------------- Lookups ------------------------------------

    @property
    def id_key(self) -> Optional[str]:
        """Key holding the id value inside an element, e.g. '@SbId'."""
        return f"@{self.id_property}" if self.id_property else None

    def resolve_field_name(self, name_or_alias: str) -> Optional[str]:
        if name_or_alias in self.fields:
            return name_or_alias
        for name, field in self.fields.items():
            if field.alias == name_or_alias:
                return name
        return None

    def resolve_object_name(self, name_or_alias: str) -> Optional[str]:
        if name_or_alias in self.objects:
            return name_or_alias
        for name, ref in self.objects.items():
            if ref.alias == name_or_alias:
                return name
        return None

    def input_keys(self) -> Iterator[str]:
        """All keys recognized in flat input: id keys, names and aliases."""
        if self.id_key:
            yield self.id_key
            yield ID_ALIAS
        for name, ref in self.objects.items():
            yield name
            if ref.alias:
                yield ref.alias
        for name, field in self.fields.items():
            yield name
            if field.alias:
                yield field.alias

    def assigned_id_fields(self) -> List[FieldDef]:
        return [field for field in self.fields.values() if field.is_assigned_id]

    def __check_aliases(self) -> None:
        seen: Dict[str, Tuple[str, str]] = {}
        for kind, definitions in (("field", self.fields), ("object", self.objects)):
            for name in definitions:
                seen.setdefault(name, (kind, name))
        for kind, definitions in (("field", self.fields), ("object", self.objects)):
            for name, definition in definitions.items():
                alias = definition.alias
                if not alias:
                    continue
                if alias in seen and seen[alias] != (kind, name):
                    other_kind, other_name = seen[alias]
                    raise DefinitionError(
                        f"'{self.type_name}' property definition uses '{alias}' for both {kind} '{name}' and {other_kind} '{other_name}'."
                    )
                seen[alias] = (kind, name)
