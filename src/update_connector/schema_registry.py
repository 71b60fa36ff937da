"""
SchemaRegistry: holds the property definitions and container classes per record type.

Definitions for a type are merged from three layers, in increasing order of precedence:
1. built-in definitions (passed at construction),
2. a whole-type override: a sparse definition whose individual field/object
   entries replace (or, when None, delete) the built-in entry; other
   top-level keys are replaced wholesale,
3. single-field overrides: {field_or_reference_name: {property: value}}.

The registry is meant to be configured once at startup (override_type,
override_field, register_type, load_overrides) and then built. It does no
locking; configure it before sharing it between threads.

Usage:
```python
registry = SchemaRegistry({"Order": {"fields": {"Currency": {"alias": "currency_code", "default": "EUR"}}}})
registry.override_field("Order", "Currency", "default", "USD")
registry.build()
order = registry.create("Order", {"currency_code": "GBP"}, action="insert")
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type
import copy
import json
import logging

from jsonschema import Draft202012Validator as DefaultValidator

from .errors import DefinitionError, UnknownTypeError
from .property_definitions import PropertyDefinition, format_validation_error

if TYPE_CHECKING:
    from .behavior import ValidationBehavior
    from .record_container import RecordContainer


logger = logging.getLogger(__name__)


OVERRIDES_FILE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "types": {
            "type": "object",
            "additionalProperties": {"type": ["object", "null"]},
        },
        "fields": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": {"type": "object"},
            },
        },
    },
}


def _check_type_override(type_name: str, override: Any) -> None:
    if not isinstance(override, dict):
        raise DefinitionError(f"Override for '{type_name}' must be a dictionary.")
    for section in ("fields", "objects"):
        if section not in override:
            continue
        entries = override[section]
        if not isinstance(entries, dict):
            raise DefinitionError(f"Override for '{type_name}' has a non-dictionary '{section}' value.")
        for name, entry in entries.items():
            if entry is not None and not isinstance(entry, dict):
                raise DefinitionError(
                    f"Override for '{type_name}' {section} entry '{name}' must be a dictionary or None."
                )
    if "id_property" in override and override["id_property"] is not None and not isinstance(override["id_property"], str):
        raise DefinitionError(f"Override for '{type_name}' has a non-string 'id_property' value.")


def merge_definitions(
    type_name: str,
    builtin: Optional[Dict[str, Any]],
    type_override: Optional[Dict[str, Any]] = None,
    field_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Merge the definition layers for one type. Pure function: inputs are not modified.

    Args:
        type_name: Record type, for messages.
        builtin: Built-in definition, or None.
        type_override: Sparse whole-type override, or None.
        field_overrides: {name: {property: value}} applied to fields (or,
            if no such field exists, to reference fields) last.

    Returns:
        The merged definition dictionary (not yet checked against the meta-schema).

    Raises:
        UnknownTypeError: If neither a built-in definition nor an override exists.
        DefinitionError: If an override has an invalid shape or targets an unknown field.
    """
    if builtin is None and type_override is None:
        raise UnknownTypeError(f"No property definitions found for '{type_name}' object.")

    merged: Dict[str, Any] = copy.deepcopy(builtin) if builtin is not None else {}
    if type_override is not None:
        _check_type_override(type_name, type_override)
        for key, value in type_override.items():
            if key in ("fields", "objects"):
                section = merged.setdefault(key, {})
                for name, entry in value.items():
                    if entry is None:
                        section.pop(name, None)
                    else:
                        section[name] = copy.deepcopy(entry)
            else:
                merged[key] = copy.deepcopy(value)

    for name, properties in (field_overrides or {}).items():
        if not isinstance(properties, dict):
            raise DefinitionError(f"Field override for '{type_name}.{name}' must be a dictionary.")
        if name in merged.get("fields", {}):
            target = merged["fields"][name]
        elif name in (merged.get("objects") or {}):
            target = merged["objects"][name]
        else:
            raise DefinitionError(f"Field override targets unknown field '{name}' of '{type_name}'.")
        target.update(copy.deepcopy(properties))

    return merged


class SchemaRegistry:
    """Registry of property definitions and container implementations per record type."""

    def __init__(self, builtin_definitions: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        """
        Initialize a registry.

        Args:
            builtin_definitions: {type_name: definition dict}. Copied.
        """
        self.__builtin: Dict[str, Dict[str, Any]] = copy.deepcopy(builtin_definitions or {})
        self.__type_overrides: Dict[str, Dict[str, Any]] = {}
        self.__field_overrides: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.__container_classes: Dict[str, Type["RecordContainer"]] = {}
        self.__compiled: Dict[str, PropertyDefinition] = {}
        self.__built = False

    # ----------------------------- Configuration ------------------------------

    def override_type(self, type_name: str, override: Optional[Dict[str, Any]]) -> None:
        """
        Set (or, with None, remove) the whole-type override for a type.

        Raises:
            DefinitionError: If the override has an invalid shape.
        """
        if override is None:
            self.__type_overrides.pop(type_name, None)
        else:
            _check_type_override(type_name, override)
            self.__type_overrides[type_name] = copy.deepcopy(override)
        logger.info(f"Registered type override for '{type_name}'")
        self._invalidate(type_name)

    def override_field(self, type_name: str, field_name: str, property_name: str, value: Any) -> None:
        """Override one property of one field (or reference field) of a type."""
        if not isinstance(property_name, str) or not property_name:
            raise DefinitionError("Field override property name must be a non-empty string.")
        self.__field_overrides.setdefault(type_name, {}).setdefault(field_name, {})[property_name] = copy.deepcopy(value)
        logger.info(f"Registered field override '{type_name}.{field_name}.{property_name}'")
        self._invalidate(type_name)

    def clear_field_overrides(self, type_name: str) -> None:
        self.__field_overrides.pop(type_name, None)
        self._invalidate(type_name)

    def register_type(self, type_name: str, container_class: Type["RecordContainer"]) -> None:
        """Register the container class that implements a type."""
        from .record_container import RecordContainer

        if not isinstance(container_class, type) or not issubclass(container_class, RecordContainer):
            raise DefinitionError(f"Container class for '{type_name}' must be a RecordContainer subclass.")
        self.__container_classes[type_name] = container_class
        logger.debug(f"Registered container class {container_class.__name__} for '{type_name}'")

    def load_overrides(self, path: str) -> None:
        """
        Load overrides from a JSON file.

        File format: {"types": {type: override-or-null}, "fields": {type: {field: {property: value}}}}

        Raises:
            DefinitionError: If the file content does not conform.
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise DefinitionError(f"Overrides file {path} is not valid JSON: {e}") from e

        errors = [format_validation_error(e) for e in DefaultValidator(OVERRIDES_FILE_SCHEMA).iter_errors(data)]
        if errors:
            raise DefinitionError(f"Overrides file {path} is invalid: " + "; ".join(errors))

        for type_name, override in data.get("types", {}).items():
            self.override_type(type_name, override)
        for type_name, fields in data.get("fields", {}).items():
            for field_name, properties in fields.items():
                for property_name, value in properties.items():
                    self.override_field(type_name, field_name, property_name, value)
        logger.info(f"Loaded overrides from {path}")

    def build(self) -> "SchemaRegistry":
        """
        Merge and check the definitions of every known type.

        Raises:
            DefinitionError: On the first malformed definition.
        """
        for type_name in self.known_types():
            self.definitions_for(type_name)
        self.__built = True
        logger.debug(f"Built schema registry with {len(self.__compiled)} types")
        return self

    def _invalidate(self, type_name: str) -> None:
        if type_name in self.__compiled:
            del self.__compiled[type_name]
            if self.__built:
                logger.warning(f"Definitions for '{type_name}' changed after the registry was built")

    # ----------------------------- Lookups ------------------------------------

    def known_types(self) -> List[str]:
        names = list(self.__builtin)
        names.extend(name for name in self.__type_overrides if name not in self.__builtin)
        return names

    def definitions_for(self, type_name: str) -> PropertyDefinition:
        """
        Return the merged property definition for a type.

        Raises:
            UnknownTypeError: If the type is not known.
            DefinitionError: If the merged definition is malformed.
        """
        if type_name in self.__compiled:
            return self.__compiled[type_name]
        merged = merge_definitions(
            type_name,
            self.__builtin.get(type_name),
            self.__type_overrides.get(type_name),
            self.__field_overrides.get(type_name),
        )
        definition = PropertyDefinition.from_dict(type_name, merged)
        self.__compiled[type_name] = definition
        return definition

    def container_class_for(self, type_name: str) -> Optional[Type["RecordContainer"]]:
        return self.__container_classes.get(type_name)

    def create(
        self,
        type_name: str,
        elements: Any = None,
        action: str = "",
        validation: Optional["ValidationBehavior"] = None,
        parent_type: str = "",
    ) -> "RecordContainer":
        """Create a container for a type; see RecordContainer.create()."""
        from .record_container import RecordContainer

        return RecordContainer.create(self, type_name, elements, action, validation, parent_type)
