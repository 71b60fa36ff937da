"""
Input normalization: turn loosely shaped input into canonical element parts.

Accepted input for one container:
- a single element dict, a list of element dicts, or a dict of {index: element};
- optionally wrapped once in {type_name: ...} and/or {"Element": ...};
- each element either flat (field/object names or aliases as keys, plus an
  optional "@<IdName>" / "@id" key) or well-formed (only an id key plus
  "Fields" and/or "Objects" buckets).

All functions here are pure; they never modify their arguments.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from .errors import InputError
from .property_definitions import ID_ALIAS, PropertyDefinition

ELEMENT_KEY = "Element"
FIELDS_KEY = "Fields"
OBJECTS_KEY = "Objects"

ElementIndex = Union[int, str]


class ElementParts(NamedTuple):
    """One element split into its canonical parts."""
    well_formed: bool
    id_present: bool
    id_value: Any
    # Canonical names, in definition order.
    objects: Dict[str, Any]
    fields: Dict[str, Any]
    # Leftover keys. Flat input only fills unknown_keys.
    unknown_fields: Dict[str, Any]
    unknown_objects: Dict[str, Any]
    unknown_keys: Dict[str, Any]
    errors: List[str]


def unwrap(raw: Any, type_name: str) -> Any:
    """Remove one {type_name: ...} wrapper and then one {"Element": ...} wrapper, if present."""
    for wrapper in (type_name, ELEMENT_KEY):
        if isinstance(raw, dict) and len(raw) == 1 and wrapper in raw and isinstance(raw[wrapper], (dict, list)):
            raw = raw[wrapper]
    return raw


def is_well_formed(raw: Any, id_keys: Iterable[str] = ()) -> bool:
    """
    Return whether an element is in the canonical {id?, Fields?, Objects?} shape.

    At least one bucket must be present, every bucket must be a dict and no
    other keys than the id keys are allowed next to them.
    """
    if not isinstance(raw, dict) or not raw:
        return False
    buckets = [key for key in (FIELDS_KEY, OBJECTS_KEY) if key in raw]
    if not buckets:
        return False
    if not all(isinstance(raw[key], dict) for key in buckets):
        return False
    allowed = {FIELDS_KEY, OBJECTS_KEY, *id_keys}
    return all(key in allowed for key in raw)


def is_element_collection(raw: Any, known_keys: Iterable[str]) -> bool:
    """
    Return whether a dict holds several elements keyed by index rather than one element.

    This is the case if every value is a dict and none of the keys is
    recognized as an element key (id, field, object, bucket).
    """
    if not isinstance(raw, dict) or not raw:
        return False
    recognized = {FIELDS_KEY, OBJECTS_KEY, ELEMENT_KEY, *known_keys}
    if any(key in recognized for key in raw):
        return False
    return all(isinstance(value, dict) for value in raw.values())


def split_elements(raw: Any, definition: PropertyDefinition) -> List[Tuple[Optional[ElementIndex], Any]]:
    """
    Split (unwrapped) input into (requested index or None, raw element) pairs.

    Raises:
        InputError: If the input is neither a dict nor a list.
    """
    raw = unwrap(raw, definition.type_name)
    if isinstance(raw, list):
        return [(None, element) for element in raw]
    if isinstance(raw, dict):
        if not raw:
            # One element without values; validation reports what is missing.
            return [(None, {})]
        if is_element_collection(raw, definition.input_keys()):
            return list(raw.items())
        return [(None, raw)]
    raise InputError(f"'{definition.type_name}' elements must be provided as a dictionary or list, got {type(raw).__name__}.")


def take_value(source: Dict[str, Any], name: str, alias: Optional[str]) -> Tuple[bool, Any, bool]:
    """
    Pop a value from `source` by its name, or else by its alias.

    Returns:
        (present, value, conflict) where conflict means both name and alias were given.
    """
    by_name = name in source
    by_alias = bool(alias) and alias != name and alias in source
    if by_name and by_alias:
        source.pop(alias)
        return True, source.pop(name), True
    if by_name:
        return True, source.pop(name), False
    if by_alias:
        return True, source.pop(alias), False
    return False, None, False


def extract_id(source: Dict[str, Any], id_key: str) -> Tuple[bool, Any, bool]:
    """
    Pop the id value from `source`, given by its canonical "@<IdName>" key or by "@id".

    Returns:
        (present, value, conflict) where conflict means both keys hold different values.
    """
    by_key = id_key in source
    by_alias = ID_ALIAS in source and ID_ALIAS != id_key
    if by_key and by_alias:
        alias_value = source.pop(ID_ALIAS)
        value = source.pop(id_key)
        return True, value, alias_value != value
    if by_key:
        return True, source.pop(id_key), False
    if by_alias:
        return True, source.pop(ID_ALIAS), False
    return False, None, False


def split_element(raw: Dict[str, Any], definition: PropertyDefinition, element_descr: str) -> ElementParts:
    """
    Resolve names and aliases of one raw element against a property definition.

    Errors (name/alias collisions, conflicting ids) are collected in the
    returned parts rather than raised.
    """
    errors: List[str] = []
    id_keys = [definition.id_key, ID_ALIAS] if definition.id_key else []
    well_formed = is_well_formed(raw, id_keys)

    top = dict(raw)
    id_present, id_value = False, None
    if definition.id_key:
        id_present, id_value, conflict = extract_id(top, definition.id_key)
        if conflict:
            errors.append(f"{element_descr} has different values for the ID provided by both {definition.id_key} and alias {ID_ALIAS}.")

    if well_formed:
        object_source = dict(top.pop(OBJECTS_KEY, {}))
        field_source = dict(top.pop(FIELDS_KEY, {}))
    else:
        object_source = field_source = top

    objects: Dict[str, Any] = {}
    for name, ref in definition.objects.items():
        present, value, conflict = take_value(object_source, name, ref.alias)
        if conflict:
            errors.append(f"{element_descr} has a value provided by both its property name {name} and alias {ref.alias}.")
        if present:
            objects[name] = value

    fields: Dict[str, Any] = {}
    for name, field in definition.fields.items():
        present, value, conflict = take_value(field_source, name, field.alias)
        if conflict:
            errors.append(f"{element_descr} has a value provided by both its field name {name} and alias {field.alias}.")
        if present:
            fields[name] = value

    if well_formed:
        return ElementParts(True, id_present, id_value, objects, fields, field_source, object_source, top, errors)
    return ElementParts(False, id_present, id_value, objects, fields, {}, {}, top, errors)
