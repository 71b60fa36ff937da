"""
Validation of container elements.

Validation is depth first: embedded objects of an element are validated
(recursively) before the element's own fields. Nothing is raised from here;
every problem is recorded in an error map keyed by property path, which is
returned next to the validated element:

    validated, errors = validate_element(container, element, index, change, validation, count)

Value type validators are registered per declared value type.
Validator signature: `(value, reformat, check_format) -> (is_valid, error, value)`
- is_valid: True if the value passes
- error: Empty string if valid, otherwise the end of a sentence ("must be numeric")
- value: The value, converted to its declared type if `reformat` is set
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, NamedTuple, Optional, Tuple
import logging
import math
import re

from .behavior import ChangeBehavior, ValidationBehavior
from .errors import InputError
from .input_normalizer import ELEMENT_KEY, FIELDS_KEY, OBJECTS_KEY, ElementIndex
from .property_definitions import FieldDef, PropertyDefinition

if TYPE_CHECKING:
    from .record_container import RecordContainer


logger = logging.getLogger(__name__)

ErrorMap = Dict[str, List[str]]

TODAY = "today"
_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

# Function registry for value type validators
__value_validator_registry: Dict[str, Callable] = {}


def _register_value_validator(value_type: str):
    """Decorator to register a validator function for a declared value type."""
    def decorator(func: Callable):
        __value_validator_registry[value_type] = func
        return func
    return decorator


def _get_value_validator(value_type: str) -> Optional[Callable]:
    """Get the validator function for a declared value type."""
    return __value_validator_registry.get(value_type)


# ----------------------------- Error map helpers ------------------------------

def add_error(errors: ErrorMap, key: str, message: str) -> None:
    errors.setdefault(key, []).append(message)


def merge_errors(target: ErrorMap, source: ErrorMap, prefix: str = "") -> None:
    for key, messages in source.items():
        target.setdefault(f"{prefix}{key}", []).extend(messages)


def describe_element(type_name: str, element_index: ElementIndex, count: int) -> str:
    """Describe an element for messages. The index is left out if there is only one element."""
    descr = f"'{type_name}' element"
    if count > 1:
        if isinstance(element_index, int):
            descr += f" with index {element_index + 1}"
        else:
            descr += f" with key '{element_index}'"
    return descr


# ----------------------------- Validated results ------------------------------

class EmbeddedObject(NamedTuple):
    """Validated elements of one reference field."""
    type_name: str
    multiple: bool
    elements: List["ValidatedElement"]

    def payload(self) -> Any:
        """Value for the "Element" key: one element, or a list if the reference field allows multiple."""
        if self.multiple:
            return [element.to_dict() for element in self.elements]
        return self.elements[0].to_dict()


class ValidatedElement:
    """A validated copy of one element, with the context needed for serialization."""

    def __init__(
        self,
        index: ElementIndex,
        action: str,
        id_property: Optional[str],
        id_value: Any,
        fields: Dict[str, Any],
        objects: Dict[str, EmbeddedObject],
    ) -> None:
        self.index = index
        self.action = action
        self.id_property = id_property
        self.id_value = id_value
        self.fields = fields
        self.objects = objects

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation: {"@IdName"?: id, "Fields": {...}, "Objects"?: {ref: {"Element": ...}}}."""
        element: Dict[str, Any] = {}
        if self.id_property and self.id_value is not None:
            element[f"@{self.id_property}"] = self.id_value
        element[FIELDS_KEY] = dict(self.fields)
        if self.objects:
            element[OBJECTS_KEY] = {name: {ELEMENT_KEY: embedded.payload()} for name, embedded in self.objects.items()}
        return element


# ----------------------------- Field values -----------------------------------

def resolve_default(field: FieldDef) -> Any:
    """Return a field's default value; the date default "today" resolves to the current date."""
    if field.value_type == "date" and field.default == TODAY:
        return date.today().isoformat()
    return field.default


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def is_numeric(value: Any) -> bool:
    """Check for a finite number, or a string holding one; booleans are not numeric."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int) or (isinstance(value, str) and _INTEGER_RE.match(value)):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value)) and math.isfinite(float(value))


def validate_field_value(
    value: Any,
    field: FieldDef,
    change: ChangeBehavior,
    validation: ValidationBehavior,
    element_descr: str,
) -> Tuple[Any, Optional[str]]:
    """
    Validate (and, if allowed, reformat) one field value.

    Null values are not validated; requiredness is checked elsewhere.

    Returns:
        (value, error) where error is None if the value is valid or was not checked.
    """
    if value is None:
        return None, None

    check = validation.essential or validation.format
    is_date_object = field.value_type == "date" and isinstance(value, date)
    if not _is_scalar(value) and not is_date_object:
        if check:
            return value, f"{field.describe()} field value of {element_descr} must be scalar."
        return value, None

    validator = _get_value_validator(field.value_type)
    if validator:
        is_valid, error, converted = validator(value, change.allow_reformat, validation.format)
        if not is_valid:
            if check:
                return value, f"{field.describe()} field value of {element_descr} {error}."
        else:
            value = converted

    if isinstance(value, str) and change.allow_reformat:
        value = value.strip()
    return value, None


# ----------------------------- Default Validators -----------------------------

@_register_value_validator("string")
def _string_validator(value: Any, reformat: bool, check_format: bool) -> Tuple[bool, str, Any]:
    """Any scalar is accepted as a string value."""
    return True, "", value


@_register_value_validator("boolean")
def _boolean_validator(value: Any, reformat: bool, check_format: bool) -> Tuple[bool, str, Any]:
    """Accept booleans, "true"/"false" and 0/1/-1."""
    if isinstance(value, bool):
        return True, "", value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "false"):
            return True, "", (text == "true") if reformat else value
        if text in ("0", "1", "-1"):
            return True, "", (text != "0") if reformat else value
    elif isinstance(value, (int, float)) and value in (0, 1, -1):
        return True, "", (value != 0) if reformat else value
    return False, "must be a boolean value", value


@_register_value_validator("integer")
def _integer_validator(value: Any, reformat: bool, check_format: bool) -> Tuple[bool, str, Any]:
    """Validate an integer value; a value containing a decimal point is rejected."""
    if not is_numeric(value):
        return False, "must be numeric", value
    if isinstance(value, float):
        if not value.is_integer():
            return False, "must be an integer value", value
    elif "." in str(value):
        return False, "must be an integer value", value
    if not reformat:
        return True, "", value
    if isinstance(value, str):
        text = value.strip()
        return True, "", int(text) if _INTEGER_RE.match(text) else int(float(text))
    return True, "", int(value)


@_register_value_validator("decimal")
def _decimal_validator(value: Any, reformat: bool, check_format: bool) -> Tuple[bool, str, Any]:
    """Validate a numeric value."""
    if not is_numeric(value):
        return False, "must be numeric", value
    if reformat and isinstance(value, str):
        text = value.strip()
        return True, "", int(text) if _INTEGER_RE.match(text) else float(text)
    return True, "", value


@_register_value_validator("date")
def _date_validator(value: Any, reformat: bool, check_format: bool) -> Tuple[bool, str, Any]:
    """Validate a date; with format checking, strings must be YYYY-MM-DD. Date objects are converted to strings."""
    if isinstance(value, date):
        # Date objects are always stored and output as YYYY-MM-DD strings.
        return True, "", value.strftime("%Y-%m-%d")
    if not isinstance(value, str):
        return False, f"must be a date string, got {type(value).__name__}", value
    if check_format:
        try:
            datetime.strptime(value.strip(), "%Y-%m-%d")
        except ValueError:
            return False, f"must be a date in YYYY-MM-DD format, got '{value}'", value
    return True, "", value


@_register_value_validator("email")
def _email_validator(value: Any, reformat: bool, check_format: bool) -> Tuple[bool, str, Any]:
    """Validate an e-mail address."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value.strip()):
        return False, "must be a valid e-mail address", value
    return True, "", value


# ----------------------------- Elements ---------------------------------------

def _is_id_value(value: Any) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def validate_element(
    container: "RecordContainer",
    element: Dict[str, Any],
    element_index: ElementIndex,
    change: ChangeBehavior,
    validation: ValidationBehavior,
    count: int,
) -> Tuple[ValidatedElement, ErrorMap]:
    """
    Validate one stored element of a container.

    Args:
        container: The container holding the element; supplies definitions,
            actions and type-specific hooks.
        element: The stored element. Not modified.
        element_index: Index of the element in the container.
        change: Allowed changes.
        validation: Checks to perform.
        count: Number of elements in the container (for messages).

    Returns:
        (validated element, errors). The validated element is partial if there are errors.
    """
    errors: ErrorMap = {}
    element_descr = describe_element(container.type, element_index, count)
    definition = container.get_property_definitions(element, element_index)

    try:
        action = container.get_action(element_index)
    except InputError as e:
        action = ""
        add_error(errors, "Element", str(e))

    fields_in = element.get(FIELDS_KEY) or {}
    objects_in = element.get(OBJECTS_KEY) or {}
    id_value = element.get(definition.id_key) if definition.id_key else None
    validated = ValidatedElement(element_index, action, definition.id_property, id_value, {}, {})

    if definition.id_key:
        if id_value is not None:
            if not _is_id_value(id_value):
                add_error(errors, "Id", f"'{definition.id_key}' property in {element_descr} must hold integer/string value.")
        elif action != "insert":
            add_error(errors, "Id", f"'{definition.id_key}' property in {element_descr} must have a value, or Action '{action}' must be set to 'insert'.")

    validated.objects = validate_reference_fields(
        container, definition, objects_in, element_index, action, change, validation, element_descr, errors
    )

    fields, hook_errors = container.pre_validate_fields(dict(fields_in), element_index, action, change, validation, element_descr)
    merge_errors(errors, hook_errors)
    # Definitions may depend on field values, which the hook can have changed.
    field_definition = container.get_property_definitions({**element, FIELDS_KEY: fields}, element_index)
    fields = validate_fields(field_definition, fields, action, change, validation, element_descr, errors)
    fields, hook_errors = container.post_validate_fields(fields, element_index, action, change, validation, element_descr)
    merge_errors(errors, hook_errors)
    validated.fields = fields

    # Checked after defaults are applied; an element may consist of defaults only.
    if not fields and not validated.objects and not errors:
        add_error(errors, "Element", f"{element_descr} has empty 'Fields' and 'Objects'; at least one of these must contain a value.")

    if validation.no_unknown_keys:
        check_unknown_keys(definition, element, element_descr, errors)

    if errors:
        logger.debug(f"{element_descr} has {sum(len(m) for m in errors.values())} validation error(s)")
    return validated, errors


def validate_reference_fields(
    container: "RecordContainer",
    definition: PropertyDefinition,
    objects_in: Dict[str, Any],
    element_index: ElementIndex,
    action: str,
    change: ChangeBehavior,
    validation: ValidationBehavior,
    element_descr: str,
    errors: ErrorMap,
) -> Dict[str, EmbeddedObject]:
    """Check requiredness of reference fields, add default objects and validate embedded containers."""
    from .record_container import RecordContainer

    defaults_allowed = change.defaults_allowed(action)
    objects: Dict[str, EmbeddedObject] = {}
    for name, ref in definition.objects.items():
        key = f"Objects:{name}"
        value = objects_in.get(name)
        explicit_null = name in objects_in and value is None
        # A container without elements counts as absent.
        if isinstance(value, RecordContainer) and len(value) == 0:
            value = None
        default_available = defaults_allowed and ref.has_default
        check_required = bool(ref.required) and (
            validation.required or (ref.required == "always" and validation.essential)
        )
        # Error on a missing value without usable default, and on an explicit null.
        if check_required and value is None and (not default_available or explicit_null):
            add_error(errors, key, f"No value provided for required {ref.describe()} object embedded in {element_descr}.")
            continue

        if default_available and value is None and (not explicit_null or ref.required):
            try:
                value = container.default_object(name, element_index)
            except InputError as e:
                for message in e.messages:
                    add_error(errors, key, message)
                continue

        if value is None:
            continue
        if not isinstance(value, RecordContainer):
            add_error(errors, key, f"{ref.describe()} object embedded in {element_descr} must be a RecordContainer.")
            continue

        nodes, embedded_errors = value.collect_validated(change.for_embedded(), validation)
        merge_errors(errors, embedded_errors, prefix=f"{key}/")
        if not ref.multiple and len(nodes) > 1:
            add_error(errors, key, f"{ref.describe()} object embedded in {element_descr} contains {len(nodes)} elements but can only contain a single element.")
            continue
        if nodes:
            objects[name] = EmbeddedObject(value.type, ref.multiple, nodes)
    return objects


def validate_fields(
    definition: PropertyDefinition,
    fields_in: Dict[str, Any],
    action: str,
    change: ChangeBehavior,
    validation: ValidationBehavior,
    element_descr: str,
    errors: ErrorMap,
) -> Dict[str, Any]:
    """
    Check requiredness of fields, add defaults and validate values.

    - Requiredness is only checked for action "insert", except for fields
      with the assignedId behavior which are required for any other action.
    - A missing or null required value is an error unless a default can be
      set. An explicit null is kept unless the default is non-null; a
      non-null default does not silently replace an explicit null.
    """
    defaults_allowed = change.defaults_allowed(action)
    fields: Dict[str, Any] = {}
    for name, field in definition.fields.items():
        key = f"Fields:{name}"
        present = name in fields_in
        value = fields_in.get(name)

        if field.is_assigned_id:
            if action not in ("insert", "") and value is None and validation.essential:
                add_error(errors, key, f"No value provided for {field.describe()} field of {element_descr}; it identifies the element for Action '{action}'.")
                continue
            if present:
                fields[name], error = validate_field_value(value, field, change, validation, element_descr)
                if error:
                    add_error(errors, key, error)
            continue

        default_available = defaults_allowed and field.has_default
        default = resolve_default(field) if field.has_default else None
        check_required = bool(field.required) and action == "insert" and (
            validation.required or (field.required == "always" and validation.essential)
        )
        if check_required and value is None and (not default_available or (present and default is not None)):
            add_error(errors, key, f"No value provided for required {field.describe()} field of {element_descr}.")
            continue

        if default_available and (not present or (field.required and value is None)):
            value = default
            present = True

        if present:
            value, error = validate_field_value(value, field, change, validation, element_descr)
            if error:
                add_error(errors, key, error)
            fields[name] = value

    # Fields not in the definition are left out; check_unknown_keys() reports them if that is enabled.
    return fields


def check_unknown_keys(definition: PropertyDefinition, element: Dict[str, Any], element_descr: str, errors: ErrorMap) -> None:
    """Record fields, objects and element properties that are not in the definition."""
    unknown = [name for name in element.get(FIELDS_KEY) or {} if name not in definition.fields]
    if unknown:
        add_error(errors, "Unknown:Fields", f"Unknown field(s) encountered in {element_descr}: {', '.join(unknown)}.")
    unknown = [name for name in element.get(OBJECTS_KEY) or {} if name not in definition.objects]
    if unknown:
        add_error(errors, "Unknown:Objects", f"Unknown object(s) encountered in {element_descr}: {', '.join(unknown)}.")
    known = {FIELDS_KEY, OBJECTS_KEY}
    if definition.id_key:
        known.add(definition.id_key)
    unknown = [str(key) for key in element if key not in known]
    if unknown:
        add_error(errors, "Unknown:Element", f"Unknown properties encountered in {element_descr}: {', '.join(unknown)}.")
