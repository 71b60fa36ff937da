"""
RecordContainer: the elements of one record type, with their actions.

A container holds zero or more elements, each keyed by an index (an int,
auto-numbered from 0, or a key given in the input). Elements are stored in
wire shape: {"@<IdName>": id, "Fields": {...}, "Objects": {ref: RecordContainer}}.
Embedded objects are containers themselves.

Input is checked structurally when it is added; complete validation (and
any changes like setting default values) happens on output, on a copy:

```python
registry = create_afas_registry()
subject = registry.create("KnSubject", {"type": 1, "description": "Hello"}, action="insert")
print(subject.output("json", OutputOptions(pretty=True)))
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple
import copy
import logging

from .behavior import ChangeBehavior, OutputOptions, ValidationBehavior
from .errors import InputError, ValidationError
from .input_normalizer import (
    FIELDS_KEY,
    OBJECTS_KEY,
    ElementIndex,
    split_element,
    split_elements,
)
from .property_definitions import PropertyDefinition, ReferenceDef
from .serializers import render_json, render_xml
from .validator import (
    ErrorMap,
    ValidatedElement,
    describe_element,
    merge_errors,
    resolve_default,
    validate_element,
    validate_field_value,
)

if TYPE_CHECKING:
    from .schema_registry import SchemaRegistry


logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("json", "xml")

# Accepted action values, case-insensitive, and their normalized form.
ACTION_VALUES = {
    "insert": "insert",
    "update": "update",
    "delete": "delete",
    "post": "insert",
    "put": "update",
}


def normalize_action(action: Any) -> str:
    """
    Normalize an action value.

    Raises:
        InputError: If the value is not a known action.
    """
    if not isinstance(action, str):
        raise InputError(f"Action value must be a string, got {type(action).__name__}.")
    action = action.lower()
    if action == "":
        return ""
    if action not in ACTION_VALUES:
        raise InputError(f"Unknown action value '{action}'.")
    return ACTION_VALUES[action]


def _is_id_value(value: Any) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


class RecordContainer:
    """
    Elements of one record type.

    Subclasses implement type-specific behavior by overriding
    get_property_definitions(), pre_validate_fields() and/or
    post_validate_fields(), and are registered with
    SchemaRegistry.register_type().
    """

    def __init__(
        self,
        registry: "SchemaRegistry",
        type_name: str,
        elements: Any = None,
        action: str = "",
        validation: Optional[ValidationBehavior] = None,
        parent_type: str = "",
    ) -> None:
        """
        Initialize a container. Use create() (or SchemaRegistry.create()) to
        get an instance of the class registered for the type.

        Args:
            registry: Registry providing property definitions.
            type_name: Record type.
            elements: Optional initial elements; see add_elements().
            action: Action for all elements (insert, update, delete or '').
            validation: Checks to perform on the initial elements.
            parent_type: Type of the container this one is embedded in, if any.

        Raises:
            TypeError: If type_name or parent_type is not a string.
            UnknownTypeError: If the registry has no definitions for the type.
            InputError: If the action or the elements are invalid.
        """
        if not isinstance(type_name, str) or not type_name:
            raise TypeError("type_name argument must be a non-empty string.")
        if not isinstance(parent_type, str):
            raise TypeError("parent_type argument is not a string.")
        self.__registry = registry
        self.__type = type_name
        self.__parent_type = parent_type
        self.__elements: Dict[ElementIndex, Dict[str, Any]] = {}
        self.__actions: Dict[ElementIndex, str] = {}

        # Fail early on unknown types.
        self.get_property_definitions()
        self.set_action(action)
        if elements is not None:
            self.add_elements(elements, validation)

    @classmethod
    def create(
        cls,
        registry: "SchemaRegistry",
        type_name: str,
        elements: Any = None,
        action: str = "",
        validation: Optional[ValidationBehavior] = None,
        parent_type: str = "",
    ) -> "RecordContainer":
        """Create a container of the class registered for type_name, or a plain RecordContainer."""
        container_class = registry.container_class_for(type_name) or RecordContainer
        return container_class(registry, type_name, elements, action, validation, parent_type)

    # ----------------------------- Properties ---------------------------------

    @property
    def type(self) -> str:
        return self.__type

    @property
    def parent_type(self) -> str:
        return self.__parent_type

    @property
    def registry(self) -> "SchemaRegistry":
        return self.__registry

    def __len__(self) -> int:
        return len(self.__elements)

    def element_indexes(self) -> List[ElementIndex]:
        return list(self.__elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordContainer):
            return NotImplemented
        return (
            self.__type == other.type
            and self.__parent_type == other.parent_type
            and self.__elements == other._stored_elements()
            and self.__actions == other.get_actions()
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.__type!r}, {len(self)} element(s))"

    def _stored_elements(self) -> Dict[ElementIndex, Dict[str, Any]]:
        return self.__elements

    # ----------------------------- Type-specific hooks ------------------------

    def get_property_definitions(self, element: Optional[Dict[str, Any]] = None, element_index: Optional[ElementIndex] = None) -> PropertyDefinition:
        """
        Return the property definitions for this type.

        Subclasses may return different definitions depending on an element's
        values; element and element_index are None when the definitions are
        needed regardless of a specific element (e.g. for parsing input).
        """
        return self.__registry.definitions_for(self.__type)

    def pre_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        """Adjust an element's fields before requiredness checks and defaults. Returns (fields, errors)."""
        return fields, {}

    def post_validate_fields(
        self,
        fields: Dict[str, Any],
        element_index: ElementIndex,
        action: str,
        change: ChangeBehavior,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], ErrorMap]:
        """Adjust an element's validated fields. Returns (fields, errors)."""
        return fields, {}

    # ----------------------------- Actions ------------------------------------

    def set_action(self, action: str, set_embedded: bool = True, element_index: Optional[ElementIndex] = None) -> None:
        """
        Set the action for all elements, or for one element.

        Args:
            action: insert, update, delete or '' (case-insensitive; post and put are accepted too).
            set_embedded: Also set the action on embedded objects.
            element_index: Element to set the action for; None means all elements.

        Raises:
            InputError: If the action value is unknown.
        """
        action = normalize_action(action)
        if element_index is None:
            if self.__actions:
                for index in self.__actions:
                    self.__actions[index] = action
            else:
                self.__actions = {0: action}
        else:
            self.__actions[element_index] = action

        if set_embedded:
            for index, element in self.__elements.items():
                if element_index is not None and index != element_index:
                    continue
                for embedded in (element.get(OBJECTS_KEY) or {}).values():
                    if isinstance(embedded, RecordContainer):
                        embedded.set_action(action, True)

    def get_action(self, element_index: Optional[ElementIndex] = None) -> str:
        """
        Return the action for an element.

        If no action was set for the specific element, the action that is
        shared by all elements is returned.

        Raises:
            IndexError: If element_index refers to a nonexistent element without an action.
            InputError: If there is no single shared action to fall back to.
        """
        if not self.__actions:
            return ""
        if element_index is not None:
            if element_index in self.__actions:
                return self.__actions[element_index]
            if element_index not in self.__elements:
                raise IndexError(f"No action or element defined for index {element_index}.")
        actions = list(dict.fromkeys(self.__actions.values()))
        if len(actions) > 1:
            raise InputError(
                "Multiple different action values are set, so get_action() has to be called with a valid index parameter."
            )
        return actions[0]

    def get_actions(self) -> Dict[ElementIndex, str]:
        return dict(self.__actions)

    def _action_for(self, element_index: ElementIndex) -> str:
        try:
            return self.get_action(element_index)
        except IndexError:
            return self.get_action()

    # ----------------------------- Element access -----------------------------

    def _next_index(self, taken: Optional[List[ElementIndex]] = None) -> int:
        indexes = [index for index in (taken if taken is not None else self.__elements) if isinstance(index, int) and not isinstance(index, bool)]
        return max(indexes) + 1 if indexes else 0

    def _check_element(self, element_index: ElementIndex, allow_empty: bool = False, allow_next: bool = False) -> Dict[str, Any]:
        """
        Return the stored element at an index.

        Args:
            allow_empty: Return an empty element for index 0 of an empty container.
            allow_next: Return an empty element for the next free index (to create an element).

        Raises:
            IndexError: If no element exists at the index.
        """
        if element_index in self.__elements:
            return self.__elements[element_index]
        if allow_next and element_index == self._next_index():
            return {}
        if allow_empty and element_index == 0 and not self.__elements:
            return {}
        raise IndexError(f"No element present with index {element_index}.")

    def _describe_element(self, element_index: ElementIndex, count: Optional[int] = None) -> str:
        return describe_element(self.__type, element_index, len(self.__elements) if count is None else count)

    def _check_field_name(self, name: str, definition: PropertyDefinition) -> str:
        field_name = definition.resolve_field_name(name)
        if field_name is None:
            raise InputError(f"Unknown field name '{name}' for '{self.__type}' object.")
        return field_name

    def _check_object_name(self, name: str, definition: PropertyDefinition) -> str:
        ref_name = definition.resolve_object_name(name)
        if ref_name is None:
            raise InputError(f"Unknown object reference field name '{name}' for '{self.__type}' object.")
        return ref_name

    def get_id(self, element_index: ElementIndex = 0) -> Any:
        """
        Return the id value of an element, or None if it has none.

        Raises:
            IndexError: If the element does not exist.
            InputError: If the type has no id property.
        """
        element = self._check_element(element_index)
        definition = self.get_property_definitions(element, element_index)
        if not definition.id_key:
            raise InputError(f"'{self.__type}' object has no 'id_property' definition.")
        return element.get(definition.id_key)

    def set_id(self, value: Any, element_index: ElementIndex = 0) -> None:
        """
        Set the id value of an element. Setting it on the next free index creates an element.

        Raises:
            TypeError: If the value is not an int or string.
            IndexError: If the element does not exist.
            InputError: If the type has no id property.
        """
        if not _is_id_value(value):
            raise TypeError("Id value must be an integer or string.")
        element = self._check_element(element_index, allow_next=True)
        definition = self.get_property_definitions(element, element_index)
        if not definition.id_key:
            raise InputError(f"'{self.__type}' object has no 'id_property' definition.")
        self.__elements.setdefault(element_index, {})[definition.id_key] = value

    def get_field(self, name: str, element_index: ElementIndex = 0, return_default: bool = False) -> Any:
        """
        Return a field value of an element.

        Args:
            name: Field name or alias.
            element_index: Element index.
            return_default: If the field has no value, return its default (if any).

        Raises:
            IndexError: If the element does not exist.
            InputError: If the field name is unknown.
        """
        element = self._check_element(element_index, allow_empty=return_default)
        definition = self.get_property_definitions(element, element_index)
        field_name = self._check_field_name(name, definition)
        fields = element.get(FIELDS_KEY) or {}
        if field_name in fields:
            return fields[field_name]
        field = definition.fields[field_name]
        if return_default and field.has_default:
            return resolve_default(field)
        return None

    def set_field(self, name: str, value: Any, element_index: ElementIndex = 0, validation: Optional[ValidationBehavior] = None) -> None:
        """
        Set a field value of an element. Setting it on the next free index creates an element.

        Raises:
            IndexError: If the element does not exist.
            InputError: If the field name is unknown or the value is invalid.
        """
        validation = validation or ValidationBehavior.essential_only()
        element = self._check_element(element_index, allow_next=True)
        definition = self.get_property_definitions(element, element_index)
        field_name = self._check_field_name(name, definition)
        value, error = validate_field_value(
            value, definition.fields[field_name], ChangeBehavior.no_changes(), validation, self._describe_element(element_index)
        )
        if error:
            raise InputError(error)
        self.__elements.setdefault(element_index, {}).setdefault(FIELDS_KEY, {})[field_name] = value

    def get_object(self, name: str, element_index: ElementIndex = 0, return_default: bool = False) -> Optional["RecordContainer"]:
        """
        Return an embedded object of an element.

        Args:
            name: Reference field name or alias.
            element_index: Element index.
            return_default: If no object is set, return a new container
                holding the default value (if any).

        Raises:
            IndexError: If the element does not exist.
            InputError: If the reference field name is unknown.
        """
        element = self._check_element(element_index, allow_empty=return_default)
        definition = self.get_property_definitions(element, element_index)
        ref_name = self._check_object_name(name, definition)
        embedded = (element.get(OBJECTS_KEY) or {}).get(ref_name)
        if embedded is not None:
            return embedded
        if return_default and definition.objects[ref_name].has_default:
            return self.default_object(ref_name, element_index)
        return None

    def default_object(self, ref_name: str, element_index: ElementIndex = 0) -> Optional["RecordContainer"]:
        """
        Return a new container holding the default value of a reference field, or None.

        Raises:
            InputError: If the default value is not valid input.
        """
        definition = self.get_property_definitions(self.__elements.get(element_index), element_index)
        ref = definition.objects[ref_name]
        if not ref.has_default:
            return None
        return RecordContainer.create(
            self.__registry,
            ref.target_type,
            copy.deepcopy(ref.default),
            self._action_for(element_index),
            ValidationBehavior.essential_only(),
            self.__type,
        )

    def set_object(
        self,
        name: str,
        elements: Any,
        action: Optional[str] = None,
        element_index: ElementIndex = 0,
        validation: Optional[ValidationBehavior] = None,
    ) -> None:
        """
        Set an embedded object of an element. Setting it on the next free index creates an element.

        Args:
            name: Reference field name or alias.
            elements: A RecordContainer of the reference field's type, or
                input for one (see add_elements()). None sets an explicit null.
            action: Action for the embedded object; defaults to the element's action.
            element_index: Element index.
            validation: Checks to perform on the input.

        Raises:
            IndexError: If the element does not exist.
            InputError: If the name is unknown or the value is invalid.
        """
        validation = validation or ValidationBehavior.essential_only()
        element = self._check_element(element_index, allow_next=True)
        definition = self.get_property_definitions(element, element_index)
        ref_name = self._check_object_name(name, definition)
        if action is None:
            action = self._action_for(element_index)
        embedded, errors = self._make_embedded(
            definition.objects[ref_name], elements, action, validation, self._describe_element(element_index)
        )
        if errors:
            raise InputError(errors)
        self.__elements.setdefault(element_index, {}).setdefault(OBJECTS_KEY, {})[ref_name] = embedded

    def _make_embedded(
        self,
        ref: ReferenceDef,
        value: Any,
        action: str,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Optional["RecordContainer"], List[str]]:
        if value is None:
            return None, []
        if isinstance(value, RecordContainer):
            if value.type != ref.target_type:
                return None, [
                    f"{ref.describe()} object embedded in {element_descr} must be of type '{ref.target_type}', not '{value.type}'."
                ]
            embedded = value
        elif isinstance(value, (dict, list)):
            if not value:
                # No elements; treated like an absent object.
                value = []
            try:
                embedded = RecordContainer.create(self.__registry, ref.target_type, value, action, validation, self.__type)
            except InputError as e:
                return None, e.messages
        else:
            return None, [
                f"Value for {ref.describe()} object embedded in {element_descr} must be a dictionary, list or RecordContainer."
            ]
        if validation.essential and not ref.multiple and len(embedded) > 1:
            return None, [
                f"{ref.describe()} object embedded in {element_descr} contains {len(embedded)} elements but can only contain a single element."
            ]
        return embedded, []

    # ----------------------------- Bulk input ---------------------------------

    def add_elements(self, elements: Any, validation: Optional[ValidationBehavior] = None) -> None:
        """
        Add elements to the container.

        Args:
            elements: One element, a list of elements or a dictionary of
                {index: element}, optionally wrapped in {type: ...} and/or
                {"Element": ...}. Elements are flat (field and object names
                or aliases as keys) or well-formed ("Fields"/"Objects" buckets).
            validation: Checks to perform; defaults to essential checks only.

        Raises:
            InputError: With all problems found; no elements are added in that case.
        """
        validation = validation or ValidationBehavior.essential_only()
        definition = self.get_property_definitions()
        pairs = split_elements(elements, definition)
        total = len(self.__elements) + len(pairs)
        taken: List[ElementIndex] = list(self.__elements)
        new_elements: Dict[ElementIndex, Dict[str, Any]] = {}
        errors: List[str] = []

        for requested, raw in pairs:
            if requested is not None and requested not in taken:
                element_index = requested
            else:
                element_index = self._next_index(taken)
            taken.append(element_index)
            element_descr = self._describe_element(element_index, total)
            if not isinstance(raw, dict):
                errors.append(f"{element_descr} must be a dictionary, got {type(raw).__name__}.")
                continue
            element, element_errors = self._normalize_element(raw, definition, element_index, validation, element_descr)
            errors.extend(element_errors)
            new_elements[element_index] = element

        if errors:
            raise InputError(errors)
        self.__elements.update(new_elements)
        logger.debug(f"Added {len(new_elements)} element(s) to '{self.__type}' container")

    def _normalize_element(
        self,
        raw: Dict[str, Any],
        definition: PropertyDefinition,
        element_index: ElementIndex,
        validation: ValidationBehavior,
        element_descr: str,
    ) -> Tuple[Dict[str, Any], List[str]]:
        parts = split_element(raw, definition, element_descr)
        errors = list(parts.errors)
        element: Dict[str, Any] = {}

        if parts.id_present:
            if validation.essential and parts.id_value is not None and not _is_id_value(parts.id_value):
                errors.append(f"'{definition.id_key}' property in {element_descr} must hold integer/string value.")
            element[definition.id_key] = parts.id_value

        try:
            action = self._action_for(element_index)
        except InputError as e:
            errors.extend(e.messages)
            action = ""

        objects: Dict[str, Any] = {}
        for name, value in parts.objects.items():
            embedded, object_errors = self._make_embedded(definition.objects[name], value, action, validation, element_descr)
            errors.extend(object_errors)
            objects[name] = embedded

        fields: Dict[str, Any] = {}
        for name, value in parts.fields.items():
            value, error = validate_field_value(value, definition.fields[name], ChangeBehavior.no_changes(), validation, element_descr)
            if error:
                errors.append(error)
            fields[name] = value

        if parts.well_formed:
            if validation.no_unknown_keys:
                if parts.unknown_fields:
                    errors.append(f"Unknown field(s) encountered in {element_descr}: {', '.join(map(str, parts.unknown_fields))}.")
                if parts.unknown_objects:
                    errors.append(f"Unknown object(s) encountered in {element_descr}: {', '.join(map(str, parts.unknown_objects))}.")
            else:
                fields.update(parts.unknown_fields)
                objects.update(parts.unknown_objects)
        elif parts.unknown_keys:
            keys = ", ".join(map(str, parts.unknown_keys))
            if validation.no_unknown_keys:
                errors.append(f"Unmapped element values provided for {element_descr}: keys are '{keys}'.")
            elif FIELDS_KEY in parts.unknown_keys or OBJECTS_KEY in parts.unknown_keys:
                errors.append(f"{element_descr} has non-dictionary 'Fields' or 'Objects' values next to other keys: '{keys}'.")
            else:
                # Kept; reported when validating with no_unknown_keys.
                element.update(parts.unknown_keys)

        if fields:
            element[FIELDS_KEY] = fields
        if objects:
            element[OBJECTS_KEY] = objects
        return element, errors

    def set_elements(self, elements: Any, validation: Optional[ValidationBehavior] = None) -> None:
        """
        Replace all elements. On error the existing elements are kept.

        Raises:
            InputError: If the input is invalid.
        """
        previous = self.__elements
        self.__elements = {}
        try:
            self.add_elements(elements, validation)
        except InputError:
            self.__elements = previous
            raise

    # ----------------------------- Output -------------------------------------

    def collect_validated(self, change: ChangeBehavior, validation: ValidationBehavior) -> Tuple[List[ValidatedElement], ErrorMap]:
        """
        Validate all elements without modifying the container.

        Returns:
            (validated elements without errors, errors for all elements)
        """
        validated: List[ValidatedElement] = []
        errors: ErrorMap = {}
        count = len(self.__elements)
        for element_index, element in self.__elements.items():
            element_validated, element_errors = validate_element(self, element, element_index, change, validation, count)
            if element_errors:
                merge_errors(errors, element_errors)
            else:
                validated.append(element_validated)
        if change.renumber_indexes:
            for position, element_validated in enumerate(validated):
                element_validated.index = position
        return validated, errors

    def get_elements(self, change: Optional[ChangeBehavior] = None, validation: Optional[ValidationBehavior] = None) -> Dict[ElementIndex, Dict[str, Any]]:
        """
        Return the elements.

        Args:
            change: If None, the stored elements are returned as-is (with
                embedded objects as RecordContainer instances). Otherwise the
                elements are validated and returned in wire shape, with
                embedded objects as {"Element": ...} dictionaries.
            validation: Checks to perform; only allowed together with change.
                Defaults to no checks.

        Raises:
            ValueError: If validation is passed without change.
            ValidationError: If validation finds errors.
        """
        if change is None:
            if validation is not None:
                raise ValueError("validation can only be passed together with change.")
            return {
                index: {key: dict(value) if key in (FIELDS_KEY, OBJECTS_KEY) else value for key, value in element.items()}
                for index, element in self.__elements.items()
            }
        validated, errors = self.collect_validated(change, validation or ValidationBehavior.nothing())
        if errors:
            raise ValidationError(errors, self.__type)
        return {element.index: element.to_dict() for element in validated}

    def output(
        self,
        format: str = "json",
        options: Optional[OutputOptions] = None,
        change: Optional[ChangeBehavior] = None,
        validation: Optional[ValidationBehavior] = None,
    ) -> str:
        """
        Validate the elements and serialize them for sending to the remote system.

        The container itself is not modified.

        Args:
            format: 'json' or 'xml' (case-insensitive).
            options: Cosmetic output options.
            change: Allowed changes; defaults to ChangeBehavior().
            validation: Checks to perform; defaults to ValidationBehavior().

        Raises:
            ValueError: If the format is unknown.
            ValidationError: With all validation errors.
        """
        if not isinstance(format, str) or format.lower() not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid format '{format}'.")
        format = format.lower()
        options = options or OutputOptions()
        change = change or ChangeBehavior()
        validation = validation or ValidationBehavior()

        validated, errors = self.collect_validated(change, validation)
        if errors:
            logger.debug(f"'{self.__type}' output failed with errors in {', '.join(errors)}")
            raise ValidationError(errors, self.__type)
        if format == "json":
            return render_json(self.__type, [element.to_dict() for element in validated], change.flatten_single_element, options)
        return render_xml(self.__type, validated, options)
