"""Tests for input_normalizer module."""

import pytest

from update_connector.errors import InputError
from update_connector.input_normalizer import (
    extract_id,
    is_element_collection,
    is_well_formed,
    split_element,
    split_elements,
    take_value,
    unwrap,
)
from update_connector.property_definitions import PropertyDefinition


SUBJECT = PropertyDefinition.from_dict("Subject", {
    "id_property": "SbId",
    "fields": {
        "StId": {"alias": "type", "type": "integer"},
        "Ds": {"alias": "description"},
    },
    "objects": {
        "Link": {"alias": "link"},
    },
})


class TestUnwrap:
    """Test removal of the type and Element wrappers."""

    def test_type_and_element_wrapper(self):
        raw = {"Subject": {"Element": {"Ds": "x"}}}
        assert unwrap(raw, "Subject") == {"Ds": "x"}

    def test_element_wrapper_only(self):
        assert unwrap({"Element": [{"Ds": "x"}]}, "Subject") == [{"Ds": "x"}]

    def test_unwrapped_once(self):
        raw = {"Element": {"Element": {"Ds": "x"}}}
        assert unwrap(raw, "Subject") == {"Element": {"Ds": "x"}}

    def test_other_single_key_untouched(self):
        assert unwrap({"Ds": {"a": 1}}, "Subject") == {"Ds": {"a": 1}}


class TestIsWellFormed:
    """Test detection of the {id?, Fields?, Objects?} shape."""

    def test_fields_and_objects(self):
        assert is_well_formed({"@SbId": 1, "Fields": {}, "Objects": {}}, ["@SbId"])

    def test_fields_only(self):
        assert is_well_formed({"Fields": {"Ds": "x"}})

    def test_id_only_is_not_well_formed(self):
        assert not is_well_formed({"@SbId": 1}, ["@SbId"])

    def test_mixed_with_flat_keys(self):
        assert not is_well_formed({"Fields": {}, "Ds": "x"})

    def test_non_dict_bucket(self):
        assert not is_well_formed({"Fields": "x"})

    def test_unknown_id_key(self):
        assert not is_well_formed({"@Other": 1, "Fields": {}}, ["@SbId"])


class TestIsElementCollection:
    """Test detection of {index: element} dictionaries."""

    def test_indexed_elements(self):
        assert is_element_collection({0: {"Ds": "a"}, "x": {"Ds": "b"}}, SUBJECT.input_keys())

    def test_single_element(self):
        assert not is_element_collection({"Ds": "a"}, SUBJECT.input_keys())

    def test_single_element_with_only_object_values(self):
        # 'link' is a known alias, so this is one element.
        assert not is_element_collection({"link": {"x": 1}}, SUBJECT.input_keys())

    def test_non_dict_values(self):
        assert not is_element_collection({0: "a"}, SUBJECT.input_keys())


class TestSplitElements:
    """Test splitting input into raw elements."""

    def test_single_element(self):
        assert split_elements({"Ds": "a"}, SUBJECT) == [(None, {"Ds": "a"})]

    def test_list(self):
        assert split_elements([{"Ds": "a"}, {"Ds": "b"}], SUBJECT) == [(None, {"Ds": "a"}), (None, {"Ds": "b"})]

    def test_indexed(self):
        assert split_elements({3: {"Ds": "a"}}, SUBJECT) == [(3, {"Ds": "a"})]

    def test_empty_dict_is_one_empty_element(self):
        assert split_elements({}, SUBJECT) == [(None, {})]

    def test_empty_list(self):
        assert split_elements([], SUBJECT) == []

    def test_invalid_input(self):
        with pytest.raises(InputError, match="dictionary or list"):
            split_elements("Ds", SUBJECT)


class TestTakeValue:
    """Test name-or-alias value extraction."""

    def test_by_name(self):
        source = {"Ds": "a", "other": 1}
        assert take_value(source, "Ds", "description") == (True, "a", False)
        assert source == {"other": 1}

    def test_by_alias(self):
        source = {"description": "a"}
        assert take_value(source, "Ds", "description") == (True, "a", False)
        assert source == {}

    def test_both(self):
        source = {"Ds": "a", "description": "b"}
        assert take_value(source, "Ds", "description") == (True, "a", True)
        assert source == {}

    def test_absent(self):
        assert take_value({}, "Ds", None) == (False, None, False)


class TestExtractId:
    """Test id extraction."""

    def test_canonical_key(self):
        assert extract_id({"@SbId": 5}, "@SbId") == (True, 5, False)

    def test_generic_alias(self):
        assert extract_id({"@id": 5}, "@SbId") == (True, 5, False)

    def test_same_value_twice(self):
        assert extract_id({"@SbId": 5, "@id": 5}, "@SbId") == (True, 5, False)

    def test_conflicting_values(self):
        assert extract_id({"@SbId": 5, "@id": 6}, "@SbId") == (True, 5, True)


class TestSplitElement:
    """Test resolving one raw element."""

    def test_flat_element(self):
        parts = split_element({"@id": 3, "type": 1, "Ds": "x", "link": {"a": 1}, "Foo": 2}, SUBJECT, "'Subject' element")
        assert not parts.well_formed
        assert parts.id_present and parts.id_value == 3
        assert parts.fields == {"StId": 1, "Ds": "x"}
        assert parts.objects == {"Link": {"a": 1}}
        assert parts.unknown_keys == {"Foo": 2}
        assert parts.errors == []

    def test_well_formed_element(self):
        raw = {"@SbId": 3, "Fields": {"type": 1, "Bar": 1}, "Objects": {"Link": {}, "Other": {}}}
        parts = split_element(raw, SUBJECT, "'Subject' element")
        assert parts.well_formed
        assert parts.fields == {"StId": 1}
        assert parts.unknown_fields == {"Bar": 1}
        assert parts.unknown_objects == {"Other": {}}
        assert parts.unknown_keys == {}

    def test_field_value_by_name_and_alias(self):
        parts = split_element({"Ds": "x", "description": "y"}, SUBJECT, "'Subject' element")
        assert parts.errors == ["'Subject' element has a value provided by both its field name Ds and alias description."]

    def test_conflicting_ids(self):
        parts = split_element({"@SbId": 1, "@id": 2, "Ds": "x"}, SUBJECT, "'Subject' element")
        assert len(parts.errors) == 1
        assert "different values for the ID" in parts.errors[0]

    def test_input_not_modified(self):
        raw = {"Fields": {"Ds": "x"}}
        split_element(raw, SUBJECT, "'Subject' element")
        assert raw == {"Fields": {"Ds": "x"}}
