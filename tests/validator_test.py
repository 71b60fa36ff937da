"""
Tests for element validation.

Tests cover:
- Required fields per action, defaults on insert/update
- Null defaults and explicit null values
- Fields required 'always'
- assignedId fields
- Value types: boolean, integer, decimal, date, email, string
- The dynamic 'today' date default
- Unknown keys
- Date objects and non-finite numbers
- Cardinality of embedded objects
- Aggregation of errors across elements and embedded objects
"""

import unittest
from datetime import date
import json
import logging
import os
import sys

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))
from update_connector.behavior import ChangeBehavior, ValidationBehavior
from update_connector.errors import InputError, ValidationError
from update_connector.property_definitions import FieldDef
from update_connector.schema_registry import SchemaRegistry
from update_connector.validator import describe_element, resolve_default, validate_field_value


DEFINITIONS = {
    "Order": {
        "id_property": "OrId",
        "fields": {
            "Currency": {"alias": "currency_code", "default": "EUR"},
            "Total": {"type": "decimal", "required": True},
        },
        "objects": {
            "Lines": {"alias": "lines", "multiple": True},
            "Customer": {"alias": "customer"},
        },
    },
    "Lines": {
        "fields": {
            "ItemCode": {"alias": "item_code", "required": True},
            "Quantity": {"alias": "quantity", "type": "integer", "default": 1},
        },
    },
    "Customer": {
        "fields": {
            "Name": {"alias": "name"},
            "Email": {"alias": "email", "type": "email"},
        },
    },
    "Note": {
        "fields": {
            "Text": {"alias": "text", "required": True, "default": None},
            "Category": {"alias": "category", "required": "always"},
            "Day": {"alias": "day", "type": "date", "default": "today"},
            "Private": {"alias": "private", "type": "boolean"},
        },
    },
    "Ticket": {
        "fields": {
            "Number": {"alias": "number", "behavior": "assignedId", "required": True, "default": "X"},
            "Subject": {"alias": "subject"},
        },
    },
}


class TestValidateElements(unittest.TestCase):
    """Test cases for validation through RecordContainer.get_elements()."""

    def setUp(self):
        self.registry = SchemaRegistry(DEFINITIONS).build()
        self.change = ChangeBehavior()
        self.validation = ValidationBehavior()

    def validated(self, type_name, elements, action="insert", change=None, validation=None):
        container = self.registry.create(type_name, elements, action)
        return container.get_elements(change or self.change, validation or self.validation)

    def test_order_example(self):
        elements = self.validated("Order", {"currency_code": "USD", "Total": 9.99})
        self.assertEqual(elements, {0: {"Fields": {"Currency": "USD", "Total": 9.99}}})

    def test_order_example_missing_total(self):
        container = self.registry.create("Order", {}, "insert")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertEqual(list(cm.exception.errors), ["Fields:Total"])
        self.assertEqual(
            cm.exception.errors["Fields:Total"],
            ["No value provided for required 'Total' field of 'Order' element."],
        )

    def test_required_only_on_insert(self):
        elements = self.validated("Order", {"@OrId": 5, "Currency": "USD"}, action="update")
        self.assertEqual(elements, {0: {"@OrId": 5, "Fields": {"Currency": "USD"}}})

    def test_no_defaults_on_update(self):
        elements = self.validated("Order", {"@OrId": 5, "Total": 1}, action="update")
        self.assertEqual(elements[0]["Fields"], {"Total": 1})

    def test_defaults_on_update_when_allowed(self):
        change = ChangeBehavior(allow_defaults_on_update=True)
        elements = self.validated("Order", {"@OrId": 5, "Total": 1}, action="update", change=change)
        self.assertEqual(elements[0]["Fields"], {"Currency": "EUR", "Total": 1})

    def test_no_defaults_on_insert_when_disallowed(self):
        change = ChangeBehavior(allow_defaults_on_insert=False)
        elements = self.validated("Order", {"Total": 1}, change=change)
        self.assertEqual(elements[0]["Fields"], {"Total": 1})

    def test_required_check_can_be_disabled(self):
        container = self.registry.create("Order", {"Currency": "USD"}, "insert")
        elements = container.get_elements(self.change, ValidationBehavior(required=False))
        self.assertEqual(elements[0]["Fields"], {"Currency": "USD"})

    def test_id_required_unless_insert(self):
        container = self.registry.create("Order", {"Total": 1}, "update")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertEqual(
            cm.exception.errors["Id"],
            ["'@OrId' property in 'Order' element must have a value, or Action 'update' must be set to 'insert'."],
        )

    def test_reformat(self):
        elements = self.validated("Order", {"Currency": "  USD ", "Total": " 10 "})
        self.assertEqual(elements[0]["Fields"], {"Currency": "USD", "Total": 10})
        elements = self.validated("Order", {"Currency": "  USD ", "Total": " 10 "}, change=ChangeBehavior(allow_reformat=False))
        self.assertEqual(elements[0]["Fields"], {"Currency": "  USD ", "Total": " 10 "})

    def test_null_default_required(self):
        # A null default is used when defaults are allowed.
        elements = self.validated("Note", {"category": "x"})
        self.assertIsNone(elements[0]["Fields"]["Text"])
        # Without defaults, absence is an error.
        container = self.registry.create("Note", {"category": "x"}, "insert")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(ChangeBehavior(allow_defaults_on_insert=False), self.validation)
        self.assertIn("Fields:Text", cm.exception.errors)

    def test_explicit_null_preserved_with_null_default(self):
        elements = self.validated("Note", {"text": None, "category": "x"})
        self.assertIn("Text", elements[0]["Fields"])
        self.assertIsNone(elements[0]["Fields"]["Text"])

    def test_explicit_null_with_non_null_default(self):
        self.registry.override_field("Note", "Text", "default", "empty")
        container = self.registry.create("Note", {"text": None, "category": "x"}, "insert")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertIn("Fields:Text", cm.exception.errors)

    def test_required_always(self):
        container = self.registry.create("Note", {"text": "hello"}, "insert")
        relaxed = ValidationBehavior(required=False)
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, relaxed)
        self.assertEqual(list(cm.exception.errors), ["Fields:Category"])
        # Not checked on update.
        container.set_action("update")
        self.assertEqual(container.get_elements(self.change, relaxed)[0]["Fields"], {"Text": "hello"})

    def test_today_default(self):
        elements = self.validated("Note", {"text": "a", "category": "x"})
        self.assertEqual(elements[0]["Fields"]["Day"], date.today().isoformat())

    def test_assigned_id_not_required_on_insert(self):
        elements = self.validated("Ticket", {"subject": "Help"})
        self.assertEqual(elements[0]["Fields"], {"Subject": "Help"})

    def test_assigned_id_required_on_update(self):
        container = self.registry.create("Ticket", {"subject": "Help"}, "update")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertIn("Fields:Number", cm.exception.errors)
        container.set_field("number", "T-1")
        self.assertEqual(container.get_elements(self.change, self.validation)[0]["Fields"], {"Number": "T-1", "Subject": "Help"})

    def test_unknown_key(self):
        container = self.registry.create("Order", {"Total": 1, "Foo": "bar"}, "insert")
        with self.assertRaises(ValidationError) as cm:
            container.output()
        self.assertIn("Foo", str(cm.exception))
        elements = container.get_elements(self.change, ValidationBehavior(no_unknown_keys=False))
        self.assertEqual(elements[0]["Fields"], {"Currency": "EUR", "Total": 1})

    def test_unknown_key_rejected_at_input(self):
        with self.assertRaises(InputError) as cm:
            self.registry.create("Order", {"Total": 1, "Foo": "bar"}, "insert", ValidationBehavior())
        self.assertIn("Foo", str(cm.exception))

    def test_unknown_field_in_well_formed_input(self):
        container = self.registry.create("Order", {"Fields": {"Total": 1, "Foo": 2}}, "insert")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertEqual(list(cm.exception.errors), ["Unknown:Fields"])
        self.assertIn("Foo", cm.exception.errors["Unknown:Fields"][0])

    def test_unknown_field_in_well_formed_input_left_out(self):
        container = self.registry.create("Order", {"Fields": {"Total": 1, "Foo": "x", "bad key": "y"}}, "insert")
        output = container.output("json", validation=ValidationBehavior(no_unknown_keys=False))
        self.assertEqual(json.loads(output), {"Order": {"Element": {"Fields": {"Currency": "EUR", "Total": 1}}}})
        output = container.output("xml", validation=ValidationBehavior(no_unknown_keys=False))
        self.assertNotIn("Foo", output)
        self.assertNotIn("bad key", output)

    def test_date_object_output_without_changes(self):
        container = self.registry.create("Note", {"text": "Hi", "category": "A"}, "insert")
        container.set_field("day", date(2024, 1, 2))
        self.assertEqual(container.get_field("day"), "2024-01-02")
        output = container.output("json", change=ChangeBehavior.no_changes())
        self.assertEqual(json.loads(output)["Note"]["Element"]["Fields"]["Day"], "2024-01-02")

    def test_non_finite_numbers(self):
        container = self.registry.create("Order", {"Total": "1e400", "lines": [{"item_code": "A", "quantity": "1e400"}]}, "insert", ValidationBehavior.nothing())
        with self.assertRaises(ValidationError) as cm:
            container.output()
        self.assertEqual(
            cm.exception.errors["Fields:Total"],
            ["'Total' field value of 'Order' element must be numeric."],
        )
        self.assertEqual(
            cm.exception.errors["Objects:Lines/Fields:Quantity"],
            ["'Quantity' (quantity) field value of 'Lines' element must be numeric."],
        )

    def test_embedded_objects(self):
        elements = self.validated("Order", {
            "Total": 5,
            "lines": [{"item_code": "A"}, {"item_code": "B", "quantity": "2"}],
            "customer": {"name": "Jo"},
        })
        self.assertEqual(elements[0]["Objects"], {
            "Lines": {"Element": [
                {"Fields": {"ItemCode": "A", "Quantity": 1}},
                {"Fields": {"ItemCode": "B", "Quantity": 2}},
            ]},
            "Customer": {"Element": {"Fields": {"Name": "Jo"}}},
        })

    def test_embedded_changes_disallowed(self):
        change = ChangeBehavior(allow_embedded_changes=False)
        elements = self.validated("Order", {"Total": 5, "lines": [{"item_code": "A"}]}, change=change)
        self.assertEqual(elements[0]["Fields"], {"Currency": "EUR", "Total": 5})
        self.assertEqual(elements[0]["Objects"]["Lines"]["Element"], [{"Fields": {"ItemCode": "A"}}])

    def test_single_cardinality_at_input(self):
        with self.assertRaises(InputError) as cm:
            self.registry.create("Order", {"Total": 5, "customer": [{"name": "A"}, {"name": "B"}]}, "insert")
        self.assertIn("can only contain a single element", str(cm.exception))

    def test_single_cardinality_at_validation(self):
        container = self.registry.create(
            "Order", {"Total": 5, "customer": [{"name": "A"}, {"name": "B"}]}, "insert", ValidationBehavior.nothing()
        )
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertEqual(
            cm.exception.errors["Objects:Customer"],
            ["'Customer' (customer) object embedded in 'Order' element contains 2 elements but can only contain a single element."],
        )

    def test_errors_aggregated(self):
        container = self.registry.create("Order", [
            {"Currency": "USD"},
            {"Total": 5, "lines": [{"quantity": 1}]},
        ], "insert")
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        errors = cm.exception.errors
        self.assertEqual(errors["Fields:Total"], ["No value provided for required 'Total' field of 'Order' element with index 1."])
        self.assertEqual(
            errors["Objects:Lines/Fields:ItemCode"],
            ["No value provided for required 'ItemCode' (item_code) field of 'Lines' element."],
        )
        self.assertEqual(len(cm.exception.messages), 2)

    def test_invalid_values(self):
        container = self.registry.create("Order", {"Total": 1, "customer": {"email": "jo@example.com"}}, "insert")
        container.get_object("customer").set_field("email", "not-an-address", validation=ValidationBehavior.nothing())
        with self.assertRaises(ValidationError) as cm:
            container.get_elements(self.change, self.validation)
        self.assertIn("Objects:Customer/Fields:Email", cm.exception.errors)

    def test_validation_does_not_mutate(self):
        container = self.registry.create("Order", {"Total": " 5 ", "lines": [{"item_code": "A"}]}, "insert")
        before = container.get_elements()
        container.get_elements(self.change, self.validation)
        container.output("xml")
        self.assertEqual(container.get_elements(), before)


class TestFieldValues(unittest.TestCase):
    """Test cases for single value validation."""

    def setUp(self):
        self.change = ChangeBehavior()
        self.validation = ValidationBehavior()

    def check(self, value_type, value, change=None, validation=None):
        field = FieldDef("F", {"type": value_type})
        return validate_field_value(value, field, change or self.change, validation or self.validation, "'T' element")

    def test_boolean(self):
        self.assertEqual(self.check("boolean", True), (True, None))
        self.assertEqual(self.check("boolean", "false"), (False, None))
        self.assertEqual(self.check("boolean", "TRUE"), (True, None))
        self.assertEqual(self.check("boolean", 0), (False, None))
        self.assertEqual(self.check("boolean", -1), (True, None))
        self.assertEqual(self.check("boolean", "1"), (True, None))
        _, error = self.check("boolean", "yes")
        self.assertEqual(error, "'F' field value of 'T' element must be a boolean value.")

    def test_boolean_without_reformat(self):
        self.assertEqual(self.check("boolean", "true", change=ChangeBehavior.no_changes()), ("true", None))

    def test_integer(self):
        self.assertEqual(self.check("integer", "12"), (12, None))
        self.assertEqual(self.check("integer", 12.0), (12, None))
        self.assertIn("must be an integer value", self.check("integer", "1.5")[1])
        self.assertIn("must be an integer value", self.check("integer", "1.0")[1])
        self.assertIn("must be numeric", self.check("integer", "abc")[1])
        self.assertIn("must be numeric", self.check("integer", True)[1])
        self.assertIn("must be numeric", self.check("integer", "1e400")[1])
        self.assertIn("must be numeric", self.check("integer", float("inf"))[1])
        self.assertEqual(self.check("integer", "1e3"), (1000, None))

    def test_decimal(self):
        self.assertEqual(self.check("decimal", "1.5"), (1.5, None))
        self.assertEqual(self.check("decimal", "3"), (3, None))
        self.assertEqual(self.check("decimal", 2.25), (2.25, None))
        self.assertIn("must be numeric", self.check("decimal", "1,5")[1])
        self.assertIn("must be numeric", self.check("decimal", "1e400")[1])
        self.assertIn("must be numeric", self.check("decimal", "-1E999")[1])
        self.assertIn("must be numeric", self.check("decimal", float("nan"))[1])
        self.assertEqual(self.check("decimal", 10 ** 400), (10 ** 400, None))

    def test_date(self):
        self.assertEqual(self.check("date", date(2024, 2, 29)), ("2024-02-29", None))
        self.assertEqual(self.check("date", date(2024, 2, 29), change=ChangeBehavior.no_changes()), ("2024-02-29", None))
        self.assertEqual(self.check("date", "2024-02-29"), ("2024-02-29", None))
        # Only checked with format validation.
        self.assertEqual(self.check("date", "29-02-2024"), ("29-02-2024", None))
        _, error = self.check("date", "29-02-2024", validation=ValidationBehavior(format=True))
        self.assertIn("YYYY-MM-DD", error)
        self.assertIn("must be a date string", self.check("date", 20240229)[1])

    def test_email(self):
        self.assertEqual(self.check("email", " jo@example.com "), ("jo@example.com", None))
        self.assertIn("valid e-mail address", self.check("email", "jo@example")[1])

    def test_string(self):
        self.assertEqual(self.check("string", "  a "), ("a", None))
        self.assertEqual(self.check("string", 5), (5, None))
        self.assertIn("must be scalar", self.check("string", ["a"])[1])

    def test_null_not_validated(self):
        self.assertEqual(self.check("integer", None), (None, None))

    def test_errors_ignored_without_essential_validation(self):
        self.assertEqual(self.check("integer", "abc", validation=ValidationBehavior.nothing()), ("abc", None))

    def test_resolve_default(self):
        self.assertEqual(resolve_default(FieldDef("D", {"type": "date", "default": "today"})), date.today().isoformat())
        self.assertEqual(resolve_default(FieldDef("D", {"default": "today"})), "today")
        self.assertIsNone(resolve_default(FieldDef("D", {"default": None})))

    def test_describe_element(self):
        self.assertEqual(describe_element("T", 0, 1), "'T' element")
        self.assertEqual(describe_element("T", 1, 3), "'T' element with index 2")
        self.assertEqual(describe_element("T", "a", 3), "'T' element with key 'a'")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    unittest.main()
