"""
JSON and XML rendering of validated elements.

Both serializers only consume validated output; they never validate or
change anything themselves.
"""

from __future__ import annotations

from typing import Any, Dict, List
import json

import xmltodict

from .behavior import OutputOptions
from .input_normalizer import ELEMENT_KEY
from .validator import ValidatedElement

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"


def render_json(type_name: str, elements: List[Dict[str, Any]], flatten: bool, options: OutputOptions) -> str:
    """
    Render elements as {type_name: {"Element": ...}}.

    Args:
        type_name: Record type of the top level container.
        elements: Validated elements in wire shape.
        flatten: Output a single element as an object rather than a one-item list.
        options: Only 'pretty' and 'indent_size' are used.
    """
    payload: Any = elements
    if flatten and len(elements) == 1:
        payload = elements[0]
    data = {type_name: {ELEMENT_KEY: payload}}
    if options.pretty:
        return json.dumps(data, indent=options.indent_for("json"))
    return json.dumps(data, separators=(",", ":"))


def xml_value(value: Any) -> str:
    """Format a scalar field value for XML: booleans as 1/0, everything else as text."""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def xml_element(element: ValidatedElement) -> Dict[str, Any]:
    """
    Build the xmltodict structure for one element.

    The id becomes an attribute of <Element>, the action an attribute of
    <Fields> and null values an empty tag with xsi:nil="true". <Fields> is
    always present, <Objects> only when there are embedded objects.
    """
    node: Dict[str, Any] = {}
    if element.id_property and element.id_value is not None:
        node[f"@{element.id_property}"] = xml_value(element.id_value)

    fields: Dict[str, Any] = {}
    if element.action:
        fields["@Action"] = element.action
    for name, value in element.fields.items():
        fields[name] = {"@xsi:nil": "true"} if value is None else xml_value(value)
    node["Fields"] = fields

    if element.objects:
        node["Objects"] = {
            ref_name: {ELEMENT_KEY: [xml_element(nested) for nested in embedded_object.elements]}
            for ref_name, embedded_object in element.objects.items()
        }
    return node


def render_xml(type_name: str, elements: List[ValidatedElement], options: OutputOptions) -> str:
    """
    Render elements as XML for a SOAP update connector.

    The top level is wrapped in <type_name xmlns:xsi="...">; embedded objects
    are rendered inside <Objects><RefName>...</RefName></Objects>.

    With options.pretty, nested tags are indented by options.indent_for("xml")
    spaces (an indent size of 0 cancels pretty printing). Every line starts
    with options.line_prefix. The output never ends with a newline.
    """
    indent = options.indent_for("xml")
    pretty = options.pretty and indent > 0
    document = {type_name: {
        "@xmlns:xsi": XSI_NAMESPACE,
        ELEMENT_KEY: [xml_element(element) for element in elements],
    }}
    xml = xmltodict.unparse(
        document,
        full_document=False,
        short_empty_elements=True,
        pretty=pretty,
        indent=" " * indent,
        newl="\n" + options.line_prefix,
    )
    return options.line_prefix + xml
