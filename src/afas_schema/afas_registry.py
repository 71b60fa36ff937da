"""
Registry factory for AFAS update connector objects.

Usage:
```python
registry = create_afas_registry().build()
order = registry.create("FbSales", {"sales_relation": "1234", "line_items": [{"item_code": "A1", "unit_price": 10}]}, "insert")
print(order.output("xml"))
```
"""

from typing import Optional

from update_connector.schema_registry import SchemaRegistry

from .afas_containers import FbSalesLines, KnBasicAddress, ObjectWithCountry, OrgPersonContact
from .definitions import BUILTIN_DEFINITIONS

CONTAINER_CLASSES = {
    "FbSales": ObjectWithCountry,
    "KnBasicAddress": KnBasicAddress,
    "FbSalesLines": FbSalesLines,
    "KnContact": OrgPersonContact,
    "KnPerson": OrgPersonContact,
    "KnOrganisation": OrgPersonContact,
}


def create_afas_registry(overrides_file: Optional[str] = None) -> SchemaRegistry:
    """
    Create a registry with the built-in AFAS definitions and container classes.

    The registry is not built yet, so more overrides can be added first.

    Args:
        overrides_file: Optional JSON overrides file to load.
    """
    registry = SchemaRegistry(BUILTIN_DEFINITIONS)
    for type_name, container_class in CONTAINER_CLASSES.items():
        registry.register_type(type_name, container_class)
    if overrides_file:
        registry.load_overrides(overrides_file)
    return registry
