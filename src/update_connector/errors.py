"""Exception taxonomy for the update connector engine.

- DefinitionError: defect in static configuration (property definitions,
  overrides). Not recoverable by changing input.
- InputError: bad input shape, detected while elements are added or set.
- ValidationError: aggregated report of every problem found while
  validating a container's elements for output.
"""

from typing import Dict, Iterable, List, Optional


class UpdateConnectorError(Exception):
    """Base class for all errors raised by the update connector engine."""


class DefinitionError(UpdateConnectorError, ValueError):
    """Malformed property definition or override."""


class InputError(UpdateConnectorError, ValueError):
    """One or more structural problems with input passed to a container."""

    def __init__(self, messages: Iterable[str]) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__("\n".join(self.messages))


class UnknownTypeError(InputError):
    """No built-in or override definition exists for a type name."""


class ValidationError(UpdateConnectorError, ValueError):
    """Aggregated validation failure.

    Args:
        errors: Messages keyed by the path of the property they belong to,
            e.g. "Fields:ItCd" or "Objects:FbSalesLines/Fields:ItCd".
    """

    def __init__(self, errors: Dict[str, List[str]], type_name: Optional[str] = None) -> None:
        self.errors: Dict[str, List[str]] = {key: list(messages) for key, messages in errors.items()}
        self.type_name = type_name
        super().__init__("\n".join(self.messages))

    @property
    def messages(self) -> List[str]:
        return [message for messages in self.errors.values() for message in messages]
