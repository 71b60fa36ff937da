"""Behavior and output option models.

Validation and output are tuned through two independent sets of named
flags: ChangeBehavior (what may be changed in the validated copy of the
elements) and ValidationBehavior (which checks are performed).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChangeBehavior(BaseModel):
    """Which changes validation may apply to the returned copy of elements."""

    model_config = ConfigDict(frozen=True)

    # If False, embedded containers are validated without any changes.
    allow_embedded_changes: bool = True
    allow_defaults_on_insert: bool = True
    allow_defaults_on_update: bool = False
    # Trim strings and coerce values to their declared type.
    allow_reformat: bool = True
    # Changes not covered by the other flags; interpreted by type-specific containers.
    allow_changes: bool = False
    # Top level JSON output only; embedded objects follow their 'multiple' property.
    flatten_single_element: bool = True
    renumber_indexes: bool = False

    @classmethod
    def no_changes(cls) -> "ChangeBehavior":
        return cls(
            allow_embedded_changes=False,
            allow_defaults_on_insert=False,
            allow_defaults_on_update=False,
            allow_reformat=False,
            allow_changes=False,
            flatten_single_element=False,
            renumber_indexes=False,
        )

    def defaults_allowed(self, action: str) -> bool:
        """Return whether default values may be filled in for an element with this action."""
        return (action == "insert" and self.allow_defaults_on_insert) or (
            action == "update" and self.allow_defaults_on_update
        )

    def for_embedded(self) -> "ChangeBehavior":
        """Behavior to pass into embedded containers."""
        if self.allow_embedded_changes:
            return self
        return ChangeBehavior.no_changes()


class ValidationBehavior(BaseModel):
    """Which checks are performed while adding or validating elements."""

    model_config = ConfigDict(frozen=True)

    # Basic scalar/type checks, and requiredness of fields marked "always".
    essential: bool = True
    required: bool = True
    no_unknown_keys: bool = True
    # Stricter formatting checks (e.g. ISO dates).
    format: bool = False

    @classmethod
    def nothing(cls) -> "ValidationBehavior":
        return cls(essential=False, required=False, no_unknown_keys=False, format=False)

    @classmethod
    def essential_only(cls) -> "ValidationBehavior":
        return cls(essential=True, required=False, no_unknown_keys=False, format=False)


class OutputOptions(BaseModel):
    """Cosmetic options for serialized output."""

    model_config = ConfigDict(frozen=True)

    pretty: bool = False
    # Defaults to 4 for JSON and 2 for XML. 0 cancels pretty printing for XML.
    indent_size: Optional[int] = Field(default=None, ge=0)
    # XML only: string prepended to every line.
    line_prefix: str = ""

    def indent_for(self, format_name: str) -> int:
        if self.indent_size is not None:
            return self.indent_size
        return 4 if format_name == "json" else 2
