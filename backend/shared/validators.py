"""Helpers for list-valued settings read from the environment."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_string_list(value: str | list[str]) -> list[str]:
    """Accept a list, a JSON array string ('["a","b"]') or a CSV string ('a,b').

    Empty input and malformed JSON raise ValueError.
    """
    if isinstance(value, list):
        items = value
    else:
        text = value.strip()
        if text.startswith("["):
            try:
                items = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
            if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
                raise ValueError("JSON value must be an array of strings")
        else:
            items = [part.strip() for part in text.split(",")]

    items = [item for item in items if item]
    if not items:
        raise ValueError("String list value must not be empty")
    return items


class StringListEnvSettingsSource(EnvSettingsSource):
    """Hand raw env strings for list fields to the field validator untouched.

    By default pydantic-settings JSON-decodes list fields before validation,
    which rejects the CSV form.
    """

    list_fields: frozenset[str] = frozenset({"cors_origins"})

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in self.list_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
