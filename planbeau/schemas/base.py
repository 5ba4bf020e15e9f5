"""Base model for records loaded from backend payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class PayloadModel(BaseModel):
    """
    Canonical record built once at the data-loading boundary.

    Backend payloads spell the same field several ways (``PackageName``,
    ``name``). Subclasses list every spelling with ``AliasChoices``; empty
    values are dropped first so the first non-empty spelling wins.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_values(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None and v != ""}
        return data


def coerce_id(value: Any) -> Any:
    """Backend IDs arrive as ints or strings; keep them as strings."""
    if value is None:
        return None
    return str(value)
