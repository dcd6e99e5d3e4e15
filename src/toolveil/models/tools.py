"""Tool inventory models.

Only ``name`` (and ``description`` for listings) is interpreted; every other
field is carried along untouched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolDescriptor(BaseModel):
    """A single tool advertised by the target server."""

    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _ignore_non_text_description(cls, v: Any) -> str | None:
        # An odd description must not turn a tool list into an unrecognised shape.
        return v if isinstance(v, str) else None


class ToolListResult(BaseModel):
    """The ``result`` object of a ``tools/list`` response."""

    model_config = ConfigDict(extra="allow")

    tools: list[ToolDescriptor] = Field(..., description="Tools advertised by the server")
