from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from toolveil import __version__

DEFAULT_SERVER_NAME = "toolveil"


class ToolFilterConfig(BaseModel):
    """Which tools the client gets to see.

    ``include`` is a whitelist and ``exclude`` a blacklist of name patterns;
    at most one of them may be set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include: list[str] | None = None
    exclude: list[str] | None = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> ToolFilterConfig:
        if self.include is not None and self.exclude is not None:
            raise ValueError("include and exclude tool patterns are mutually exclusive")
        return self

    @property
    def is_active(self) -> bool:
        return self.include is not None or self.exclude is not None


class ServerIdentity(BaseModel):
    """Client identity sent in the lister's ``initialize`` request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default=DEFAULT_SERVER_NAME, min_length=1)
    version: str = Field(default=__version__, min_length=1)
