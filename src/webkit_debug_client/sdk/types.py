"""SDK type definitions."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    """A position in a parsed script, as used by Debugger.setBreakpoint."""

    model_config = ConfigDict(populate_by_name=True)

    script_id: str = Field(alias="scriptId")
    line_number: int = Field(alias="lineNumber")
    column_number: int | None = Field(default=None, alias="columnNumber")

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TargetInfo(BaseModel):
    """One entry of the /json discovery listing."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = None
    type: str | None = None
    title: str | None = None
    url: str | None = None
    web_socket_debugger_url: str | None = Field(default=None, alias="webSocketDebuggerUrl")


class RemoteObject(BaseModel):
    """Mirror of a value living in the debuggee (Runtime.RemoteObject)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str
    subtype: str | None = None
    class_name: str | None = Field(default=None, alias="className")
    value: Any = None
    description: str | None = None
    object_id: str | None = Field(default=None, alias="objectId")

    def display(self) -> str:
        """Short human-readable form."""
        if self.description is not None:
            return self.description
        if self.type == "undefined":
            return "undefined"
        return json.dumps(self.value)
