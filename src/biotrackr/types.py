"""Shared type aliases and typed dictionaries."""

from __future__ import annotations

from typing import TypeAlias, TypedDict

JSONValue: TypeAlias = (
    str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
)
JSONObject: TypeAlias = dict[str, JSONValue]


class ErrorBody(TypedDict, total=False):
    """Error payload returned by the read API."""

    error: str
    detail: str


class StoreStatus(TypedDict):
    """Document store location reported by the info endpoint."""

    database: str
    container: str
