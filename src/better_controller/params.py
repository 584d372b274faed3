"""Typed access to request parameters.

Values are cast with pydantic `TypeAdapter`s; a value that fails to cast
yields the default rather than an error, matching how query strings are
usually treated.
"""

import json
import re
from datetime import date, datetime
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from better_controller.errors import ParameterMissingError

_ADAPTERS: dict[str, TypeAdapter] = {
    "integer": TypeAdapter(int),
    "float": TypeAdapter(float),
    "string": TypeAdapter(str),
    "boolean": TypeAdapter(bool),
    "date": TypeAdapter(date),
    "datetime": TypeAdapter(datetime),
}

_TYPE_ALIASES: dict[Any, str] = {
    int: "integer",
    float: "float",
    str: "string",
    bool: "boolean",
    "bool": "boolean",
    date: "date",
    datetime: "datetime",
    list: "array",
    dict: "hash",
}


def cast_param(value: Any, type: Any = None, default: Any = None) -> Any:
    """Cast one raw parameter value."""
    kind = _TYPE_ALIASES.get(type, type)
    if kind is None:
        return value
    if kind == "array":
        return value if isinstance(value, list) else [value]
    if kind == "hash":
        return value if isinstance(value, dict) else default
    if kind == "json":
        if isinstance(value, dict):
            return value
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            return default
    adapter = _ADAPTERS.get(kind)
    if adapter is None:
        raise ValueError(f"Unknown parameter type: {type!r}")
    try:
        return adapter.validate_python(value, strict=False)
    except PydanticValidationError:
        return default


class ParamsMixin:
    """Parameter helpers for classes exposing a `params` mapping."""

    params: Mapping[str, Any]

    def param(self, key: str, type: Any = None, default: Any = None, required: bool = False) -> Any:
        value = self.params.get(key)
        if value is None or value == "":
            if required:
                raise ParameterMissingError(key)
            return default
        return cast_param(value, type, default)

    def integer_param(self, key: str, default: int | None = None) -> int | None:
        return self.param(key, type="integer", default=default)

    def float_param(self, key: str, default: float | None = None) -> float | None:
        return self.param(key, type="float", default=default)

    def boolean_param(self, key: str, default: bool = False) -> bool:
        return self.param(key, type="boolean", default=default)

    def date_param(self, key: str, default: date | None = None) -> date | None:
        return self.param(key, type="date", default=default)

    def datetime_param(self, key: str, default: datetime | None = None) -> datetime | None:
        return self.param(key, type="datetime", default=default)

    def array_param(self, key: str, default: list | None = None) -> list:
        return self.param(key, type="array", default=[] if default is None else default)

    def hash_param(self, key: str, default: dict | None = None) -> dict:
        return self.param(key, type="hash", default={} if default is None else default)

    def json_param(self, key: str, default: dict | None = None) -> Any:
        return self.param(key, type="json", default={} if default is None else default)


_BRACKETS = re.compile(r"\[([^\]]*)\]")


def nest_params(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Expand bracketed keys: `user[name]=x` -> {"user": {"name": "x"}}, `tags[]=a` -> {"tags": ["a"]}."""
    params: dict[str, Any] = {}
    for key, value in items:
        head, bracket, _ = key.partition("[")
        if not bracket:
            params[key] = value
            continue

        parts = [head, *_BRACKETS.findall(key[len(head):])]
        append = parts[-1] == ""
        if append:
            parts.pop()
        target = params
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = target[part] = {}
            target = child
        if append:
            values = target.get(parts[-1])
            if not isinstance(values, list):
                values = target[parts[-1]] = []
            values.append(value)
        else:
            target[parts[-1]] = value
    return params


def permit_params(source: Mapping[str, Any], permitted: tuple[Any, ...] | None) -> dict[str, Any]:
    """Keep only permitted keys.

    `permitted` entries are key names or `{key: (subkeys...)}` mappings for
    nested values. None disables filtering; an empty tuple permits nothing.
    """
    if permitted is None:
        return dict(source)

    allowed: dict[str, Any] = {}
    for entry in permitted:
        if isinstance(entry, Mapping):
            for key, nested in entry.items():
                value = source.get(key)
                if isinstance(value, Mapping):
                    allowed[key] = permit_params(value, tuple(nested or ()))
                elif isinstance(value, list):
                    allowed[key] = [
                        permit_params(v, tuple(nested or ())) if isinstance(v, Mapping) else v
                        for v in value
                    ]
        elif str(entry) in source:
            allowed[str(entry)] = source[str(entry)]
    return allowed
