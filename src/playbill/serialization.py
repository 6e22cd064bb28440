"""JSON body conventions for the API ability.

Writing: keys become camelCase (dataclass fields and mapping keys alike) and
output is compact.  Reading: objects decode to ``JsonObject``, a mapping
whose lookups ignore case, or into a dataclass whose fields are matched
ignoring case and underscores.
"""

from __future__ import annotations

import dataclasses
import json
import types
import typing
from collections.abc import Mapping
from typing import Any, Iterator, TypeVar

T = TypeVar("T")


def _lower_leading(word: str) -> str:
    """Lowercase the leading run of capitals: ``ID`` -> ``id``, ``URLPath`` -> ``urlPath``."""
    run = 0
    while run < len(word) and word[run].isupper():
        run += 1
    # The last capital of a run starts the next word when a lowercase letter follows.
    if 1 < run < len(word) and word[run].islower():
        run -= 1
    return word[:run].lower() + word[run:]


def to_camel(name: str) -> str:
    """``user_id`` -> ``userId``; ``Name`` -> ``name``; ``ID`` -> ``id``; ``firstName`` unchanged."""
    head, *rest = name.split("_")
    head = _lower_leading(head)
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _fold(key: str) -> str:
    return key.replace("_", "").lower()


def to_wire(value: Any) -> Any:
    """Convert dataclasses, mappings and sequences to camelCase JSON-ready data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {to_camel(f.name): to_wire(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {to_camel(str(k)): to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    return value


def dumps(body: Any) -> str:
    """Serialize a request body: camelCase keys, compact separators."""
    return json.dumps(to_wire(body), separators=(",", ":"), ensure_ascii=False)


class JsonObject(Mapping):
    """Read-only JSON object with case-insensitive key lookup.

    Iteration yields the keys as they appeared on the wire.
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)
        self._index = {_fold(k): k for k in self._data}

    def __getitem__(self, key: str) -> Any:
        if key in self._data:
            return self._data[key]
        return self._data[self._index[_fold(key)]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self) -> str:
        return f"JsonObject({self._data!r})"

    def to_dict(self) -> dict[str, Any]:
        return {k: _plain(v) for k, v in self._data.items()}


def _plain(value: Any) -> Any:
    if isinstance(value, JsonObject):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def _wrap(value: Any) -> Any:
    if isinstance(value, dict):
        return JsonObject({k: _wrap(v) for k, v in value.items()})
    if isinstance(value, list):
        return [_wrap(v) for v in value]
    return value


def loads(text: str | None, model: type[T] | None = None) -> Any:
    """Decode a response body.  Empty text decodes to None."""
    if text is None or not text.strip():
        return None
    data = json.loads(text)
    if model is None:
        return _wrap(data)
    return from_wire(data, model)


def from_wire(data: Any, model: Any) -> Any:
    """Build ``model`` from decoded JSON, matching fields case-insensitively."""
    origin = typing.get_origin(model)
    if origin in (list, tuple) and isinstance(data, list):
        (item_type, *_) = typing.get_args(model) or (Any,)
        return [from_wire(item, item_type) for item in data]
    if origin in (typing.Union, types.UnionType):
        inner = [a for a in typing.get_args(model) if a is not type(None)]
        return from_wire(data, inner[0]) if data is not None and len(inner) == 1 else data
    if isinstance(model, type) and dataclasses.is_dataclass(model) and isinstance(data, dict):
        hints = typing.get_type_hints(model)
        by_key = {_fold(k): v for k, v in data.items()}
        kwargs = {}
        for f in dataclasses.fields(model):
            if not f.init:
                continue
            folded = _fold(f.name)
            if folded in by_key:
                kwargs[f.name] = from_wire(by_key[folded], hints.get(f.name, Any))
        return model(**kwargs)
    if isinstance(data, dict):
        return _wrap(data)
    return data


def lookup_path(data: Any, path: str) -> tuple[bool, Any]:
    """Follow a dotted path (``user.address.city``) through decoded JSON."""
    current = data
    for part in (p.strip() for p in path.split(".")):
        if not part:
            continue
        if isinstance(current, Mapping):
            try:
                current = current[part]
                continue
            except KeyError:
                return False, None
        return False, None
    return True, current
