"""Invocation parameters exposed to recipes.

Parses ``--key=value`` and ``--key`` flags into a read-only, case-sensitive
mapping.  Recipes look values up with :meth:`Params.get` and supply their own
defaults; nothing downstream can mutate the parameters once parsed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

_FLAG_RE = re.compile(r"^--(?P<key>[A-Za-z0-9_][A-Za-z0-9_.-]*)(?:=(?P<value>.*))?$", re.DOTALL)


class Params(Mapping[str, Any]):
    """Immutable mapping of invocation parameters.

    Values are ``str`` for ``--key=value`` tokens and ``True`` for bare
    ``--key`` flags.  Missing keys read as ``None`` through :meth:`get`.
    """

    __slots__ = ("_data",)

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        object.__setattr__(self, "_data", MappingProxyType(dict(values or {})))

    @classmethod
    def parse(cls, argv: Iterable[str]) -> "Params":
        """Build ``Params`` from a flat list of CLI tokens.

        Later occurrences of the same key win.

        Raises:
            ValueError: If a token is not of the form ``--key`` or ``--key=value``.
        """
        values: dict[str, Any] = {}
        for token in argv:
            match = _FLAG_RE.match(token)
            if match is None:
                raise ValueError(f"Invalid parameter {token!r}: expected --key or --key=value")
            key = match.group("key")
            value = match.group("value")
            values[key] = True if value is None else value
        return cls(values)

    # -- Mapping protocol --------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Params is read-only")

    def __repr__(self) -> str:
        return f"Params({dict(self._data)!r})"

    # -- Helpers -----------------------------------------------------------

    def is_set(self, key: str) -> bool:
        """Return ``True`` if *key* is present and truthy.

        String values ``"false"``, ``"no"``, ``"0"`` and ``""`` count as unset
        so ``--api=false`` disables an ``if_param: api`` step.
        """
        value = self._data.get(key)
        if isinstance(value, str):
            return value.strip().lower() not in {"", "false", "no", "0", "off"}
        return bool(value)

    def as_dict(self) -> dict[str, Any]:
        """Return a mutable copy, e.g. for template contexts."""
        return dict(self._data)
