"""
pentagon_domains/representation.py
══════════════════════════════════

Structured snapshots of abstract values, used by hosts for diagnostics and
by tests for comparison.

    StringRepresentation("[0, 5]")
    SetRepresentation({"x", "y"})                 → {x, y}
    ListRepresentation([iv, bounds])              → (iv, bounds)
    MapRepresentation({"x": …, "y": …})           → x: …\\ny: …

Rendering is deterministic: sets and maps are sorted by their rendered
text, so two equal abstract values always print the same.

Three renderings are offered:

    str(r)        human-readable text
    r.to_json()   plain ``dict`` / ``list`` / ``str`` data
    r.to_sexp()   S-expression text (via ``sexpdata``), e.g.
                  (map ("x" (list "[0, 2]" (set "y"))))
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Tuple, Union

import sexpdata


TOP_STRING = "#TOP#"
BOTTOM_STRING = "_|_"


class StructuredRepresentation(abc.ABC):
    """Common base: equality and hashing go through the rendered text."""

    @abc.abstractmethod
    def to_json(self) -> Any:
        """Plain JSON-compatible data."""
        ...

    @abc.abstractmethod
    def _sexp_data(self) -> Any:
        """Nested lists and symbols handed to ``sexpdata.dumps``."""
        ...

    @abc.abstractmethod
    def __str__(self) -> str:
        ...

    def to_sexp(self) -> str:
        return sexpdata.dumps(self._sexp_data())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuredRepresentation):
            return NotImplemented
        return type(self) is type(other) and str(self) == str(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, str(self)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


@dataclass(frozen=True, eq=False, repr=False)
class StringRepresentation(StructuredRepresentation):
    text: str

    @classmethod
    def of(cls, value: Any) -> StringRepresentation:
        return cls(str(value))

    def to_json(self) -> Any:
        return self.text

    def _sexp_data(self) -> Any:
        return self.text

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, eq=False, repr=False)
class SetRepresentation(StructuredRepresentation):
    elements: FrozenSet[StructuredRepresentation] = field(default_factory=frozenset)

    @classmethod
    def of(cls, items: Iterable[Any]) -> SetRepresentation:
        return cls(frozenset(_lift(i) for i in items))

    def sorted_elements(self) -> Tuple[StructuredRepresentation, ...]:
        return tuple(sorted(self.elements, key=str))

    def to_json(self) -> Any:
        return [e.to_json() for e in self.sorted_elements()]

    def _sexp_data(self) -> Any:
        return [sexpdata.Symbol("set")] + [e._sexp_data() for e in self.sorted_elements()]

    def __str__(self) -> str:
        return "{" + ", ".join(str(e) for e in self.sorted_elements()) + "}"


@dataclass(frozen=True, eq=False, repr=False)
class ListRepresentation(StructuredRepresentation):
    elements: Tuple[StructuredRepresentation, ...] = ()

    @classmethod
    def of(cls, items: Iterable[Any]) -> ListRepresentation:
        return cls(tuple(_lift(i) for i in items))

    def to_json(self) -> Any:
        return [e.to_json() for e in self.elements]

    def _sexp_data(self) -> Any:
        return [sexpdata.Symbol("list")] + [e._sexp_data() for e in self.elements]

    def __str__(self) -> str:
        return "(" + ", ".join(str(e) for e in self.elements) + ")"


@dataclass(frozen=True, eq=False, repr=False)
class MapRepresentation(StructuredRepresentation):
    entries: Tuple[Tuple[StructuredRepresentation, StructuredRepresentation], ...] = ()

    @classmethod
    def of(cls, mapping: Mapping[Any, Any]) -> MapRepresentation:
        pairs = [(_lift(k), _lift(v)) for k, v in mapping.items()]
        pairs.sort(key=lambda kv: str(kv[0]))
        return cls(tuple(pairs))

    def to_json(self) -> Dict[str, Any]:
        return {str(k): v.to_json() for k, v in self.entries}

    def _sexp_data(self) -> Any:
        return [sexpdata.Symbol("map")] + [
            [str(k), v._sexp_data()] for k, v in self.entries
        ]

    def __str__(self) -> str:
        return "\n".join(f"{k}: {v}" for k, v in self.entries)


class _Extremal(StructuredRepresentation):
    """Canonical ⊤ / ⊥ rendering shared by every domain."""

    def __init__(self, text: str, tag: str) -> None:
        self._text = text
        self._tag = tag

    def to_json(self) -> Any:
        return self._text

    def _sexp_data(self) -> Any:
        return sexpdata.Symbol(self._tag)

    def __str__(self) -> str:
        return self._text


TOP_REPRESENTATION: StructuredRepresentation = _Extremal(TOP_STRING, "top")
BOTTOM_REPRESENTATION: StructuredRepresentation = _Extremal(BOTTOM_STRING, "bottom")


def _lift(value: Union[StructuredRepresentation, Any]) -> StructuredRepresentation:
    if isinstance(value, StructuredRepresentation):
        return value
    representation = getattr(value, "representation", None)
    if callable(representation):
        return representation()
    return StringRepresentation(str(value))


__all__ = [
    "TOP_STRING",
    "BOTTOM_STRING",
    "StructuredRepresentation",
    "StringRepresentation",
    "SetRepresentation",
    "ListRepresentation",
    "MapRepresentation",
    "TOP_REPRESENTATION",
    "BOTTOM_REPRESENTATION",
]
