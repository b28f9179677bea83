"""Metadata and document filter predicates.

Filters are forwarded to the server verbatim; the server owns the grammar
and validates it. The node classes here only make the common shapes easier
to build::

    where = eq("color", "red") & gte("price", 4.2)
    # {"$and": [{"color": {"$eq": "red"}}, {"price": {"$gte": 4.2}}]}

    where_document = contains("octopus") | contains("squid")

Plain mappings are accepted anywhere a filter is expected.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from chroma_rest.errors import ConfigurationError

Scalar = Union[str, int, float, bool]


class FilterNode:
    """Base class for filter nodes; supports ``&`` and ``|``."""

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def __and__(self, other: "FilterLike") -> "Logical":
        return and_(self, other)

    def __or__(self, other: "FilterLike") -> "Logical":
        return or_(self, other)


@dataclass(frozen=True)
class Comparison(FilterNode):
    """Leaf predicate on a metadata field, e.g. ``{"price": {"$gte": 4.2}}``."""

    field: str
    op: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        value = list(self.value) if isinstance(self.value, (list, tuple)) else self.value
        return {self.field: {self.op: value}}


@dataclass(frozen=True)
class DocumentMatch(FilterNode):
    """Leaf predicate on document text, e.g. ``{"$contains": "hello"}``."""

    op: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {self.op: self.value}


@dataclass(frozen=True)
class Logical(FilterNode):
    """``$and`` / ``$or`` over nested predicates."""

    op: str
    clauses: tuple["FilterLike", ...]

    def to_dict(self) -> dict[str, Any]:
        return {self.op: [to_wire(clause) for clause in self.clauses]}


FilterLike = Union[FilterNode, Mapping[str, Any]]


def to_wire(value: FilterLike | None) -> dict[str, Any] | None:
    """Convert a filter node or mapping into its JSON form.

    Raises:
        ConfigurationError: If ``value`` is neither a node nor a mapping
    """
    if value is None:
        return None
    if isinstance(value, FilterNode):
        return value.to_dict()
    if isinstance(value, Mapping):
        return dict(value)
    raise ConfigurationError(
        f"Filters must be mappings or filter nodes, got {type(value).__name__}"
    )


def _flatten(op: str, clauses: Sequence[FilterLike]) -> tuple[FilterLike, ...]:
    flat: list[FilterLike] = []
    for clause in clauses:
        # (a & b) & c -> $and[a, b, c]
        if isinstance(clause, Logical) and clause.op == op:
            flat.extend(clause.clauses)
        else:
            flat.append(clause)
    return tuple(flat)


def and_(*clauses: FilterLike) -> Logical:
    return Logical("$and", _flatten("$and", clauses))


def or_(*clauses: FilterLike) -> Logical:
    return Logical("$or", _flatten("$or", clauses))


def eq(field: str, value: Scalar) -> Comparison:
    return Comparison(field, "$eq", value)


def ne(field: str, value: Scalar) -> Comparison:
    return Comparison(field, "$ne", value)


def gt(field: str, value: int | float) -> Comparison:
    return Comparison(field, "$gt", value)


def gte(field: str, value: int | float) -> Comparison:
    return Comparison(field, "$gte", value)


def lt(field: str, value: int | float) -> Comparison:
    return Comparison(field, "$lt", value)


def lte(field: str, value: int | float) -> Comparison:
    return Comparison(field, "$lte", value)


def in_(field: str, values: Sequence[Scalar]) -> Comparison:
    return Comparison(field, "$in", tuple(values))


def nin(field: str, values: Sequence[Scalar]) -> Comparison:
    return Comparison(field, "$nin", tuple(values))


def contains(text: str) -> DocumentMatch:
    return DocumentMatch("$contains", text)


def not_contains(text: str) -> DocumentMatch:
    return DocumentMatch("$not_contains", text)


def regex(pattern: str) -> DocumentMatch:
    return DocumentMatch("$regex", pattern)


def not_regex(pattern: str) -> DocumentMatch:
    return DocumentMatch("$not_regex", pattern)
