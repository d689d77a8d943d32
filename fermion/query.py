"""Conditional query composition.

Every combinator takes a pipeline and a condition. When the condition is
false the pipeline is returned as is (the same object), except for
`select_if`, which always projects with one of its two selectors.

Two pipeline kinds are understood:

* `Query`, an immutable lazy pipeline over any Python iterable;
* SQLAlchemy `Select` statements, composed with their own generative methods.

Plain iterables are wrapped in a `Query` when a stage is appended.
"""

from itertools import islice
from typing import Any, Callable, Iterable, Iterator, List, Tuple

from sqlalchemy.sql import Select


def _filtered(items, predicate):
    return filter(predicate, items)


def _ordered(items, keys):
    result = list(items)
    # successive stable sorts, least significant key first
    for key, ascending in reversed(keys):
        result.sort(key=key, reverse=not ascending)
    yield from result


def _skipped(items, count):
    return islice(items, count, None)


def _taken(items, count):
    return islice(items, count)


def _projected(items, selector):
    return map(selector, items)


_STAGES = {
    "where": _filtered,
    "order": _ordered,
    "skip": _skipped,
    "take": _taken,
    "select": _projected,
}


class Query:
    """Immutable description of a sequence transformation.

    Stages are only applied when the query is iterated. Iterating twice
    evaluates the source twice; materialize with `to_list()` for a snapshot.
    """

    __slots__ = ("_source", "_stages")

    def __init__(self, source: Iterable, stages: Tuple = ()):
        self._source = source
        self._stages = tuple(stages)

    def _extend(self, kind: str, arg: Any) -> "Query":
        return Query(self._source, self._stages + ((kind, arg),))

    @property
    def is_ordered(self) -> bool:
        return bool(self._stages) and self._stages[-1][0] == "order"

    def where(self, predicate: Callable[[Any], bool]) -> "Query":
        return self._extend("where", predicate)

    def order_by(self, key: Callable[[Any], Any], ascending: bool = True) -> "Query":
        return self._extend("order", ((key, ascending),))

    def then_by(self, key: Callable[[Any], Any], ascending: bool = True) -> "Query":
        """Add a tie-break key to the trailing ordering stage.

        Raises:
            TypeError: if the last stage is not an ordering.
        """
        if not self.is_ordered:
            raise TypeError("then_by requires a query whose last stage is order_by")
        _, keys = self._stages[-1]
        return Query(self._source, self._stages[:-1] + (("order", keys + ((key, ascending),)),))

    def skip(self, count: int) -> "Query":
        return self._extend("skip", count)

    def take(self, count: int) -> "Query":
        return self._extend("take", count)

    def select(self, selector: Callable[[Any], Any]) -> "Query":
        return self._extend("select", selector)

    def __iter__(self) -> Iterator:
        items = iter(self._source)
        for kind, arg in self._stages:
            items = _STAGES[kind](items, arg)
        return iter(items)

    def to_list(self) -> List:
        return list(self)

    def __repr__(self) -> str:
        stages = ", ".join(kind for kind, _ in self._stages)
        return f"Query(stages=[{stages}])"


def _pipeline(query):
    if isinstance(query, (Query, Select)):
        return query
    return Query(query)


def _skip(query, count):
    query = _pipeline(query)
    return query.offset(count) if isinstance(query, Select) else query.skip(count)


def _take(query, count):
    query = _pipeline(query)
    return query.limit(count) if isinstance(query, Select) else query.take(count)


def where_if(query, condition: bool, predicate):
    """Filter the query when `condition` is true.

    Args:
        query: Query, Select or iterable.
        condition: whether to apply the filter.
        predicate: callable for a Query, SQL expression for a Select.

    Returns:
        The filtered pipeline, or `query` itself.
    """
    return _pipeline(query).where(predicate) if condition else query


def order_by_if(query, condition: bool, key, ascending: bool = True):
    """Sort by `key` when `condition` is true, replacing any earlier ordering."""
    if not condition:
        return query
    query = _pipeline(query)
    if isinstance(query, Select):
        return query.order_by(None).order_by(key.asc() if ascending else key.desc())
    return query.order_by(key, ascending)


def then_by_if(query, condition: bool, key, ascending: bool = True):
    """Break ties of the current ordering by `key` when `condition` is true."""
    if not condition:
        return query
    query = _pipeline(query)
    if isinstance(query, Select):
        return query.order_by(key.asc() if ascending else key.desc())
    return query.then_by(key, ascending)


def skip_if(query, condition: bool, count: int):
    return _skip(query, count) if condition else query


def take_if(query, condition: bool, count: int):
    return _take(query, count) if condition else query


def select_if(query, condition: bool, selector, alternative):
    """Project with `selector` when `condition` is true, else with `alternative`.

    For a Select, each selector is a column or a list/tuple of columns.
    """
    chosen = selector if condition else alternative
    query = _pipeline(query)
    if isinstance(query, Select):
        columns = chosen if isinstance(chosen, (list, tuple)) else (chosen,)
        return query.with_only_columns(*columns)
    return query.select(chosen)


def do_if(obj, condition: bool, func: Callable[[Any], Any]):
    """Return `func(obj)` when `condition` is true, otherwise `obj`."""
    return func(obj) if condition else obj


def to_paged(query, page_number: int = 1, page_size: int = 10):
    """Restrict a pipeline to one page (1-based page numbers).

    A page number below 1 is treated as 1 and a page size below 1 as 10.
    """
    if page_number < 1:
        page_number = 1
    if page_size < 1:
        page_size = 10
    return _take(_skip(query, (page_number - 1) * page_size), page_size)
