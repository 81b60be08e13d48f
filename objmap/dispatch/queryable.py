"""
Projection expressions and lazily evaluated query sources.

A ``Projection`` is never run by the eager mapping paths; it is only
composed into a query, which the caller executes later. ``Query`` is the
in-memory query implementation; any object with a ``select(projection)``
method can take its place.
"""

from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from objmap.core.exceptions import MappingNotFoundError
from objmap.core.logging import get_logger
from objmap.schemas.registration import MapperKind

if TYPE_CHECKING:
    from objmap.mappers.registry import MapRegistry

logger = get_logger(__name__)

S = TypeVar("S")
T = TypeVar("T")
U = TypeVar("U")


class Projection(Generic[S, T]):
    """A composable ``source -> destination`` expression."""

    def __init__(
        self,
        expression: Callable[[S], T],
        source_type: type[S] | None = None,
        destination_type: type[T] | None = None,
    ) -> None:
        self.expression = expression
        self.source_type = source_type
        self.destination_type = destination_type

    def __call__(self, source: S) -> T:
        return self.expression(source)

    def then(self, next_projection: "Projection[T, U]") -> "Projection[S, U]":
        """Compose ``self`` followed by ``next_projection``."""
        first, second = self.expression, next_projection.expression
        return Projection(
            lambda source: second(first(source)),
            self.source_type,
            next_projection.destination_type,
        )

    def __repr__(self) -> str:
        return (
            f"Projection({getattr(self.source_type, '__name__', '?')} -> "
            f"{getattr(self.destination_type, '__name__', '?')})"
        )


class Query(Generic[T]):
    """
    Deferred query over an iterable.

    Operations are recorded, not run; iterating the query (or calling
    ``to_list``) executes them against the source. Executing twice
    re-reads the source, so a query over a generator runs once.
    """

    def __init__(
        self,
        source: Iterable[Any],
        element_type: type[T] | None = None,
        operations: tuple[tuple[str, Callable[[Any], Any]], ...] = (),
    ) -> None:
        self._source = source
        self.element_type = element_type
        self._operations = operations

    def select(self, projection: Callable[[T], U]) -> "Query[U]":
        element_type = getattr(projection, "destination_type", None)
        return Query(
            self._source, element_type, self._operations + (("select", projection),))

    def where(self, predicate: Callable[[T], bool]) -> "Query[T]":
        return Query(
            self._source, self.element_type, self._operations + (("where", predicate),))

    def __iter__(self) -> Iterator[T]:
        for item in self._source:
            keep = True
            for operation, fn in self._operations:
                if operation == "where":
                    if not fn(item):
                        keep = False
                        break
                else:
                    item = fn(item)
            if keep:
                yield item

    def to_list(self) -> list[T]:
        return list(self)

    def to_tuple(self) -> tuple[T, ...]:
        return tuple(self)


class MapFromQuery:
    """Projects a query through a registered projection."""

    __slots__ = ("_registry", "_query", "_source_type")

    def __init__(
        self,
        registry: "MapRegistry",
        query: Any,
        source_type: type | None = None,
    ) -> None:
        self._registry = registry
        self._query = query
        self._source_type = source_type or getattr(query, "element_type", None)

    def to(self, destination_type: type[T]) -> Any:
        """
        Compose the registered projection into the query without running it.

        Raises:
            MappingNotFoundError: If no projection is registered for the pair.
        """
        entry = None
        if self._source_type is not None:
            entry = self._registry.lookup(
                self._source_type, destination_type, MapperKind.PROJECTION)
        if entry is None:
            raise MappingNotFoundError(self._source_type or object, destination_type)

        logger.debug(
            "Projection composed into query",
            extra={"destination_type": destination_type.__name__},
        )
        return self._query.select(entry.invoke)

    def to_list(self, destination_type: type[T]) -> list[T]:
        return list(self.to(destination_type))

    def to_tuple(self, destination_type: type[T]) -> tuple[T, ...]:
        return tuple(self.to(destination_type))
