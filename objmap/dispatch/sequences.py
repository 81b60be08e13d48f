"""
Sequence dispatch: ``registry.from_many(users).to(UserModel)``.

Mapping is lazy: ``to`` returns a generator that resolves the mapper on
first iteration and maps one element per step. When no ``source_type``
is given, the type of the first (non-``None``) element decides.
"""

from collections.abc import Callable, Collection, Iterator
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from objmap.mappers.registry import MapRegistry

T = TypeVar("T")


class _MappedSequence:
    """Shared mapper resolution for the sequence front ends."""

    __slots__ = ("_registry", "_values", "_source_type")

    def __init__(
        self,
        registry: "MapRegistry",
        values: Any,
        source_type: type | None = None,
    ) -> None:
        self._registry = registry
        self._values = values
        self._source_type = source_type

    def _creator(
        self, destination_type: type[T], sample_type: type | None = None
    ) -> Callable[[Any], T] | None:
        """
        Resolve the ``source -> new destination`` function, or ``None``
        while the source type is still unknown.
        """
        source_type = self._source_type or sample_type
        if source_type is None:
            return None
        return self._registry.get_factory_method(source_type, destination_type)


class MapFromIterable(_MappedSequence):
    """Maps a finite sequence element by element."""

    def to(self, destination_type: type[T]) -> Iterator[T]:
        return self._map(destination_type)

    def to_list(self, destination_type: type[T], existing: list[T] | None = None) -> list[T]:
        """
        Map into a new list, or into ``existing`` when given.

        The in-place form resizes ``existing`` to the source length
        (trailing excess dropped, new instances appended) and maps into
        the retained objects rather than replacing them.

        Raises:
            MappingNotFoundError: If the pair is unregistered; the in-place
                form requires an in-place mapper.
        """
        if existing is None:
            return list(self.to(destination_type))

        items = self._values if isinstance(self._values, Collection) else list(self._values)
        count = len(items)

        source_type = self._source_type
        if source_type is None and count:
            source_type = type(next(iter(items)))

        map_into = None
        if source_type is not None:
            map_into = self._registry.get_method(source_type, destination_type)

        del existing[count:]
        while len(existing) < count:
            existing.append(self._registry.create(destination_type))

        if map_into is not None:
            for index, item in enumerate(items):
                map_into(item, existing[index])
        return existing

    def to_tuple(self, destination_type: type[T]) -> tuple[T, ...]:
        return tuple(self.to(destination_type))

    def _map(self, destination_type: type[T]) -> Iterator[T]:
        create = self._creator(destination_type)
        for item in self._values:
            if create is None:
                create = self._creator(destination_type, type(item))
            yield create(item)


class MapFromNullableIterable(_MappedSequence):
    """Maps a finite sequence, passing ``None`` elements through untouched."""

    def to(self, destination_type: type[T]) -> Iterator[T | None]:
        return self._map(destination_type)

    def to_list(self, destination_type: type[T]) -> list[T | None]:
        return list(self.to(destination_type))

    def to_tuple(self, destination_type: type[T]) -> tuple[T | None, ...]:
        return tuple(self.to(destination_type))

    def _map(self, destination_type: type[T]) -> Iterator[T | None]:
        create = self._creator(destination_type)
        for item in self._values:
            if item is None:
                yield None
                continue
            if create is None:
                create = self._creator(destination_type, type(item))
            yield create(item)
