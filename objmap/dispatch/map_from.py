"""
Single-value dispatch: ``registry.from_(value).to(Destination)``.

The source type is the runtime type of the value unless the caller
passes ``source_type`` explicitly (e.g. to map through a base class
registration).
"""

from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from objmap.mappers.registry import MapRegistry

T = TypeVar("T")


class MapFrom:
    """Maps one source value to a new or an existing destination."""

    __slots__ = ("_registry", "_source", "_source_type")

    def __init__(
        self,
        registry: "MapRegistry",
        source: Any,
        source_type: type | None = None,
    ) -> None:
        self._registry = registry
        self._source = source
        self._source_type = source_type if source_type is not None else type(source)

    @property
    def source_type(self) -> type:
        return self._source_type

    def to(self, destination_type: type[T]) -> T:
        """
        Map to a new destination instance.

        A registered factory mapper wins; otherwise the instance factory
        creates the destination and the in-place mapper fills it.

        Raises:
            MappingNotFoundError: If neither kind of mapper is registered.
        """
        create = self._registry.get_factory_method(self._source_type, destination_type)
        return create(self._source)

    def to_existing(self, existing: T, destination_type: type[T] | None = None) -> T:
        """
        Map into ``existing`` and return the same object.

        Raises:
            MappingNotFoundError: If no in-place mapper is registered.
        """
        if destination_type is None:
            destination_type = type(existing)
        map_into = self._registry.get_method(self._source_type, destination_type)
        map_into(self._source, existing)
        return existing

    def to_nullable(
        self, existing: T | None, destination_type: type[T] | None = None
    ) -> T | None:
        """Like ``to_existing``, but ``None`` in gives ``None`` out."""
        if existing is None:
            return None
        return self.to_existing(existing, destination_type)


class MapFromNullable:
    """``MapFrom`` for a source that may be ``None``; ``None`` maps to ``None``."""

    __slots__ = ("_inner",)

    def __init__(
        self,
        registry: "MapRegistry",
        source: Any,
        source_type: type | None = None,
    ) -> None:
        self._inner = None if source is None else MapFrom(registry, source, source_type)

    def to(self, destination_type: type[T]) -> T | None:
        if self._inner is None:
            return None
        return self._inner.to(destination_type)

    def to_existing(self, existing: T, destination_type: type[T] | None = None) -> T | None:
        if self._inner is None:
            return None
        return self._inner.to_existing(existing, destination_type)

    def to_nullable(
        self, existing: T | None, destination_type: type[T] | None = None
    ) -> T | None:
        if self._inner is None:
            return None
        return self._inner.to_nullable(existing, destination_type)
