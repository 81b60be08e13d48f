"""
Abstract mapper contract.

``BaseMapper`` is the interface mapping functions receive as their
``registry`` argument, and the annotation auto-registration looks for
to tell ``(registry, source, destination)`` shapes apart from
``(source, destination)`` ones. ``MapRegistry`` is the concrete
implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from objmap.dispatch.async_sequences import (
        MapFromAsyncIterable,
        MapFromNullableAsyncIterable,
    )
    from objmap.dispatch.map_from import MapFrom, MapFromNullable
    from objmap.dispatch.queryable import MapFromQuery
    from objmap.dispatch.sequences import MapFromIterable, MapFromNullableIterable

SourceT = TypeVar("SourceT")
TargetT = TypeVar("TargetT")


class BaseMapper(ABC):
    """Contract that every mapping registry must fulfil."""

    # ── Dispatch ──────────────────────────────────────────────────────

    @abstractmethod
    def from_(self, value: Any, source_type: type | None = None) -> "MapFrom":
        """Start mapping a single value."""
        ...

    @abstractmethod
    def from_nullable(
        self, value: Any, source_type: type | None = None
    ) -> "MapFromNullable":
        """Start mapping a value that may be ``None``."""
        ...

    @abstractmethod
    def from_many(
        self, values: Iterable[Any], source_type: type | None = None
    ) -> "MapFromIterable":
        """Start mapping a finite sequence."""
        ...

    @abstractmethod
    def from_nullable_many(
        self, values: Iterable[Any], source_type: type | None = None
    ) -> "MapFromNullableIterable":
        """Start mapping a finite sequence whose elements may be ``None``."""
        ...

    @abstractmethod
    def from_async(
        self, values: AsyncIterable[Any], source_type: type | None = None
    ) -> "MapFromAsyncIterable":
        """Start mapping an asynchronous sequence."""
        ...

    @abstractmethod
    def from_nullable_async(
        self, values: AsyncIterable[Any], source_type: type | None = None
    ) -> "MapFromNullableAsyncIterable":
        """Start mapping an asynchronous sequence whose elements may be ``None``."""
        ...

    @abstractmethod
    def from_query(self, query: Any, source_type: type | None = None) -> "MapFromQuery":
        """Start projecting a lazily evaluated query."""
        ...

    @abstractmethod
    def get_method(
        self, source_type: type[SourceT], destination_type: type[TargetT]
    ) -> Callable[[SourceT, TargetT], None]:
        """Return the in-place mapper for a pair as a two-argument callable."""
        ...

    @abstractmethod
    def get_factory_method(
        self, source_type: type[SourceT], destination_type: type[TargetT]
    ) -> Callable[[SourceT], TargetT]:
        """Return a one-argument callable producing new destinations."""
        ...

    @abstractmethod
    def create(self, cls: type[TargetT]) -> TargetT:
        """
        Create a destination instance using the configured instance factory.

        Raises:
            NoParameterlessConstructorError: If ``cls`` needs constructor
                arguments and no factory override applies.
        """
        ...

    # ── Configuration ─────────────────────────────────────────────────

    @abstractmethod
    def register(
        self,
        source_type: type,
        destination_type: type,
        method: Callable[..., None],
        **options: Any,
    ) -> "BaseMapper":
        """Register an in-place mapper."""
        ...

    @abstractmethod
    def register_factory(
        self,
        source_type: type,
        destination_type: type,
        method: Callable[..., Any],
        **options: Any,
    ) -> "BaseMapper":
        """Register a factory mapper."""
        ...

    @abstractmethod
    def register_projection(
        self, source_type: type, destination_type: type, projection: Any
    ) -> "BaseMapper":
        """Register a projection for query sources."""
        ...

    @abstractmethod
    def auto_register(self, maps: Any) -> "BaseMapper":
        """Register every mapping-shaped function declared on a class."""
        ...

    @abstractmethod
    def install_factory(
        self, factory: Callable[[type], Any], always_use: bool = False
    ) -> "BaseMapper":
        """Install an instance-factory override."""
        ...

    # ── Validation ────────────────────────────────────────────────────

    @abstractmethod
    def validate(self) -> None:
        """
        Check every registered mapper for unmapped fields.

        Raises:
            IncompleteMappingError: If any registered function leaves fields unmapped.
        """
        ...
