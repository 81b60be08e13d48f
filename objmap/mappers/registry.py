"""
Mapping registry, the concrete ``BaseMapper``.

Holds one two-level table per mapper kind (source type → destination
type → entry) plus the ordered log of every in-place and factory
registration, which the completeness validator walks.

Lifecycle: construct → configure (register / auto_register /
install_factory) → ``freeze()`` → serve dispatch and ``validate()``.
Configuration is not thread-safe; the frozen tables are read-only.
"""

import inspect
from collections.abc import AsyncIterable, Callable, Iterable
from typing import Any, TypeVar

from objmap.config import Settings, get_settings
from objmap.core.exceptions import (
    MappingNotFoundError,
    MappingSignatureError,
    NullFunctionError,
    RegistryFrozenError,
)
from objmap.core.logging import get_logger
from objmap.dispatch.async_sequences import (
    MapFromAsyncIterable,
    MapFromNullableAsyncIterable,
)
from objmap.dispatch.map_from import MapFrom, MapFromNullable
from objmap.dispatch.queryable import MapFromQuery, Projection
from objmap.dispatch.sequences import MapFromIterable, MapFromNullableIterable
from objmap.mappers import markers
from objmap.mappers.base_mapper import BaseMapper
from objmap.mappers.classifier import classify, shape_from_arity
from objmap.mappers.factory import InstanceFactory
from objmap.schemas.registration import (
    FunctionShape,
    MapperKind,
    MappingKey,
    RegisteredMapper,
)
from objmap.utils.helpers import type_name

logger = get_logger(__name__)

S = TypeVar("S")
T = TypeVar("T")

_Table = dict[type, dict[type, RegisteredMapper]]


class MapRegistry(BaseMapper):
    """Registers mapping functions and dispatches by (source, destination) type."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._tables: dict[MapperKind, _Table] = {kind: {} for kind in MapperKind}
        self._registration_log: list[RegisteredMapper] = []
        self._factory = InstanceFactory()
        self._frozen = False

    # ── Lifecycle ─────────────────────────────────────────────────────

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def registration_log(self) -> tuple[RegisteredMapper, ...]:
        """Every in-place and factory registration, in registration order."""
        return tuple(self._registration_log)

    def freeze(self) -> "MapRegistry":
        """
        End the configuration phase.

        Runs ``validate()`` first when ``validate_on_freeze`` is set.

        Raises:
            IncompleteMappingError: From the optional validation pass.
        """
        if self._settings.validate_on_freeze:
            self.validate()
        self._frozen = True
        logger.info(
            "Registry frozen",
            extra={"registration_count": len(self._registration_log)},
        )
        return self

    # ── Registration ──────────────────────────────────────────────────

    def register(
        self,
        source_type: type,
        destination_type: type,
        method: Callable[..., None],
        *,
        ignore: Iterable[str] = (),
        validate_source: bool = False,
        skip_validation: bool = False,
    ) -> "MapRegistry":
        """
        Register an in-place mapper, ``(source, destination)`` or
        ``(registry, source, destination)``.

        Raises:
            NullFunctionError:     If ``method`` is ``None``.
            MappingSignatureError: If ``method`` has neither arity.
            RegistryFrozenError:   After ``freeze()``.
        """
        return self._register_callable(
            MapperKind.IN_PLACE, source_type, destination_type, method,
            ignore=ignore, validate_source=validate_source,
            skip_validation=skip_validation,
        )

    def register_factory(
        self,
        source_type: type,
        destination_type: type,
        method: Callable[..., Any],
        *,
        ignore: Iterable[str] = (),
        validate_source: bool = False,
        skip_validation: bool = False,
    ) -> "MapRegistry":
        """
        Register a factory mapper, ``(source)`` or ``(registry, source)``,
        returning a new destination.

        Raises:
            NullFunctionError:     If ``method`` is ``None``.
            MappingSignatureError: If ``method`` has neither arity.
            RegistryFrozenError:   After ``freeze()``.
        """
        return self._register_callable(
            MapperKind.FACTORY, source_type, destination_type, method,
            ignore=ignore, validate_source=validate_source,
            skip_validation=skip_validation,
        )

    def register_projection(
        self,
        source_type: type,
        destination_type: type,
        projection: Projection | Callable[[Any], Any],
    ) -> "MapRegistry":
        """
        Register a projection used by ``from_query``.

        Raises:
            NullFunctionError:   If ``projection`` is ``None``.
            RegistryFrozenError: After ``freeze()``.
        """
        self._ensure_configurable()
        if projection is None:
            raise NullFunctionError(details=_pair_details(source_type, destination_type))
        if not isinstance(projection, Projection):
            projection = Projection(projection, source_type, destination_type)
        elif projection.source_type is None or projection.destination_type is None:
            projection = Projection(projection.expression, source_type, destination_type)

        entry = RegisteredMapper(
            key=MappingKey(source_type, destination_type),
            shape=FunctionShape.PROJECTION,
            function=projection,
            invoke=projection,
        )
        self._store(entry)
        return self

    def auto_register(self, maps: Any) -> "MapRegistry":
        """
        Register every mapping-shaped public function declared on a class.

        ``maps`` is an instance, or a type that is instantiated through the
        instance factory first. Functions matching no accepted shape are
        skipped.

        Raises:
            NoParameterlessConstructorError: If ``maps`` is a type whose
                constructor needs arguments.
            RegistryFrozenError: After ``freeze()``.
        """
        self._ensure_configurable()
        instance = self.create(maps) if isinstance(maps, type) else maps
        owner = type(instance)

        registered = 0
        for name, member in vars(owner).items():
            if name.startswith("_"):
                continue
            if not (inspect.isfunction(member) or isinstance(member, (staticmethod, classmethod))):
                continue

            method = getattr(instance, name)
            classified = classify(method)
            if classified is None:
                logger.debug(
                    "Skipping non-mapping member",
                    extra={"owner": type_name(owner), "member": name},
                )
                continue

            if classified.shape is FunctionShape.PROJECTION:
                projection = method()
                self.register_projection(
                    projection.source_type or classified.source_type,
                    projection.destination_type or classified.destination_type,
                    projection,
                )
            else:
                self._register_shaped(
                    classified.shape,
                    classified.source_type,
                    classified.destination_type,
                    method,
                    validate_source=markers.validates_source(method, owner),
                )
            registered += 1

        logger.debug(
            "Auto-registration complete",
            extra={"owner": type_name(owner), "registered": registered},
        )
        return self

    def install_factory(
        self, factory: Callable[[type], Any], always_use: bool = False
    ) -> "MapRegistry":
        """
        Install the instance-factory override.

        Raises:
            NullFunctionError:   If ``factory`` is ``None``.
            RegistryFrozenError: After ``freeze()``.
        """
        self._ensure_configurable()
        if factory is None:
            raise NullFunctionError(message="Instance factory must not be None.")
        self._factory.install(factory, always_use)
        return self

    # ── Lookup ────────────────────────────────────────────────────────

    def lookup(
        self,
        source_type: type,
        destination_type: type,
        kind: MapperKind | None = None,
    ) -> RegisteredMapper | None:
        """
        Return the entry for a pair, or ``None``.

        Without ``kind`` the creation-path entry is returned: the factory
        mapper if one exists, else the in-place mapper.
        """
        if kind is not None:
            return self._tables[kind].get(source_type, {}).get(destination_type)
        return (
            self.lookup(source_type, destination_type, MapperKind.FACTORY)
            or self.lookup(source_type, destination_type, MapperKind.IN_PLACE)
        )

    def create(self, cls: type[T]) -> T:
        return self._factory.create(cls)

    def get_method(
        self, source_type: type[S], destination_type: type[T]
    ) -> Callable[[S, T], None]:
        """
        Return the in-place mapper as ``fn(source, destination)``.

        Raises:
            MappingNotFoundError: If no in-place mapper is registered.
        """
        entry = self.lookup(source_type, destination_type, MapperKind.IN_PLACE)
        if entry is None:
            raise MappingNotFoundError(source_type, destination_type)

        invoke = entry.invoke

        def map_into(source: S, destination: T) -> None:
            invoke(self, source, destination)

        return map_into

    def get_factory_method(
        self, source_type: type[S], destination_type: type[T]
    ) -> Callable[[S], T]:
        """
        Return ``fn(source) -> destination``.

        Uses the factory mapper when registered; otherwise synthesises one
        from the in-place mapper and the instance factory.

        Raises:
            MappingNotFoundError: If neither kind of mapper is registered.
        """
        factory_entry = self.lookup(source_type, destination_type, MapperKind.FACTORY)
        if factory_entry is not None:
            produce = factory_entry.invoke

            def create_mapped(source: S) -> T:
                return produce(self, source)

            return create_mapped

        in_place_entry = self.lookup(source_type, destination_type, MapperKind.IN_PLACE)
        if in_place_entry is None:
            raise MappingNotFoundError(source_type, destination_type)

        invoke = in_place_entry.invoke
        create = self._factory.create

        def create_and_map(source: S) -> T:
            destination = create(destination_type)
            invoke(self, source, destination)
            return destination

        return create_and_map

    # ── Dispatch ──────────────────────────────────────────────────────

    def from_(self, value: Any, source_type: type | None = None) -> MapFrom:
        return MapFrom(self, value, source_type)

    def from_nullable(self, value: Any, source_type: type | None = None) -> MapFromNullable:
        return MapFromNullable(self, value, source_type)

    def from_many(
        self, values: Iterable[Any], source_type: type | None = None
    ) -> MapFromIterable:
        return MapFromIterable(self, values, source_type)

    def from_nullable_many(
        self, values: Iterable[Any], source_type: type | None = None
    ) -> MapFromNullableIterable:
        return MapFromNullableIterable(self, values, source_type)

    def from_async(
        self, values: AsyncIterable[Any], source_type: type | None = None
    ) -> MapFromAsyncIterable:
        return MapFromAsyncIterable(self, values, source_type)

    def from_nullable_async(
        self, values: AsyncIterable[Any], source_type: type | None = None
    ) -> MapFromNullableAsyncIterable:
        return MapFromNullableAsyncIterable(self, values, source_type)

    def from_query(self, query: Any, source_type: type | None = None) -> MapFromQuery:
        return MapFromQuery(self, query, source_type)

    # ── Validation ────────────────────────────────────────────────────

    def validate(self) -> None:
        # Imported here: the validator depends on the classifier, which
        # depends on this package.
        from objmap.validation.validator import CompletenessValidator

        CompletenessValidator(self._registration_log, self._settings).validate()

    # ── Internal ──────────────────────────────────────────────────────

    def _ensure_configurable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError()

    def _register_callable(
        self,
        kind: MapperKind,
        source_type: type,
        destination_type: type,
        method: Callable[..., Any],
        **options: Any,
    ) -> "MapRegistry":
        self._ensure_configurable()
        if method is None:
            raise NullFunctionError(details=_pair_details(source_type, destination_type))

        shape = shape_from_arity(method, kind)
        return self._register_shaped(shape, source_type, destination_type, method, **options)

    def _register_shaped(
        self,
        shape: FunctionShape,
        source_type: type,
        destination_type: type,
        method: Callable[..., Any],
        *,
        ignore: Iterable[str] = (),
        validate_source: bool = False,
        skip_validation: bool = False,
    ) -> "MapRegistry":
        if shape.kind is MapperKind.PROJECTION:
            raise MappingSignatureError(
                message="Projections are registered with register_projection().",
                details=_pair_details(source_type, destination_type),
            )

        entry = RegisteredMapper(
            key=MappingKey(source_type, destination_type),
            shape=shape,
            function=method,
            invoke=_normalise(shape, method),
            ignored=frozenset(ignore) | markers.ignored_properties(method),
            validate_source=validate_source or markers.validates_source(method),
            skip_validation=skip_validation or markers.is_ignored_method(method),
        )
        self._store(entry)
        self._registration_log.append(entry)
        return self

    def _store(self, entry: RegisteredMapper) -> None:
        table = self._tables[entry.kind]
        slot = table.setdefault(entry.source_type, {})

        if entry.destination_type in slot and self._settings.warn_on_overwrite:
            logger.warning(
                "Mapping overwritten",
                extra={**_pair_details(*entry.key), "kind": entry.kind.value},
            )

        slot[entry.destination_type] = entry
        logger.debug(
            "Mapping registered",
            extra={
                **_pair_details(*entry.key),
                "kind": entry.kind.value,
                "shape": entry.shape.value,
            },
        )


def _normalise(shape: FunctionShape, method: Callable[..., Any]) -> Callable[..., Any]:
    """Adapt the simple shapes to the registry-receiving calling convention."""
    if shape is FunctionShape.SIMPLE_IN_PLACE:
        def map_in_place(registry: BaseMapper, source: Any, destination: Any) -> None:
            method(source, destination)

        return map_in_place

    if shape is FunctionShape.SIMPLE_FACTORY:
        def map_factory(registry: BaseMapper, source: Any) -> Any:
            return method(source)

        return map_factory

    return method


def _pair_details(source_type: type, destination_type: type) -> dict[str, str]:
    return {
        "source_type": type_name(source_type),
        "destination_type": type_name(destination_type),
    }
