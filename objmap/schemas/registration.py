"""
Registration data model.

A registry slot is addressed by a MappingKey and holds at most one
RegisteredMapper per MapperKind.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class MappingKey(NamedTuple):
    """(source type, destination type) pair identifying one registry slot."""

    source_type: type
    destination_type: type


class MapperKind(str, Enum):
    IN_PLACE = "in_place"
    FACTORY = "factory"
    PROJECTION = "projection"


class FunctionShape(str, Enum):
    """
    The closed set of function shapes the registry accepts.

    ``SIMPLE_*`` shapes do not receive the registry; the others take it
    as their first argument.
    """

    SIMPLE_IN_PLACE = "simple_in_place"    # (source, destination) -> None
    IN_PLACE = "in_place"                  # (registry, source, destination) -> None
    SIMPLE_FACTORY = "simple_factory"      # (source) -> destination
    FACTORY = "factory"                    # (registry, source) -> destination
    PROJECTION = "projection"              # () -> Projection[source, destination]

    @property
    def kind(self) -> MapperKind:
        if self in (FunctionShape.SIMPLE_IN_PLACE, FunctionShape.IN_PLACE):
            return MapperKind.IN_PLACE
        if self in (FunctionShape.SIMPLE_FACTORY, FunctionShape.FACTORY):
            return MapperKind.FACTORY
        return MapperKind.PROJECTION

    @property
    def takes_registry(self) -> bool:
        return self in (FunctionShape.IN_PLACE, FunctionShape.FACTORY)


class RegisteredMapper(BaseModel):
    """
    One registry entry.

    ``function`` is the callable exactly as the user supplied it and is
    what the validator disassembles. ``invoke`` is the normalised form
    used for dispatch: ``(registry, source, destination)`` for in-place
    mappers, ``(registry, source)`` for factories, and the projection
    itself for projections.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: MappingKey
    shape: FunctionShape
    function: Any
    invoke: Callable[..., Any]
    ignored: frozenset[str] = Field(default_factory=frozenset)
    validate_source: bool = False
    skip_validation: bool = False

    @property
    def kind(self) -> MapperKind:
        return self.shape.kind

    @property
    def source_type(self) -> type:
        return self.key.source_type

    @property
    def destination_type(self) -> type:
        return self.key.destination_type
