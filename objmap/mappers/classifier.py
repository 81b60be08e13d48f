"""
Shape classifier for mapping functions.

Every function the registry accepts falls into one FunctionShape. The
shape is decided once, at registration time: from positional arity for
explicit ``register`` calls, from type annotations for auto-registration
and for call targets the validator meets while walking a mapper.
"""

import inspect
import types
import typing
from typing import Any, NamedTuple

from objmap.core.exceptions import MappingSignatureError
from objmap.dispatch.queryable import Projection
from objmap.mappers.base_mapper import BaseMapper
from objmap.schemas.registration import FunctionShape, MapperKind

_ARITY_SHAPES: dict[MapperKind, dict[int, FunctionShape]] = {
    MapperKind.IN_PLACE: {
        2: FunctionShape.SIMPLE_IN_PLACE,
        3: FunctionShape.IN_PLACE,
    },
    MapperKind.FACTORY: {
        1: FunctionShape.SIMPLE_FACTORY,
        2: FunctionShape.FACTORY,
    },
}

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

_MISSING = object()


class ClassifiedFunction(NamedTuple):
    shape: FunctionShape
    source_type: type | None
    destination_type: type | None


class ParameterRoles(NamedTuple):
    """Local names the source and destination are bound to inside a mapper."""

    source: str | None
    target: str | None


def positional_parameters(fn: Any) -> list[inspect.Parameter] | None:
    """Positional parameters as seen by a caller (``self`` already bound)."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    return [p for p in signature.parameters.values() if p.kind in _POSITIONAL]


def shape_from_arity(fn: Any, kind: MapperKind) -> FunctionShape:
    """
    Decide the shape of an explicitly registered function from its arity.

    Raises:
        MappingSignatureError: If ``fn`` is not callable or its arity fits
            no shape of ``kind``.
    """
    if not callable(fn):
        raise MappingSignatureError(
            message=f"{fn!r} is not callable.",
            details={"kind": kind.value},
        )

    params = positional_parameters(fn)
    if params is None:
        raise MappingSignatureError(
            message=f"Cannot inspect the signature of {fn!r}.",
            details={"kind": kind.value},
        )

    accepted = _ARITY_SHAPES[kind]
    required = [p for p in params if p.default is inspect.Parameter.empty]
    for arity in (len(params), len(required)):
        if arity in accepted:
            return accepted[arity]

    raise MappingSignatureError(
        message=(
            f"{getattr(fn, '__qualname__', fn)!r} takes {len(params)} positional "
            f"parameters; {kind.value} mappers take "
            f"{' or '.join(str(n) for n in accepted)}."
        ),
        details={"kind": kind.value, "arity": len(params)},
    )


def classify(fn: Any) -> ClassifiedFunction | None:
    """
    Classify ``fn`` by its annotated parameter and return types.

    Returns ``None`` for functions matching no accepted shape; an
    unannotated return counts as ``-> None``.
    """
    params = positional_parameters(fn)
    if params is None:
        return None

    hints = _type_hints(fn)
    returns = hints.get("return", _MISSING)
    annotated = [_concrete_type(hints.get(p.name)) for p in params]

    if returns is _MISSING or returns is None or returns is type(None):
        if len(params) == 2 and not _is_registry(annotated[0]):
            if annotated[0] is not None and annotated[1] is not None:
                return ClassifiedFunction(
                    FunctionShape.SIMPLE_IN_PLACE, annotated[0], annotated[1])
        elif len(params) == 3 and _is_registry(annotated[0]):
            if annotated[1] is not None and annotated[2] is not None:
                return ClassifiedFunction(
                    FunctionShape.IN_PLACE, annotated[1], annotated[2])
        return None

    if _is_projection(returns):
        if params:
            return None
        args = typing.get_args(returns)
        if len(args) == 2:
            return ClassifiedFunction(
                FunctionShape.PROJECTION, _concrete_type(args[0]), _concrete_type(args[1]))
        return ClassifiedFunction(FunctionShape.PROJECTION, None, None)

    destination = _concrete_type(returns)
    if destination is None:
        return None

    if len(params) == 1 and annotated[0] is not None and not _is_registry(annotated[0]):
        return ClassifiedFunction(FunctionShape.SIMPLE_FACTORY, annotated[0], destination)
    if len(params) == 2 and _is_registry(annotated[0]) and annotated[1] is not None:
        return ClassifiedFunction(FunctionShape.FACTORY, annotated[1], destination)
    return None


def parameter_roles(fn: Any, shape: FunctionShape) -> ParameterRoles:
    """Names of the source and target parameters of a mapper of ``shape``."""
    params = positional_parameters(fn) or []
    names = [p.name for p in params]

    def _at(index: int) -> str | None:
        return names[index] if index < len(names) else None

    if shape is FunctionShape.SIMPLE_IN_PLACE:
        return ParameterRoles(_at(0), _at(1))
    if shape is FunctionShape.IN_PLACE:
        return ParameterRoles(_at(1), _at(2))
    if shape is FunctionShape.SIMPLE_FACTORY:
        return ParameterRoles(_at(0), None)
    if shape is FunctionShape.FACTORY:
        return ParameterRoles(_at(1), None)
    return ParameterRoles(None, None)


# ─── Internal ─────────────────────────────────────────────────────────


def _type_hints(fn: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(fn)
    except (NameError, TypeError, AttributeError, SyntaxError):
        # Unresolvable forward references; keep whatever is already a type
        raw = getattr(fn, "__annotations__", None) or {}
        return {name: hint for name, hint in raw.items() if not isinstance(hint, str)}


def _concrete_type(hint: Any) -> type | None:
    """Reduce ``X | None`` / ``Optional[X]`` to ``X``; reject non-class hints."""
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        members = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(members) != 1:
            return None
        hint = members[0]
    return hint if isinstance(hint, type) else None


def _is_registry(hint: Any) -> bool:
    return isinstance(hint, type) and issubclass(hint, BaseMapper)


def _is_projection(hint: Any) -> bool:
    return hint is Projection or typing.get_origin(hint) is Projection
