"""
Field coverage of a registered mapper.

Destination mode collects the fields a mapper writes on its target:
attribute stores on the target parameter and ``setattr`` with a literal
name. A factory is also credited with the stores on a local holding a
newly constructed destination, and with the constructor keywords and
positional arguments of a destination it binds or returns. Source mode
collects the fields it reads from its source parameter.

Calls into other mappers for the same (source, destination) pair are
followed, so a mapper that delegates part of the work to a shared
helper is credited with the helper's fields. Each function is visited
at most once per walk.
"""

import builtins
import inspect
from types import CodeType, MethodType
from typing import Any, NamedTuple

from objmap.core.logging import get_logger
from objmap.mappers import markers
from objmap.mappers.classifier import classify, parameter_roles
from objmap.schemas.registration import FunctionShape, MappingKey, RegisteredMapper
from objmap.utils.helpers import type_name, underlying_function
from objmap.validation.disassembler import (
    Attribute,
    AttributeLoad,
    AttributeStore,
    CallResult,
    CallSite,
    Constant,
    Global,
    Local,
    LocalBinding,
    Symbol,
    ValueReturn,
    disassemble,
)
from objmap.validation.fields import positional_fields

logger = get_logger(__name__)

UNRESOLVED = object()

_FACTORY_SHAPES = frozenset({FunctionShape.SIMPLE_FACTORY, FunctionShape.FACTORY})


class CoverageSet(NamedTuple):
    covered: frozenset[str]
    ignored: frozenset[str]


# ─── Symbol resolution ────────────────────────────────────────────────


class SymbolResolver:
    """
    Resolves disassembler symbols to live objects for one function.

    Globals come from the function's module (then builtins), locals only
    from closure cells and the ``self`` of a bound method, attributes
    via ``inspect.getattr_static`` so no property or descriptor code runs.
    """

    def __init__(self, fn: Any) -> None:
        raw = underlying_function(fn)
        self._globals: dict[str, Any] = getattr(raw, "__globals__", {})
        self._locals: dict[str, Any] = {}

        code = getattr(raw, "__code__", None)
        if code is None:
            return

        for name, cell in zip(code.co_freevars, getattr(raw, "__closure__", None) or ()):
            try:
                self._locals[name] = cell.cell_contents
            except ValueError:
                continue  # cell not filled yet

        if inspect.ismethod(fn) and code.co_argcount:
            self._locals[code.co_varnames[0]] = fn.__self__

    def resolve(self, symbol: Symbol) -> Any:
        if isinstance(symbol, Global):
            if symbol.name in self._globals:
                return self._globals[symbol.name]
            return getattr(builtins, symbol.name, UNRESOLVED)
        if isinstance(symbol, Local):
            return self._locals.get(symbol.name, UNRESOLVED)
        if isinstance(symbol, Constant):
            return symbol.value
        if isinstance(symbol, Attribute):
            owner = self.resolve(symbol.owner)
            if owner is UNRESOLVED:
                return UNRESOLVED
            return _static_attribute(owner, symbol.name)
        return UNRESOLVED

    def callees(self, call: CallSite) -> list[Any]:
        """Distinct live objects the call may target."""
        found: dict[int, Any] = {}
        for symbol in call.callees:
            value = self.resolve(symbol)
            if value is not UNRESOLVED and callable(value):
                found.setdefault(id(value), value)
        return list(found.values())


def _static_attribute(owner: Any, name: str) -> Any:
    try:
        member = inspect.getattr_static(owner, name)
    except AttributeError:
        return UNRESOLVED

    if isinstance(member, staticmethod):
        return member.__func__
    if isinstance(member, classmethod):
        cls = owner if isinstance(owner, type) else type(owner)
        return MethodType(member.__func__, cls)
    if isinstance(member, property):
        return UNRESOLVED
    if (
        inspect.isfunction(member)
        and not isinstance(owner, type)
        and name not in getattr(owner, "__dict__", {})
    ):
        return MethodType(member, owner)
    return member


# ─── Coverage walk ────────────────────────────────────────────────────


class CoverageWalker:
    """Computes ``CoverageSet``s for the entries of one registration log."""

    def __init__(self, registrations: list[RegisteredMapper], scan_nested_code: bool = True) -> None:
        self._scan_nested_code = scan_nested_code
        self._by_function: dict[int, list[RegisteredMapper]] = {}
        for entry in registrations:
            identity = id(underlying_function(entry.function))
            self._by_function.setdefault(identity, []).append(entry)
        self._events: dict[CodeType, tuple] = {}

    def coverage(self, entry: RegisteredMapper) -> CoverageSet:
        walk = _Walk(self, entry.key, read_mode=entry.validate_source)
        walk.visit(entry.function, entry.shape)
        return CoverageSet(
            covered=frozenset(walk.covered),
            ignored=frozenset(walk.ignored) | entry.ignored,
        )

    def events(self, code: CodeType) -> tuple:
        cached = self._events.get(code)
        if cached is None:
            cached = disassemble(code, nested=self._scan_nested_code)
            self._events[code] = cached
        return cached

    def registered_shape(self, fn: Any, key: MappingKey) -> FunctionShape | None:
        for entry in self._by_function.get(id(underlying_function(fn)), ()):
            if entry.key == key:
                return entry.shape
        return None

    def registered_ignores(self, fn: Any, key: MappingKey) -> frozenset[str]:
        ignored: frozenset[str] = frozenset()
        for entry in self._by_function.get(id(underlying_function(fn)), ()):
            if entry.key == key:
                ignored |= entry.ignored
        return ignored


class _Walk:
    """State of one walk: the pair being checked plus the sets built so far."""

    def __init__(self, walker: CoverageWalker, key: MappingKey, read_mode: bool) -> None:
        self._walker = walker
        self._key = key
        self._read_mode = read_mode
        self._visited: set[int] = set()
        self.covered: set[str] = set()
        self.ignored: set[str] = set()

    def visit(self, fn: Any, shape: FunctionShape) -> None:
        identity = id(underlying_function(fn))
        if identity in self._visited:
            return
        self._visited.add(identity)

        self.ignored |= self._walker.registered_ignores(fn, self._key)
        self.ignored |= markers.ignored_properties(fn)

        code = getattr(underlying_function(fn), "__code__", None)
        if code is None:
            logger.debug("No bytecode to inspect", extra={"function": repr(fn)})
            return

        roles = parameter_roles(fn, shape)
        resolver = SymbolResolver(fn)
        targets = {roles.target} if roles.target else set()
        sources = {roles.source} if roles.source else set()
        builds = not self._read_mode and shape in _FACTORY_SHAPES

        for event in self._walker.events(code):
            if isinstance(event, LocalBinding):
                self._track(event, targets, sources, resolver, builds)
            elif isinstance(event, AttributeStore):
                if not self._read_mode and _is_local(event.owner, targets):
                    self.covered.add(event.name)
            elif isinstance(event, AttributeLoad):
                if self._read_mode and _is_local(event.owner, sources):
                    self.covered.add(event.name)
            elif isinstance(event, CallSite):
                self._visit_call(event, targets, sources, resolver)
            elif isinstance(event, ValueReturn):
                if builds and isinstance(event.value, CallResult):
                    self._cover_constructor(event.value.call, resolver)

    def _track(
        self,
        binding: LocalBinding,
        targets: set[str],
        sources: set[str],
        resolver: SymbolResolver,
        builds: bool,
    ) -> None:
        value = binding.value
        if isinstance(value, Local):
            if value.name in targets:
                targets.add(binding.name)
            if value.name in sources:
                sources.add(binding.name)
            return
        if (
            builds
            and isinstance(value, CallResult)
            and self._constructs_destination(value.call, resolver)
        ):
            self._cover_constructor(value.call, resolver)
            targets.add(binding.name)
            return
        targets.discard(binding.name)
        sources.discard(binding.name)

    def _visit_call(
        self,
        call: CallSite,
        targets: set[str],
        sources: set[str],
        resolver: SymbolResolver,
    ) -> None:
        destination = self._key.destination_type

        for callee in resolver.callees(call):
            if callee is builtins.setattr:
                if not self._read_mode:
                    self._cover_named_access(call, targets)
            elif callee is builtins.getattr:
                if self._read_mode:
                    self._cover_named_access(call, sources)
            else:
                shape = self._mapper_shape(callee)
                if shape is not None:
                    logger.debug(
                        "Following delegated mapper",
                        extra={
                            "callee": getattr(callee, "__qualname__", repr(callee)),
                            "source_type": type_name(self._key.source_type),
                            "destination_type": type_name(destination),
                        },
                    )
                    self.visit(callee, shape)

    def _cover_named_access(self, call: CallSite, names: set[str]) -> None:
        if len(call.positional) < 2:
            return
        owner, attribute = call.positional[0], call.positional[1]
        if _is_local(owner, names) and isinstance(attribute, Constant) and isinstance(attribute.value, str):
            self.covered.add(attribute.value)

    def _cover_constructor(self, call: CallSite, resolver: SymbolResolver) -> None:
        for callee in resolver.callees(call):
            if _is_subclass(callee, self._key.destination_type):
                self.covered.update(call.keywords)
                self.covered.update(positional_fields(callee)[: len(call.positional)])

    def _constructs_destination(self, call: CallSite, resolver: SymbolResolver) -> bool:
        destination = self._key.destination_type
        for symbol in call.callees:
            if _is_subclass(resolver.resolve(symbol), destination):
                return True
            # registry.create(Destination)
            if isinstance(symbol, Attribute) and symbol.name == "create":
                if any(_is_subclass(resolver.resolve(arg), destination) for arg in call.arguments):
                    return True
        return False

    def _mapper_shape(self, callee: Any) -> FunctionShape | None:
        if isinstance(callee, type):
            return None
        shape = self._walker.registered_shape(callee, self._key)
        if shape is not None:
            return shape

        classified = classify(callee)
        if (
            classified is not None
            and classified.shape is not FunctionShape.PROJECTION
            and classified.source_type is self._key.source_type
            and classified.destination_type is self._key.destination_type
        ):
            return classified.shape
        return None


def _is_local(symbol: Symbol, names: set[str]) -> bool:
    return isinstance(symbol, Local) and symbol.name in names


def _is_subclass(value: Any, cls: type) -> bool:
    return isinstance(value, type) and issubclass(value, cls)
