"""
Public field discovery for destination and source types.

Writable fields are what a complete mapper must assign; readable fields
are what a source-validated mapper must read. Both are listed in
declaration order, base classes first. Plain classes that only set their
fields in ``__init__`` are read from that method's bytecode, so no
constructor is ever run.
"""

import dataclasses
import inspect
import typing
from functools import lru_cache
from typing import Any

from pydantic import BaseModel

from objmap.validation.disassembler import AttributeStore, Local, disassemble

# Annotation-only base classes that never contribute mapped fields
_SKIPPED_MODULES = frozenset({"builtins", "typing", "typing_extensions", "abc"})


@lru_cache(maxsize=None)
def writable_fields(cls: type) -> tuple[str, ...]:
    """Public fields a mapper can assign on ``cls``."""
    names = _declared_fields(cls)
    for name, prop in _properties(cls):
        if prop.fset is not None:
            names.append(name)
    return tuple(_unique(names))


@lru_cache(maxsize=None)
def readable_fields(cls: type) -> tuple[str, ...]:
    """Public fields a mapper can read from ``cls``, including read-only properties."""
    names = _declared_fields(cls)
    names.extend(name for name, _ in _properties(cls))
    if _is_pydantic_model(cls):
        names.extend(cls.model_computed_fields)
    return tuple(_unique(names))


@lru_cache(maxsize=None)
def positional_fields(cls: type) -> tuple[str, ...]:
    """Constructor parameters that accept positional arguments, in order."""
    if dataclasses.is_dataclass(cls):
        return tuple(f.name for f in dataclasses.fields(cls) if f.init)
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return ()
    return tuple(
        p.name for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    )


# ─── Internal ─────────────────────────────────────────────────────────


def _declared_fields(cls: type) -> list[str]:
    if _is_pydantic_model(cls):
        return [name for name in cls.model_fields if _is_public(name)]

    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls) if _is_public(f.name)]

    names: list[str] = []
    for klass in reversed(cls.__mro__):
        if _is_library_class(klass):
            continue
        for name, hint in _own_annotations(klass).items():
            if _is_public(name) and not _is_class_var(hint):
                names.append(name)
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        names.extend(name for name in slots if _is_public(name))
        names.extend(_init_assignments(klass))
    return names


def _init_assignments(klass: type) -> list[str]:
    """Public attributes ``klass.__init__`` assigns on ``self``."""
    init = klass.__dict__.get("__init__")
    code = getattr(init, "__code__", None)
    if code is None or not code.co_argcount:
        return []
    instance = Local(code.co_varnames[0])
    return [
        event.name
        for event in disassemble(code)
        if isinstance(event, AttributeStore)
        and event.owner == instance
        and _is_public(event.name)
    ]


def _properties(cls: type) -> list[tuple[str, property]]:
    found: dict[str, property] = {}
    for klass in reversed(cls.__mro__):
        if _is_library_class(klass):
            continue
        for name, member in vars(klass).items():
            if isinstance(member, property) and _is_public(name):
                found[name] = member
    return list(found.items())


def _own_annotations(klass: type) -> dict[str, Any]:
    try:
        return inspect.get_annotations(klass)
    except NameError:
        return dict(klass.__dict__.get("__annotations__", {}))


def _is_class_var(hint: Any) -> bool:
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return hint is typing.ClassVar or typing.get_origin(hint) is typing.ClassVar


def _is_library_class(klass: type) -> bool:
    module = klass.__module__ or ""
    return module in _SKIPPED_MODULES or module.split(".")[0] == "pydantic"


def _is_pydantic_model(cls: type) -> bool:
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))
