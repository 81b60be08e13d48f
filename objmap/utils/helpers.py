"""
Shared utility helpers.
"""

import functools
import inspect
from typing import Any


def type_name(cls: Any) -> str:
    """
    Return the fully-qualified name of a type for messages.

    Builtins are rendered bare (``int``), everything else as
    ``module.QualName``.
    """
    if not isinstance(cls, type):
        return repr(cls)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def underlying_function(fn: Any) -> Any:
    """
    Strip bound-method, staticmethod/classmethod, partial and
    ``functools.wraps`` layers until the plain function is reached.

    The result is the identity used to compare mapping functions.
    """
    seen: set[int] = set()
    while id(fn) not in seen:
        seen.add(id(fn))
        if isinstance(fn, (staticmethod, classmethod)) or inspect.ismethod(fn):
            fn = fn.__func__
        elif isinstance(fn, functools.partial):
            fn = fn.func
        elif hasattr(fn, "__wrapped__"):
            fn = fn.__wrapped__
    return fn


def declaring_name(fn: Any) -> tuple[str, str]:
    """
    Split a function into ``(declaring type, function name)``.

    Methods report their class, nested functions the enclosing
    function, module-level functions their module.
    """
    raw = underlying_function(fn)
    name = getattr(raw, "__name__", type(raw).__name__)
    qualname = getattr(raw, "__qualname__", name)

    owner, _, _ = qualname.rpartition(".")
    owner = owner.removesuffix(".<locals>")
    if not owner:
        owner = getattr(raw, "__module__", None) or "<unknown>"
    return owner, name
