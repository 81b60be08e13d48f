"""
Declarative markers for mapping functions.

The decorators only attach data to the function; the registry reads it
back once, at registration time, into the entry's ignore set and flags.

    class UserMaps:
        @map_ignore_property("last_login")
        def map_user(self, source: User, to: UserModel) -> None:
            to.username = source.username
"""

from typing import Any, TypeVar

from objmap.utils.helpers import underlying_function

F = TypeVar("F")

IGNORED_PROPERTIES_ATTR = "__objmap_ignored_properties__"
IGNORE_METHOD_ATTR = "__objmap_ignore_method__"
VALIDATE_SOURCE_ATTR = "__objmap_validate_source__"


def map_ignore_property(*names: str):
    """Exclude ``names`` from the unmapped-field check of the decorated function."""

    def decorator(fn: F) -> F:
        target = _marker_target(fn)
        existing = getattr(target, IGNORED_PROPERTIES_ATTR, frozenset())
        setattr(target, IGNORED_PROPERTIES_ATTR, frozenset(existing) | frozenset(names))
        return fn

    return decorator


def map_ignore_method(fn: F) -> F:
    """Skip the decorated function entirely during validation."""
    setattr(_marker_target(fn), IGNORE_METHOD_ATTR, True)
    return fn


def map_validate_source(fn: F) -> F:
    """
    Validate that the source is fully read instead of the destination
    fully written. Works on functions and on classes of mapping methods.
    """
    setattr(_marker_target(fn), VALIDATE_SOURCE_ATTR, True)
    return fn


def ignored_properties(fn: Any) -> frozenset[str]:
    return frozenset(getattr(underlying_function(fn), IGNORED_PROPERTIES_ATTR, ()))


def is_ignored_method(fn: Any) -> bool:
    return bool(getattr(underlying_function(fn), IGNORE_METHOD_ATTR, False))


def validates_source(fn: Any, owner: type | None = None) -> bool:
    if getattr(underlying_function(fn), VALIDATE_SOURCE_ATTR, False):
        return True
    return owner is not None and bool(owner.__dict__.get(VALIDATE_SOURCE_ATTR, False))


def _marker_target(obj: Any) -> Any:
    # Markers may sit above or below @staticmethod / @classmethod
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj
