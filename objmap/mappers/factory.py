"""
Instance factory: creates destination objects for the mapping pipeline.

Construction functions are resolved once per type and cached; an
optional override replaces them either for every type or only for
types that cannot be constructed without arguments.
"""

import inspect
from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar

from objmap.core.exceptions import NoParameterlessConstructorError
from objmap.core.logging import get_logger
from objmap.utils.helpers import type_name

logger = get_logger(__name__)

T = TypeVar("T")

FactoryOverride = Callable[[type], Any]

# Builtin value types without an introspectable signature; calling them
# with no arguments yields their zero value.
_ZERO_VALUE_TYPES = (
    bool, int, float, complex, str, bytes, bytearray,
    tuple, list, dict, set, frozenset,
)


class InstanceFactory:
    """Create instances of destination types."""

    def __init__(self) -> None:
        self._override: FactoryOverride | None = None
        self._always_use_override = False

    @property
    def override(self) -> FactoryOverride | None:
        return self._override

    @property
    def always_use_override(self) -> bool:
        return self._always_use_override

    def install(self, override: FactoryOverride, always_use: bool = False) -> None:
        """
        Install a global override.

        Args:
            override:   Called with the requested type, returns an instance of it.
            always_use: Consult the override for every type, not only for
                        types lacking a parameterless constructor.
        """
        self._override = override
        self._always_use_override = always_use
        logger.debug(
            "Instance factory override installed",
            extra={"always_use": always_use},
        )

    def create(self, cls: type[T]) -> T:
        """
        Create a new instance of ``cls``.

        Raises:
            NoParameterlessConstructorError: If ``cls`` needs arguments and no
                override applies. Exceptions raised by the override propagate
                unchanged.
        """
        if self._override is not None and (
            self._always_use_override or not has_parameterless_constructor(cls)
        ):
            return self._override(cls)

        return constructor_for(cls)()


@lru_cache(maxsize=None)
def has_parameterless_constructor(cls: type) -> bool:
    """True when ``cls()`` is expected to succeed."""
    if cls in _ZERO_VALUE_TYPES:
        return True
    if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
        return False

    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        # No introspectable signature; assume the default constructor
        return True

    return all(
        param.default is not inspect.Parameter.empty
        or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD)
        for param in signature.parameters.values()
    )


@lru_cache(maxsize=None)
def constructor_for(cls: type[T]) -> Callable[[], T]:
    """
    Return the cached parameterless construction function for ``cls``.

    Raises:
        NoParameterlessConstructorError: If ``cls`` cannot be built without arguments.
    """
    if not has_parameterless_constructor(cls):
        raise NoParameterlessConstructorError(cls)

    logger.debug("Constructor resolved", extra={"type": type_name(cls)})
    return cls
