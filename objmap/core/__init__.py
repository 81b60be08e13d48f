from objmap.core.exceptions import (
    MapException,
    NullFunctionError,
    MappingSignatureError,
    NoParameterlessConstructorError,
    MappingNotFoundError,
    IncompleteMappingError,
    RegistryFrozenError,
)
from objmap.core.logging import setup_logging, get_logger

__all__ = [
    "MapException",
    "NullFunctionError",
    "MappingSignatureError",
    "NoParameterlessConstructorError",
    "MappingNotFoundError",
    "IncompleteMappingError",
    "RegistryFrozenError",
    "setup_logging",
    "get_logger",
]
