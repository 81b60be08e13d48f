"""
objmap: register typed mapping functions between object types, dispatch
by (source, destination) type, and prove mappers complete from bytecode.

    registry = MapRegistry()
    registry.register(User, UserModel, map_user)
    model = registry.from_(user).to(UserModel)
    registry.validate()
"""

from objmap.config import Settings, get_settings
from objmap.core.exceptions import (
    IncompleteMappingError,
    MapException,
    MappingNotFoundError,
    MappingSignatureError,
    NoParameterlessConstructorError,
    NullFunctionError,
    RegistryFrozenError,
)
from objmap.core.logging import get_logger, setup_logging
from objmap.dispatch.queryable import Projection, Query
from objmap.mappers.base_mapper import BaseMapper
from objmap.mappers.markers import (
    map_ignore_method,
    map_ignore_property,
    map_validate_source,
)
from objmap.mappers.registry import MapRegistry

__version__ = "1.0.0"

__all__ = [
    "MapRegistry",
    "BaseMapper",
    "Projection",
    "Query",
    "map_ignore_property",
    "map_ignore_method",
    "map_validate_source",
    "MapException",
    "NullFunctionError",
    "MappingSignatureError",
    "NoParameterlessConstructorError",
    "MappingNotFoundError",
    "IncompleteMappingError",
    "RegistryFrozenError",
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
]
