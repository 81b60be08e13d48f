"""
Data model shared by the registry, the dispatch layer and the validator.
"""

from objmap.schemas.diagnostics import DiagnosticReport, MappingDiagnostic
from objmap.schemas.registration import (
    FunctionShape,
    MapperKind,
    MappingKey,
    RegisteredMapper,
)

__all__ = [
    "DiagnosticReport",
    "MappingDiagnostic",
    "FunctionShape",
    "MapperKind",
    "MappingKey",
    "RegisteredMapper",
]
