"""
Custom exception hierarchy for the mapping library.

All library exceptions inherit from MapException, so callers can catch
one base class and still get a structured payload via ``to_dict()``.

Hierarchy:
    MapException
    ├── NullFunctionError                — Registering ``None`` as a mapper
    ├── MappingSignatureError            — Mapper with an unsupported shape
    ├── NoParameterlessConstructorError  — Type cannot be created without arguments
    ├── MappingNotFoundError             — Nothing registered for a type pair
    ├── IncompleteMappingError           — Validator found unmapped fields
    └── RegistryFrozenError              — Configuration after ``freeze()``
"""

from typing import TYPE_CHECKING, Any

from objmap.utils.helpers import type_name

if TYPE_CHECKING:
    from objmap.schemas.diagnostics import DiagnosticReport


class MapException(Exception):
    """
    Base exception for all mapping errors.

    Attributes:
        message:     Human-readable error description.
        error_code:  Machine-readable error identifier (e.g. "MAPPING_NOT_FOUND").
        details:     Optional dict with extra context for debugging.
    """

    def __init__(
        self,
        message: str = "An unexpected mapping error occurred.",
        error_code: str = "MAP_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the exception into a JSON-friendly dict."""
        payload: dict[str, Any] = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


# ─── Registration Errors ──────────────────────────────────────────────


class NullFunctionError(MapException):
    """Raised when ``None`` is registered instead of a mapping function."""

    def __init__(
        self,
        message: str = "Mapping function must not be None.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "NULL_FUNCTION", details)


class MappingSignatureError(MapException):
    """Raised when a function does not have one of the accepted mapper shapes."""

    def __init__(
        self,
        message: str = "Function does not have a supported mapping signature.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "MAPPING_SIGNATURE_ERROR", details)


class RegistryFrozenError(MapException):
    """Raised when the registry is configured after ``freeze()``."""

    def __init__(
        self,
        message: str = "The registry is frozen and can no longer be configured.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "REGISTRY_FROZEN", details)


# ─── Construction Errors ─────────────────────────────────────────────


class NoParameterlessConstructorError(MapException):
    """Raised when a type cannot be instantiated without arguments."""

    def __init__(self, cls: type, details: dict[str, Any] | None = None) -> None:
        self.cls = cls
        super().__init__(
            message=f"Type {type_name(cls)} has no public parameterless constructor.",
            error_code="NO_PARAMETERLESS_CONSTRUCTOR",
            details={**(details or {}), "type": type_name(cls)},
        )


# ─── Dispatch Errors ──────────────────────────────────────────────────


class MappingNotFoundError(MapException):
    """Raised when no mapping is registered for a source/destination pair."""

    def __init__(self, source_type: type, destination_type: type) -> None:
        self.source_type = source_type
        self.destination_type = destination_type
        super().__init__(
            message=(
                f"Map from {type_name(source_type)} to "
                f"{type_name(destination_type)} is not registered."
            ),
            error_code="MAPPING_NOT_FOUND",
            details={
                "source_type": type_name(source_type),
                "destination_type": type_name(destination_type),
            },
        )


# ─── Validation Errors ───────────────────────────────────────────────


class IncompleteMappingError(MapException):
    """Raised by ``validate()`` when registered mappers leave fields unmapped."""

    def __init__(self, report: "DiagnosticReport") -> None:
        self.report = report
        super().__init__(
            message=report.render(),
            error_code="INCOMPLETE_MAPPING",
            details={
                "functions": [d.qualified_name for d in report.diagnostics],
                "unmapped": {
                    d.qualified_name: list(d.unmapped) for d in report.diagnostics
                },
            },
        )
