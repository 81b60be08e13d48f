"""
Completeness validator: proves every registered mapper covers its fields.

Walks the registration log of a registry, computes each mapper's field
coverage from its bytecode, and aggregates one diagnostic block per
function that leaves fields unmapped. A non-empty report is raised as
``IncompleteMappingError``.
"""

from collections.abc import Sequence

from objmap.config import Settings, get_settings
from objmap.core.exceptions import IncompleteMappingError
from objmap.core.logging import get_logger
from objmap.mappers.base_mapper import BaseMapper
from objmap.mappers.classifier import parameter_roles, positional_parameters
from objmap.schemas.diagnostics import DiagnosticReport, MappingDiagnostic
from objmap.schemas.registration import FunctionShape, MapperKind, RegisteredMapper
from objmap.utils.helpers import declaring_name, type_name
from objmap.validation.coverage import CoverageWalker
from objmap.validation.fields import readable_fields, writable_fields

logger = get_logger(__name__)


class CompletenessValidator:
    """One-shot validation pass over a registration log."""

    def __init__(
        self,
        registrations: Sequence[RegisteredMapper],
        settings: Settings | None = None,
    ) -> None:
        self._registrations = list(registrations)
        self._settings = settings or get_settings()

    def validate(self) -> None:
        """
        Raises:
            IncompleteMappingError: If any registered mapper leaves a field
                neither covered nor ignored.
        """
        report = self.report()
        if not report.is_empty:
            logger.warning(
                "Incomplete mappings found",
                extra={
                    "functions": [d.qualified_name for d in report.diagnostics],
                    "unmapped_count": sum(len(d.unmapped) for d in report.diagnostics),
                },
            )
            raise IncompleteMappingError(report)

        logger.info(
            "Mapping validation passed",
            extra={"function_count": len(self._checked_entries())},
        )

    def report(self) -> DiagnosticReport:
        """Build the diagnostic report without raising."""
        walker = CoverageWalker(
            self._registrations,
            scan_nested_code=self._settings.scan_nested_code,
        )
        report = DiagnosticReport()
        for entry in self._checked_entries():
            diagnostic = self._check(entry, walker)
            if diagnostic is not None:
                report.add(diagnostic)
        return report

    # ─── Internal ─────────────────────────────────────────────────────

    def _checked_entries(self) -> list[RegisteredMapper]:
        in_place = [e for e in self._registrations if e.kind is MapperKind.IN_PLACE]
        factories = [e for e in self._registrations if e.kind is MapperKind.FACTORY]
        return [e for e in in_place + factories if not e.skip_validation]

    def _check(self, entry: RegisteredMapper, walker: CoverageWalker) -> MappingDiagnostic | None:
        coverage = walker.coverage(entry)

        if entry.validate_source:
            expected = readable_fields(entry.source_type)
            other_side = writable_fields(entry.destination_type)
        else:
            expected = writable_fields(entry.destination_type)
            other_side = readable_fields(entry.source_type)

        unmapped = [
            name for name in expected
            if name not in coverage.covered and name not in coverage.ignored
        ]
        if not unmapped:
            return None

        declaring_type, function_name = declaring_name(entry.function)
        return MappingDiagnostic(
            declaring_type=declaring_type,
            function_name=function_name,
            parameters=_describe_parameters(entry),
            unmapped=unmapped,
            # assignments first, then ignore markers
            suggestions=(
                [_suggest(entry, name, True) for name in unmapped if name in other_side]
                + [_suggest(entry, name, False) for name in unmapped if name not in other_side]
            ),
        )


def _describe_parameters(entry: RegisteredMapper) -> list[str]:
    source, destination = entry.source_type, entry.destination_type
    types = {
        FunctionShape.SIMPLE_IN_PLACE: (source, destination),
        FunctionShape.IN_PLACE: (BaseMapper, source, destination),
        FunctionShape.SIMPLE_FACTORY: (source,),
        FunctionShape.FACTORY: (BaseMapper, source),
    }.get(entry.shape, ())

    params = positional_parameters(entry.function) or []
    return [f"{p.name}: {type_name(t)}" for p, t in zip(params, types)]


def _suggest(entry: RegisteredMapper, field: str, on_other_side: bool) -> str:
    if not on_other_side:
        return f'@map_ignore_property("{field}")'

    roles = parameter_roles(entry.function, entry.shape)
    source = roles.source or "source"
    if entry.kind is MapperKind.FACTORY:
        return f"{field}={source}.{field},"
    return f"{roles.target or 'destination'}.{field} = {source}.{field}"
