"""
Pydantic schemas for validator diagnostics.

A DiagnosticReport renders into the plain-text format downstream tooling
expects: one block per offending function, each ending in a blank line.
"""

from pydantic import BaseModel, Field


class MappingDiagnostic(BaseModel):
    """Unmapped fields of a single registered function."""

    declaring_type: str = Field(..., description="Class, enclosing function or module")
    function_name: str = Field(..., description="Name of the mapping function")
    parameters: list[str] = Field(
        default_factory=list, description="Rendered 'name: module.Type' parameters")
    unmapped: list[str] = Field(
        default_factory=list, description="Field names never written (or read)")
    suggestions: list[str] = Field(
        default_factory=list, description="One suggested code line per unmapped field")

    @property
    def qualified_name(self) -> str:
        return f"{self.declaring_type}.{self.function_name}"

    def render(self) -> str:
        lines = [
            f"Method {self.qualified_name}({', '.join(self.parameters)}) "
            "does not map the following properties:"
        ]
        lines.extend(f"\t{name}" for name in self.unmapped)
        lines.append("")
        lines.append("Suggestion:")
        lines.extend(f"\t{line}" for line in self.suggestions)
        lines.append("")
        return "\n".join(lines) + "\n"


class DiagnosticReport(BaseModel):
    """Aggregate of every offending function found by one validation run."""

    diagnostics: list[MappingDiagnostic] = Field(default_factory=list)

    def add(self, diagnostic: MappingDiagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def is_empty(self) -> bool:
        return not self.diagnostics

    def render(self) -> str:
        return "".join(d.render() for d in self.diagnostics)
