from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .types import Finding, HandlerFailure

# ---- Report Models ----


class FindingModel(BaseModel):
    rule: str
    code: str  # Stable diagnostic id
    severity: Literal["info", "warn", "error"] = "info"
    message: str
    correction: Optional[str] = None
    arguments: List[str] = []
    file_path: str
    start_byte: int = Field(..., ge=0)
    end_byte: int = Field(..., ge=0)
    line: int = Field(..., ge=1)
    column: int = Field(..., ge=1)

    @classmethod
    def from_finding(cls, finding: Finding) -> "FindingModel":
        return cls(
            rule=finding.rule,
            code=finding.code.id,
            severity=finding.severity,
            message=finding.message,
            correction=finding.code.correction,
            arguments=[str(argument) for argument in finding.arguments],
            file_path=finding.file,
            start_byte=finding.start_byte,
            end_byte=finding.end_byte,
            line=finding.line,
            column=finding.column,
        )


class HandlerFailureModel(BaseModel):
    """A rule handler crashed on a node; the rest of the run continued."""
    rule: str
    node_kind: str
    file_path: str
    start_byte: int
    end_byte: int
    error: str

    @classmethod
    def from_failure(cls, failure: HandlerFailure) -> "HandlerFailureModel":
        return cls(
            rule=failure.rule,
            node_kind=failure.node_kind,
            file_path=failure.file,
            start_byte=failure.start_byte,
            end_byte=failure.end_byte,
            error=failure.error,
        )


class RuleTimingModel(BaseModel):
    total_ms: float = Field(0.0, ge=0)
    call_count: int = Field(0, ge=0)


class MetricsModel(BaseModel):
    total_ms: float = Field(0.0, ge=0)
    rules: Dict[str, RuleTimingModel] = {}


class ReportModel(BaseModel):
    """Full runner output for one or more files."""
    protocol: str = Field(..., description="Protocol version")
    engine_version: str
    files_scanned: int = Field(..., ge=0)
    rules_run: int = Field(..., ge=0)
    findings: List[FindingModel] = []
    failures: List[HandlerFailureModel] = []
    metrics: MetricsModel = Field(default_factory=MetricsModel)
