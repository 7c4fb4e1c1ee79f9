"""
Pydantic data contracts for the release intelligence pipeline.
These models describe inputs/outputs shared across quality scoring, risk
classification, coverage analysis, prioritization, release confidence,
PR gating and the human review workflow.

Every model serializes with camelCase aliases so the JSON record stores and
API payloads keep the shapes external tooling already reads; Python code
populates them by field name.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

RiskLevel = Literal["critical", "high", "medium", "low"]
Impact = Literal["critical", "high", "medium", "low"]
Magnitude = Literal["high", "medium", "low"]
IssueSeverity = Literal["error", "warning", "info"]
GapPriority = Literal["urgent", "high", "medium", "low"]
ComponentStatus = Literal["excellent", "good", "fair", "poor"]
ReleaseRecommendation = Literal[
    "ready-to-release",
    "proceed-with-caution",
    "not-recommended",
    "blocked",
]
GateSeverity = Literal["critical", "high", "medium", "low"]
CIContext = Literal["pr", "merge", "nightly", "release"]
RejectionReason = Literal[
    "incorrect-assertions",
    "missing-edge-cases",
    "poor-selectors",
    "syntax-errors",
    "incomplete-coverage",
    "poor-maintainability",
    "not-aligned-with-requirements",
    "security-concerns",
    "performance-issues",
    "other",
]

REJECTION_REASONS: Tuple[str, ...] = (
    "incorrect-assertions",
    "missing-edge-cases",
    "poor-selectors",
    "syntax-errors",
    "incomplete-coverage",
    "poor-maintainability",
    "not-aligned-with-requirements",
    "security-concerns",
    "performance-issues",
    "other",
)


class ContractModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------
# Quality scoring
# ---------------------------------------------------------------------

class Issue(ContractModel):
    """A single finding surfaced to the human reviewer."""

    model_config = ConfigDict(frozen=True)

    severity: IssueSeverity
    category: str
    message: str
    line: Optional[int] = None


class QualityVector(ContractModel):
    """Five independent sub-scores plus the weighted overall score."""

    model_config = ConfigDict(frozen=True)

    syntax_score: int = Field(ge=0, le=100)
    coverage_score: int = Field(ge=0, le=100)
    assertion_score: int = Field(ge=0, le=100)
    maintainability_score: int = Field(ge=0, le=100)
    best_practices_score: int = Field(ge=0, le=100)
    overall_score: int = Field(ge=0, le=100)
    issues: Tuple[Issue, ...] = ()


# ---------------------------------------------------------------------
# Risk classification and coverage
# ---------------------------------------------------------------------

class RiskFactor(ContractModel):
    factor: str
    weight: float
    description: str


class RiskContext(ContractModel):
    """Caller-supplied overrides for a single classification."""

    risk_level: Optional[RiskLevel] = None
    business_impact: Optional[Impact] = None
    technical_complexity: Optional[Magnitude] = None
    change_frequency: Optional[Magnitude] = None


class RiskClassification(ContractModel):
    feature_name: str
    risk_level: RiskLevel
    risk_score: int = Field(ge=0, le=100)
    risk_factors: List[RiskFactor] = Field(default_factory=list)
    business_impact: Impact = "medium"
    technical_complexity: Magnitude = "medium"
    change_frequency: Magnitude = "medium"


class FeatureTestMapping(ContractModel):
    feature_name: str
    risk_classification: RiskClassification
    test_files: List[str] = Field(default_factory=list)
    is_tested: bool = False


class RiskCoverage(ContractModel):
    total_features: int
    tested_features: int
    coverage_percentage: float
    untested_features: List[str] = Field(default_factory=list)


class CoverageGap(ContractModel):
    feature_name: str
    risk_level: RiskLevel
    risk_score: int
    priority: GapPriority
    recommendation: str


class CoverageMetrics(ContractModel):
    total_features: int
    tested_features: int
    coverage_by_risk: Dict[str, RiskCoverage]
    overall_coverage: float
    risk_weighted_coverage: int
    gaps: List[CoverageGap] = Field(default_factory=list)


class HeatmapCell(ContractModel):
    feature: str
    risk_level: RiskLevel
    risk_score: int
    is_tested: bool
    test_count: int


class HeatmapDimensions(ContractModel):
    width: int
    height: int


class HeatmapData(ContractModel):
    cells: List[HeatmapCell]
    dimensions: HeatmapDimensions


# ---------------------------------------------------------------------
# Prioritization
# ---------------------------------------------------------------------

class TestInfo(ContractModel):
    name: str
    file_path: str
    risk_classification: RiskClassification
    last_modified: Optional[datetime] = None
    execution_time: Optional[float] = None  # milliseconds
    failure_rate: Optional[float] = Field(default=None, ge=0, le=1)


class TestPriority(ContractModel):
    test_name: str
    priority: int
    risk_level: RiskLevel
    execution_order: int
    reason: str
    file_path: str


# ---------------------------------------------------------------------
# Release confidence and gating
# ---------------------------------------------------------------------

class TestResults(ContractModel):
    total_tests: int = Field(ge=0)
    passed_tests: int = Field(ge=0)
    failed_tests: int = Field(default=0, ge=0)
    skipped_tests: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _counts_within_total(self) -> "TestResults":
        if self.passed_tests > self.total_tests:
            raise ValueError("passedTests cannot exceed totalTests")
        return self


class ValidationStats(ContractModel):
    total_validations: int = Field(default=0, ge=0)
    approved_tests: int = Field(default=0, ge=0)
    rejected_tests: int = Field(default=0, ge=0)
    auto_approved_tests: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _counts_within_total(self) -> "ValidationStats":
        if self.approved_tests > self.total_validations:
            raise ValueError("approvedTests cannot exceed totalValidations")
        if self.auto_approved_tests > self.approved_tests:
            raise ValueError("autoApprovedTests cannot exceed approvedTests")
        return self


class ReleaseConfidenceInput(ContractModel):
    test_results: TestResults
    coverage_metrics: CoverageMetrics
    quality_metrics: List[QualityVector] = Field(default_factory=list)
    validation_stats: ValidationStats = Field(default_factory=ValidationStats)


class ComponentScore(ContractModel):
    score: int
    weight: float
    weighted_score: float
    status: ComponentStatus


class ConfidenceComponents(ContractModel):
    test_pass_rate: ComponentScore
    risk_coverage: ComponentScore
    test_quality: ComponentScore
    human_validation_rate: ComponentScore


class ReleaseConfidenceScore(ContractModel):
    overall_score: int
    components: ConfidenceComponents
    recommendation: ReleaseRecommendation
    details: str
    calculated_at: datetime


class QualityGateResult(ContractModel):
    gate_name: str
    passed: bool
    score: int
    threshold: int
    message: str
    severity: GateSeverity


class PRValidationResult(ContractModel):
    overall_passed: bool
    gates: List[QualityGateResult]
    confidence: ReleaseConfidenceScore
    blockers: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: str


# ---------------------------------------------------------------------
# Discovery, generation and human review records
# ---------------------------------------------------------------------

class FeatureRecord(ContractModel):
    """One discovered page/feature handed over by the app walker."""

    id: str
    name: str
    description: str = ""
    selectors: List[str] = Field(default_factory=list)
    risk_level: RiskLevel = "medium"
    api_endpoints: List[str] = Field(default_factory=list)


class GeneratedTest(ContractModel):
    test_code: str
    test_name: str
    description: str = ""
    quality_score: int = 0
    risk_alignment: int = 50
    generated_at: datetime = Field(default_factory=datetime.now)


class ValidationDecision(ContractModel):
    test_name: str
    approved: bool
    rejection_reason: Optional[RejectionReason] = None
    reviewer_comments: Optional[str] = None
    reviewed_at: datetime = Field(default_factory=datetime.now)
    reviewed_by: str = "human-reviewer"


class RejectionRecord(ContractModel):
    test_name: str
    reason: RejectionReason = "other"
    comments: str = ""
    timestamp: datetime
    reviewer: str = "human-reviewer"


class ApprovedTestRecord(ContractModel):
    test_name: str
    feature_name: Optional[str] = None
    risk_level: Optional[RiskLevel] = None
    quality_score: Optional[int] = None
    timestamp: datetime
    reviewer: str = "human-reviewer"


class RejectionPattern(ContractModel):
    reason: RejectionReason
    count: int
    percentage: float
    examples: List[str] = Field(default_factory=list)


class TrendDataPoint(ContractModel):
    date: str
    rejection_count: int
    approval_count: int
    rejection_rate: float


class RejectionStats(ContractModel):
    total_rejections: int
    rejections_by_reason: Dict[str, int]
    rejection_rate: float
    common_patterns: List[RejectionPattern] = Field(default_factory=list)
    trend_data: List[TrendDataPoint] = Field(default_factory=list)
