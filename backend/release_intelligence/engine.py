"""
Orchestrates the release intelligence workflow for a build.
Performs draft scoring, risk classification, coverage analysis, release
confidence scoring and PR gating.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from .config import GateThresholds, RiskConfig
from .coverage_analyzer import CoverageAnalyzer
from .quality_scorer import QualityScorer
from .release_confidence import ReleaseConfidenceScorer
from .release_gate import PRValidationGate
from .risk_classifier import RiskClassifier
from .schemas import (
    ApprovedTestRecord,
    FeatureRecord,
    FeatureTestMapping,
    QualityVector,
    ReleaseConfidenceInput,
    RiskClassification,
    RiskContext,
    TestResults,
    ValidationStats,
)


def approved_test_files(records: Iterable[ApprovedTestRecord]) -> Dict[str, List[str]]:
    """Group approved test names by the (case-insensitive) feature they cover."""
    files: Dict[str, List[str]] = {}
    for record in records:
        if not record.feature_name:
            continue
        files.setdefault(record.feature_name.strip().lower(), []).append(record.test_name)
    return files


def build_feature_mappings(
    classifications: List[RiskClassification], test_files: Dict[str, List[str]]
) -> List[FeatureTestMapping]:
    mappings = []
    for classification in classifications:
        files = list(test_files.get(classification.feature_name.strip().lower(), []))
        mappings.append(
            FeatureTestMapping(
                feature_name=classification.feature_name,
                risk_classification=classification,
                test_files=files,
                is_tested=bool(files),
            )
        )
    return mappings


class QualityPipelineEngine:
    """High-level orchestrator for release intelligence decisions."""

    def __init__(
        self,
        risk_config: Optional[RiskConfig] = None,
        thresholds: Optional[GateThresholds] = None,
        validation_history: Optional[Callable[[], ValidationStats]] = None,
    ) -> None:
        # validation_history supplies stored review counts, e.g. ValidationWorkflow.history_stats
        self.validation_history = validation_history
        self.quality_scorer = QualityScorer()
        self.risk_classifier = RiskClassifier(risk_config)
        self.coverage_analyzer = CoverageAnalyzer()
        self.confidence_scorer = ReleaseConfidenceScorer()
        self.release_gate = PRValidationGate(thresholds)

    def classify(self, features: List[FeatureRecord]) -> List[RiskClassification]:
        return [
            self.risk_classifier.classify(feature.name, RiskContext(risk_level=feature.risk_level))
            for feature in features
        ]

    def run(
        self,
        build_id: str,
        features: List[FeatureRecord],
        test_sources: Dict[str, str],
        approved_tests: List[ApprovedTestRecord],
        test_results: TestResults,
        validation_stats: Optional[ValidationStats] = None,
        calculated_at: Optional[datetime] = None,
    ) -> Dict:
        """
        Execute the release intelligence workflow and return a structured result.

        test_sources maps a test name to its source text; approved_tests
        decide which features count as tested. Without explicit
        validation_stats the stored review history is used, when the engine
        was given one.
        """
        quality: Dict[str, QualityVector] = {
            name: self.quality_scorer.score(source) for name, source in test_sources.items()
        }

        classifications = self.classify(features)
        mappings = build_feature_mappings(classifications, approved_test_files(approved_tests))
        coverage = self.coverage_analyzer.analyze(mappings)

        if validation_stats is None:
            validation_stats = self.validation_history() if self.validation_history else ValidationStats()

        confidence = self.confidence_scorer.calculate(
            ReleaseConfidenceInput(
                test_results=test_results,
                coverage_metrics=coverage,
                quality_metrics=list(quality.values()),
                validation_stats=validation_stats,
            ),
            calculated_at=calculated_at,
        )
        gate_result = self.release_gate.validate(confidence)

        return {
            "build_id": build_id,
            "quality": {name: vector.model_dump(mode="json", by_alias=True) for name, vector in quality.items()},
            "classifications": [item.model_dump(mode="json", by_alias=True) for item in classifications],
            "coverage": coverage.model_dump(mode="json", by_alias=True),
            "confidence": confidence.model_dump(mode="json", by_alias=True),
            "gates": gate_result.model_dump(mode="json", by_alias=True),
            "pr_comment": self.release_gate.generate_pr_comment(gate_result),
        }
