"""
Compute a release confidence score using deterministic weighting.

Risk coverage enters as the coverage analyzer's already risk-weighted score,
so risk is weighted twice: once inside coverage, once here.
"""

from datetime import datetime
from typing import Dict, List, Optional

from . import config
from .schemas import (
    ComponentScore,
    ConfidenceComponents,
    CoverageMetrics,
    QualityVector,
    ReleaseConfidenceInput,
    ReleaseConfidenceScore,
    TestResults,
    ValidationStats,
)
from .utils import percentage, round_half_up

_RECOMMENDATION_LABELS = {
    "ready-to-release": "READY TO RELEASE",
    "proceed-with-caution": "PROCEED WITH CAUTION",
    "not-recommended": "NOT RECOMMENDED",
    "blocked": "BLOCKED",
}

_RECOMMENDATION_SUMMARIES = {
    "ready-to-release": "**Ready to Release**: All quality gates passed. Confidence is high.",
    "proceed-with-caution": "**Proceed with Caution**: Quality gates passed but some areas need attention.",
    "not-recommended": "**Not Recommended**: Quality concerns detected. Address issues before release.",
    "blocked": "**BLOCKED**: Critical quality gates failed. Release is blocked.",
}


def component_status(score: float) -> str:
    for breakpoint, status in config.STATUS_BREAKPOINTS:
        if score >= breakpoint:
            return status
    return "poor"


class ReleaseConfidenceScorer:
    """Blends pass rate, risk coverage, test quality and human validation."""

    def __init__(self, weights: Optional[Dict[str, float]] = None) -> None:
        self.weights = dict(weights or config.DEFAULT_CONFIDENCE_WEIGHTS)

    def calculate(
        self, confidence_input: ReleaseConfidenceInput, calculated_at: Optional[datetime] = None
    ) -> ReleaseConfidenceScore:
        components = ConfidenceComponents(
            test_pass_rate=self._test_pass_rate(confidence_input.test_results),
            risk_coverage=self._risk_coverage(confidence_input.coverage_metrics),
            test_quality=self._test_quality(confidence_input.quality_metrics),
            human_validation_rate=self._human_validation_rate(confidence_input.validation_stats),
        )

        overall_score = round_half_up(
            components.test_pass_rate.weighted_score
            + components.risk_coverage.weighted_score
            + components.test_quality.weighted_score
            + components.human_validation_rate.weighted_score
        )

        return ReleaseConfidenceScore(
            overall_score=overall_score,
            components=components,
            recommendation=self.determine_recommendation(overall_score, components),
            details=self._details(components),
            calculated_at=calculated_at or datetime.now(),
        )

    def _component(self, name: str, score: int) -> ComponentScore:
        weight = self.weights[name]
        return ComponentScore(
            score=score,
            weight=weight,
            weighted_score=score * weight,
            status=component_status(score),
        )

    def _test_pass_rate(self, results: TestResults) -> ComponentScore:
        score = round_half_up(percentage(results.passed_tests, results.total_tests))
        return self._component("test_pass_rate", score)

    def _risk_coverage(self, metrics: CoverageMetrics) -> ComponentScore:
        return self._component("risk_coverage", metrics.risk_weighted_coverage)

    def _test_quality(self, quality_metrics: List[QualityVector]) -> ComponentScore:
        if not quality_metrics:
            return ComponentScore(
                score=0,
                weight=self.weights["test_quality"],
                weighted_score=0.0,
                status="poor",
            )
        average = sum(metric.overall_score for metric in quality_metrics) / len(quality_metrics)
        return self._component("test_quality", round_half_up(average))

    def _human_validation_rate(self, stats: ValidationStats) -> ComponentScore:
        # nothing generated means nothing needed validating
        if stats.total_validations == 0:
            return self._component("human_validation_rate", 100)
        score = round_half_up(percentage(stats.approved_tests, stats.total_validations))
        return self._component("human_validation_rate", score)

    @staticmethod
    def determine_recommendation(overall_score: int, components: ConfidenceComponents) -> str:
        """
        Blocking rules run before score tiering:

        - BLOCK if the test pass rate is below 80.
        - BLOCK if risk coverage is below 70.
        - Otherwise tier the overall score at 85 / 70 / 60.
        """
        if components.test_pass_rate.score < config.BLOCKING_MIN_PASS_RATE:
            return "blocked"
        if components.risk_coverage.score < config.BLOCKING_MIN_RISK_COVERAGE:
            return "blocked"

        for breakpoint, recommendation in config.RECOMMENDATION_BREAKPOINTS:
            if overall_score >= breakpoint:
                return recommendation
        return "blocked"

    @staticmethod
    def _details(components: ConfidenceComponents) -> str:
        return "\n".join(
            [
                f"Test Pass Rate: {components.test_pass_rate.score}% ({components.test_pass_rate.status})",
                f"Risk Coverage: {components.risk_coverage.score}/100 ({components.risk_coverage.status})",
                f"Test Quality: {components.test_quality.score}/100 ({components.test_quality.status})",
                f"Human Validation: {components.human_validation_rate.score}% "
                f"({components.human_validation_rate.status})",
            ]
        )

    def generate_report(self, confidence: ReleaseConfidenceScore) -> str:
        """Render the Markdown release confidence report."""
        components = confidence.components
        lines = [
            "# Release Confidence Report",
            f"Generated: {confidence.calculated_at.isoformat()}",
            "",
            f"## Overall Confidence: {confidence.overall_score}/100",
            "",
            f"**Recommendation**: {_RECOMMENDATION_LABELS[confidence.recommendation]}",
            "",
            "## Component Breakdown",
            "",
        ]

        for heading, component in (
            ("Test Pass Rate", components.test_pass_rate),
            ("Risk Coverage", components.risk_coverage),
            ("Test Quality", components.test_quality),
            ("Human Validation", components.human_validation_rate),
        ):
            lines.extend(
                [
                    f"### {heading} ({component.weight * 100:.0f}% weight)",
                    f"- Score: {component.score}/100",
                    f"- Status: {component.status.capitalize()}",
                    f"- Contribution: {component.weighted_score:.1f} points",
                    "",
                ]
            )

        lines.append("## Recommendations")
        lines.append("")
        lines.append(_RECOMMENDATION_SUMMARIES[confidence.recommendation])
        if confidence.recommendation != "ready-to-release":
            suggestions = self.improvement_suggestions(components)
            if suggestions:
                lines.append("")
                lines.extend(suggestions)

        return "\n".join(lines) + "\n"

    @staticmethod
    def improvement_suggestions(components: ConfidenceComponents) -> List[str]:
        weak = ("poor", "fair")
        suggestions = []
        if components.test_pass_rate.status in weak:
            suggestions.append(
                f"- **Fix Failing Tests**: Test pass rate is {components.test_pass_rate.score}%. "
                "Investigate and fix failing tests."
            )
        if components.risk_coverage.status in weak:
            suggestions.append(
                f"- **Improve Risk Coverage**: Risk coverage is {components.risk_coverage.score}/100. "
                "Add tests for high-risk areas."
            )
        if components.test_quality.status in weak:
            suggestions.append(
                f"- **Enhance Test Quality**: Test quality score is {components.test_quality.score}/100. "
                "Review and improve test assertions and coverage."
            )
        if components.human_validation_rate.status in weak:
            suggestions.append(
                f"- **Review AI-Generated Tests**: Human validation rate is "
                f"{components.human_validation_rate.score}%. Review rejected tests and improve AI prompts."
            )
        return suggestions
