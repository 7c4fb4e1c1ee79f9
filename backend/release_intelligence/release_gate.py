"""
Pull-request gating decisions based on a release confidence score.
"""

from typing import List, Optional

from .config import GateThresholds
from .schemas import PRValidationResult, QualityGateResult, ReleaseConfidenceScore

_GATE_TABLE_HEADER = ["| Gate | Status | Score | Threshold |", "|------|--------|-------|-----------|"]


def _gate(
    name: str, label: str, score: int, threshold: int, unit: str, severity: str
) -> QualityGateResult:
    passed = score >= threshold
    if passed:
        message = f"{label} ({score}{unit}) meets threshold ({threshold}{unit})"
    else:
        message = f"{label} ({score}{unit}) below threshold ({threshold}{unit})"
    return QualityGateResult(
        gate_name=name,
        passed=passed,
        score=score,
        threshold=threshold,
        message=message,
        severity=severity,
    )


class PRValidationGate:
    """Runs the four named gates; only critical-severity failures block."""

    def __init__(self, thresholds: Optional[GateThresholds] = None) -> None:
        self.thresholds = thresholds or GateThresholds()

    def validate(self, confidence: ReleaseConfidenceScore) -> PRValidationResult:
        """
        Evaluate a ReleaseConfidenceScore against the PR gates.

        - Test Pass Rate and Risk Coverage are critical: a failure blocks.
        - Test Quality and Overall Confidence are high: a failure warns.
        """
        components = confidence.components
        gates = [
            _gate(
                "Test Pass Rate",
                "Test pass rate",
                components.test_pass_rate.score,
                self.thresholds.min_test_pass_rate,
                "%",
                "critical",
            ),
            _gate(
                "Risk Coverage",
                "Risk coverage",
                components.risk_coverage.score,
                self.thresholds.min_risk_coverage,
                "/100",
                "critical",
            ),
            _gate(
                "Test Quality",
                "Test quality",
                components.test_quality.score,
                self.thresholds.min_test_quality,
                "/100",
                "high",
            ),
            _gate(
                "Overall Confidence",
                "Release confidence",
                confidence.overall_score,
                self.thresholds.min_confidence_score,
                "/100",
                "high",
            ),
        ]

        blockers = [g.message for g in gates if not g.passed and g.severity == "critical"]
        warnings = [g.message for g in gates if not g.passed and g.severity != "critical"]
        overall_passed = not blockers

        return PRValidationResult(
            overall_passed=overall_passed,
            gates=gates,
            confidence=confidence,
            blockers=blockers,
            warnings=warnings,
            summary=self._summary(gates, overall_passed),
        )

    @staticmethod
    def _summary(gates: List[QualityGateResult], overall_passed: bool) -> str:
        passed_count = sum(1 for g in gates if g.passed)
        total = len(gates)
        if overall_passed:
            return f"All blocking quality gates passed ({passed_count}/{total})"
        return f"{total - passed_count} quality gate(s) failed ({passed_count}/{total} passed)"

    @staticmethod
    def generate_pr_comment(result: PRValidationResult) -> str:
        """Render the Markdown comment posted on the pull request."""
        confidence = result.confidence
        components = confidence.components
        status = "PASSED" if result.overall_passed else "FAILED"

        lines = [
            "## Quality Gate Report",
            "",
            f"### Quality Gates: {status}",
            "",
            f"**Release Confidence**: {confidence.overall_score}/100 ({confidence.recommendation})",
            "",
            "### Gate Results",
            "",
            *_GATE_TABLE_HEADER,
        ]
        for gate in result.gates:
            gate_status = "Pass" if gate.passed else "Fail"
            lines.append(f"| {gate.gate_name} | {gate_status} | {gate.score} | {gate.threshold} |")
        lines.append("")

        if result.blockers:
            lines.append("### Blockers")
            lines.append("")
            lines.extend(f"- {blocker}" for blocker in result.blockers)
            lines.append("")

        if result.warnings:
            lines.append("### Warnings")
            lines.append("")
            lines.extend(f"- {warning}" for warning in result.warnings)
            lines.append("")

        lines.extend(
            [
                "### Component Breakdown",
                "",
                f"- **Test Pass Rate**: {components.test_pass_rate.score}% ({components.test_pass_rate.status})",
                f"- **Risk Coverage**: {components.risk_coverage.score}/100 ({components.risk_coverage.status})",
                f"- **Test Quality**: {components.test_quality.score}/100 ({components.test_quality.status})",
                f"- **Human Validation**: {components.human_validation_rate.score}% "
                f"({components.human_validation_rate.status})",
            ]
        )
        return "\n".join(lines) + "\n"
