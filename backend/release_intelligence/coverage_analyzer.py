"""
Risk-weighted coverage analysis over feature/test mappings.
"""

import math
from datetime import datetime
from typing import Dict, List, Optional

from . import config
from .schemas import (
    CoverageGap,
    CoverageMetrics,
    FeatureTestMapping,
    HeatmapCell,
    HeatmapData,
    HeatmapDimensions,
    RiskCoverage,
)
from .utils import percentage, round_half_up

_LEVEL_HEADINGS = {
    "critical": "Critical Risk",
    "high": "High Risk",
    "medium": "Medium Risk",
    "low": "Low Risk",
}


def gap_priority(risk_level: str, risk_score: int) -> str:
    if risk_level == "critical" or risk_score >= 90:
        return "urgent"
    if risk_level == "high" or risk_score >= 70:
        return "high"
    if risk_level == "medium" or risk_score >= 50:
        return "medium"
    return "low"


class CoverageAnalyzer:
    """Computes per-level coverage, risk-weighted coverage and prioritized gaps."""

    def analyze(self, mappings: List[FeatureTestMapping]) -> CoverageMetrics:
        total = len(mappings)
        tested = sum(1 for mapping in mappings if mapping.is_tested)

        coverage_by_risk = {
            level: self._level_coverage(mappings, level) for level in config.RISK_LEVELS
        }

        return CoverageMetrics(
            total_features=total,
            tested_features=tested,
            coverage_by_risk=coverage_by_risk,
            overall_coverage=percentage(tested, total),
            risk_weighted_coverage=self._risk_weighted_coverage(coverage_by_risk),
            gaps=self._identify_gaps(mappings),
        )

    @staticmethod
    def _level_coverage(mappings: List[FeatureTestMapping], risk_level: str) -> RiskCoverage:
        at_level = [m for m in mappings if m.risk_classification.risk_level == risk_level]
        tested = [m for m in at_level if m.is_tested]
        return RiskCoverage(
            total_features=len(at_level),
            tested_features=len(tested),
            coverage_percentage=percentage(len(tested), len(at_level)),
            untested_features=[m.feature_name for m in at_level if not m.is_tested],
        )

    @staticmethod
    def _risk_weighted_coverage(coverage_by_risk: Dict[str, RiskCoverage]) -> int:
        weighted = sum(
            coverage_by_risk[level].coverage_percentage * weight
            for level, weight in config.COVERAGE_RISK_WEIGHTS.items()
        )
        return round_half_up(weighted)

    @staticmethod
    def _identify_gaps(mappings: List[FeatureTestMapping]) -> List[CoverageGap]:
        gaps = [
            CoverageGap(
                feature_name=m.feature_name,
                risk_level=m.risk_classification.risk_level,
                risk_score=m.risk_classification.risk_score,
                priority=gap_priority(m.risk_classification.risk_level, m.risk_classification.risk_score),
                recommendation=config.GAP_RECOMMENDATIONS[m.risk_classification.risk_level],
            )
            for m in mappings
            if not m.is_tested
        ]
        # sorted() is stable, so discovery order is kept within a priority
        return sorted(gaps, key=lambda gap: config.GAP_PRIORITY_ORDER[gap.priority])

    def generate_heatmap_data(self, mappings: List[FeatureTestMapping]) -> HeatmapData:
        cells = [
            HeatmapCell(
                feature=m.feature_name,
                risk_level=m.risk_classification.risk_level,
                risk_score=m.risk_classification.risk_score,
                is_tested=m.is_tested,
                test_count=len(m.test_files),
            )
            for m in mappings
        ]
        width = math.ceil(math.sqrt(len(cells)))
        height = math.ceil(len(cells) / width) if width else 0
        return HeatmapData(cells=cells, dimensions=HeatmapDimensions(width=width, height=height))

    def generate_report(self, metrics: CoverageMetrics, generated_at: Optional[datetime] = None) -> str:
        """Render the Markdown coverage report."""
        timestamp = (generated_at or datetime.now()).isoformat()
        lines = [
            "# Risk Coverage Analysis Report",
            f"Generated: {timestamp}",
            "",
            "## Summary",
            f"- **Total Features**: {metrics.total_features}",
            f"- **Tested Features**: {metrics.tested_features}",
            f"- **Overall Coverage**: {metrics.overall_coverage:.1f}%",
            f"- **Risk-Weighted Coverage**: {metrics.risk_weighted_coverage}/100",
            "",
            "## Coverage by Risk Level",
            "",
        ]

        for level in config.RISK_LEVELS:
            bucket = metrics.coverage_by_risk[level]
            lines.append(f"### {_LEVEL_HEADINGS[level]}")
            lines.append(f"- Coverage: {bucket.coverage_percentage:.1f}%")
            lines.append(f"- Tested: {bucket.tested_features}/{bucket.total_features}")
            if bucket.untested_features and level in ("critical", "high"):
                lines.append(f"- **Untested**: {', '.join(bucket.untested_features)}")
            lines.append("")

        urgent = [gap for gap in metrics.gaps if gap.priority == "urgent"]
        high = [gap for gap in metrics.gaps if gap.priority == "high"]

        if metrics.gaps:
            lines.append(f"## Coverage Gaps ({len(metrics.gaps)})")
            lines.append("")
            for heading, gaps in (("Urgent Gaps", urgent), ("High Priority Gaps", high)):
                if not gaps:
                    continue
                lines.append(f"### {heading}")
                for gap in gaps:
                    lines.append(f"- **{gap.feature_name}** ({gap.risk_level}, score: {gap.risk_score})")
                    lines.append(f"  {gap.recommendation}")
                    lines.append("")
        else:
            lines.append("## No Coverage Gaps")
            lines.append("All features have test coverage!")
            lines.append("")

        lines.append("## Recommendations")
        lines.append("")
        critical_pct = metrics.coverage_by_risk["critical"].coverage_percentage
        if metrics.risk_weighted_coverage < 80:
            lines.append(
                f"1. **Improve Risk-Weighted Coverage**: Current score is "
                f"{metrics.risk_weighted_coverage}/100. Focus on critical and high-risk features."
            )
        if critical_pct < 100:
            lines.append(
                f"2. **Critical Risk Coverage**: Only {critical_pct:.1f}% of critical features "
                "are tested. This should be 100%."
            )
        if urgent:
            lines.append(
                f"3. **Address Urgent Gaps**: {len(urgent)} urgent coverage gaps require immediate attention."
            )

        return "\n".join(lines) + "\n"
