"""
Classify features into risk levels using ordered, configurable name patterns.
"""

import logging
import re
from typing import Dict, List, Optional, Pattern, Tuple

from . import config
from .config import FeatureRiskConfig, RiskConfig, RiskConfigError, invalid_entry_fields
from .schemas import RiskClassification, RiskContext, RiskFactor
from .utils import round_half_up

logger = logging.getLogger(__name__)

_MATRIX_HEADINGS = (
    ("critical", "Critical"),
    ("high", "High"),
    ("medium", "Medium"),
    ("low", "Low"),
)


def risk_level_for_score(score: int) -> str:
    """Map a 0-100 risk score onto a level using the fixed breakpoints."""
    for breakpoint, level in config.RISK_LEVEL_BREAKPOINTS:
        if score >= breakpoint:
            return level
    return "low"


def calculate_risk_score(business_impact: str, technical_complexity: str, change_frequency: str) -> int:
    weights = config.RISK_FACTOR_WEIGHTS
    total = (
        config.IMPACT_SCORES.get(business_impact, config.IMPACT_SCORES["low"]) * weights["business_impact"]
        + config.COMPLEXITY_SCORES.get(technical_complexity, config.COMPLEXITY_SCORES["low"])
        * weights["technical_complexity"]
        + config.FREQUENCY_SCORES.get(change_frequency, config.FREQUENCY_SCORES["low"])
        * weights["change_frequency"]
    )
    return round_half_up(total)


class RiskClassifier:
    """Looks feature names up against ordered regex entries; the first match wins."""

    def __init__(self, risk_config: Optional[RiskConfig] = None) -> None:
        self.config = risk_config or RiskConfig()
        self._patterns = self._compile_patterns(self.config)

    @staticmethod
    def _compile_patterns(risk_config: RiskConfig) -> List[Tuple[Pattern, FeatureRiskConfig]]:
        compiled: List[Tuple[Pattern, FeatureRiskConfig]] = []
        for entry in risk_config.features:
            invalid = invalid_entry_fields(entry)
            if invalid:
                if risk_config.strict_patterns:
                    raise RiskConfigError(
                        f"Invalid values for {', '.join(invalid)} in risk entry {entry.name!r}"
                    )
                logger.warning("Skipping risk entry %s: invalid %s", entry.name, ", ".join(invalid))
                continue
            try:
                compiled.append((re.compile(entry.pattern, re.IGNORECASE), entry))
            except re.error as exc:
                if risk_config.strict_patterns:
                    raise RiskConfigError(
                        f"Invalid pattern {entry.pattern!r} for risk entry {entry.name!r}: {exc}"
                    ) from exc
                logger.warning(
                    "Skipping risk entry %s: invalid pattern %r (%s)", entry.name, entry.pattern, exc
                )
        return compiled

    def find_matching_config(self, feature_name: str) -> Optional[FeatureRiskConfig]:
        for pattern, entry in self._patterns:
            if pattern.search(feature_name):
                return entry
        return None

    def classify(self, feature_name: str, context: Optional[RiskContext] = None) -> RiskClassification:
        """
        Classify a single feature.

        Factor inputs come from the context first, then the matched entry,
        then "medium". The level comes from the matched entry, then the
        context's explicit level. Without either, an absent context falls back
        to the configured default level and a supplied context derives the
        level from the computed score.
        """
        matched = self.find_matching_config(feature_name)
        ctx = context or RiskContext()

        business_impact = ctx.business_impact or (matched.business_impact if matched else None) or "medium"
        technical_complexity = (
            ctx.technical_complexity or (matched.technical_complexity if matched else None) or "medium"
        )
        change_frequency = ctx.change_frequency or (matched.change_frequency if matched else None) or "medium"

        risk_factors = [
            RiskFactor(
                factor="Business Impact",
                weight=config.RISK_FACTOR_WEIGHTS["business_impact"],
                description=f"{business_impact} impact on business operations",
            ),
            RiskFactor(
                factor="Technical Complexity",
                weight=config.RISK_FACTOR_WEIGHTS["technical_complexity"],
                description=f"{technical_complexity} technical complexity",
            ),
            RiskFactor(
                factor="Change Frequency",
                weight=config.RISK_FACTOR_WEIGHTS["change_frequency"],
                description=f"{change_frequency} frequency of changes",
            ),
        ]
        risk_score = calculate_risk_score(business_impact, technical_complexity, change_frequency)

        if matched:
            risk_level = matched.risk_level
        elif ctx.risk_level:
            risk_level = ctx.risk_level
        elif context is None:
            risk_level = self.config.default_risk_level
        else:
            risk_level = risk_level_for_score(risk_score)

        return RiskClassification(
            feature_name=feature_name,
            risk_level=risk_level,
            risk_score=risk_score,
            risk_factors=risk_factors,
            business_impact=business_impact,
            technical_complexity=technical_complexity,
            change_frequency=change_frequency,
        )

    def classify_features(self, feature_names: List[str]) -> List[RiskClassification]:
        return [self.classify(name) for name in feature_names]

    @staticmethod
    def features_by_risk_level(
        classifications: List[RiskClassification], risk_level: str
    ) -> List[RiskClassification]:
        return [item for item in classifications if item.risk_level == risk_level]

    def generate_risk_matrix(self, classifications: List[RiskClassification]) -> str:
        """Render classifications grouped into the four risk levels."""
        grouped: Dict[str, List[RiskClassification]] = {level: [] for level in config.RISK_LEVELS}
        for item in classifications:
            grouped[item.risk_level].append(item)

        lines = ["Risk Matrix", "==========="]
        for level, heading in _MATRIX_HEADINGS:
            members = grouped[level]
            lines.append("")
            lines.append(f"{heading} ({len(members)}):")
            if members:
                lines.extend(f"  - {item.feature_name} (Score: {item.risk_score})" for item in members)
            else:
                lines.append("  None")
        return "\n".join(lines) + "\n"
